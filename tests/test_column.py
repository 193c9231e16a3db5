"""Tests for building leaf filter expressions with Column."""

import pytest
from pydantic import ValidationError

from tv_screener.column import Column, col
from tv_screener.errors import ExpressionError
from tv_screener.models.filters import FilterExpression, FilterOperator


@pytest.mark.parametrize(
    "expression, operation, right",
    [
        (col("close").gt(2.5), "greater", 2.5),
        (col("close").gte(350), "egreater", 350),
        (col("close").lt(10), "less", 10),
        (col("High.All").lte("high"), "eless", "high"),
        (col("is_primary").eq(True), "equal", True),
        (col("exchange").ne("OTC"), "nequal", "OTC"),
        (col("close").crosses("EMA20"), "crosses", "EMA20"),
        (col("close").crosses_above("EMA20"), "crosses_above", "EMA20"),
        (col("close").crosses_below("EMA20"), "crosses_below", "EMA20"),
        (col("description").like("apple"), "match", "apple"),
        (col("description").not_like("apple"), "nmatch", "apple"),
    ],
)
def test_scalar_comparisons(expression, operation, right):
    assert expression.to_dict() == {
        "left": expression.field,
        "operation": operation,
        "right": right,
    }


def test_python_operators_build_the_same_leaves():
    assert (col("close") > 2.5) == col("close").gt(2.5)
    assert (col("close") >= 2.5) == col("close").gte(2.5)
    assert (col("close") < 2.5) == col("close").lt(2.5)
    assert (col("close") <= 2.5) == col("close").lte(2.5)
    assert (col("type") == "stock") == col("type").eq("stock")
    assert (col("type") != "stock") == col("type").ne("stock")


def test_reflected_operator_keeps_column_on_the_left():
    expression = 2.5 < col("close")
    assert expression.field == "close"
    assert expression.operator == FilterOperator.GREATER
    assert expression.operand == 2.5


def test_column_operand_resolves_to_field_name():
    expression = col("high").gt(col("VWAP"))
    assert expression.operand == "VWAP"
    assert expression.to_dict()["right"] == "VWAP"


def test_between_accepts_values_and_fields():
    assert col("close").between(2.5, 15).to_dict() == {
        "left": "close",
        "operation": "in_range",
        "right": [2.5, 15],
    }
    assert col("close").between(col("EMA5"), "EMA20").operand == ["EMA5", "EMA20"]
    assert col("close").not_between(1, 2).operator == FilterOperator.NOT_IN_RANGE


def test_set_membership_normalizes_to_list():
    assert col("type").isin(["stock", "fund"]).operand == ["stock", "fund"]
    assert col("type").isin(("stock", "fund")).operand == ["stock", "fund"]
    assert col("type").isin("stock").operand == ["stock"]
    assert col("sector").not_in(["Health Technology"]).operator == FilterOperator.NOT_IN_RANGE
    assert col("typespecs").has("common").operand == ["common"]
    assert col("typespecs").has_none_of(["reit", "etn", "etf"]).to_dict() == {
        "left": "typespecs",
        "operation": "has_none_of",
        "right": ["reit", "etn", "etf"],
    }


def test_membership_list_is_copied():
    values = ["stock"]
    expression = col("type").isin(values)
    values.append("fund")
    assert expression.operand == ["stock"]


def test_temporal_ranges():
    assert col("earnings_release_next_trading_date_fq").in_day_range(0, 0).to_dict() == {
        "left": "earnings_release_next_trading_date_fq",
        "operation": "in_day_range",
        "right": [0, 0],
    }
    assert col("x").in_week_range(-1, 1).operator == FilterOperator.IN_WEEK_RANGE
    assert col("x").in_month_range(0, 2).operator == FilterOperator.IN_MONTH_RANGE


def test_percentage_operators():
    assert col("close").above_pct("VWAP", 1.03).to_dict() == {
        "left": "close",
        "operation": "above%",
        "right": ["VWAP", 1.03],
    }
    assert col("close").below_pct(col("VWAP"), 1.03).operand == ["VWAP", 1.03]
    assert col("close").between_pct("EMA200", 1.2, 1.5).to_dict() == {
        "left": "close",
        "operation": "in_range%",
        "right": ["EMA200", 1.2, 1.5],
    }
    assert col("close").not_between_pct("EMA200", 1.2, 1.5).operator == (
        FilterOperator.NOT_IN_RANGE_PCT
    )
    assert col("close").between_pct("EMA200", 1.2).operand == ["EMA200", 1.2]


def test_null_checks_send_null_right_side():
    assert col("premarket_change").empty().to_dict() == {
        "left": "premarket_change",
        "operation": "empty",
        "right": None,
    }
    assert col("premarket_change").not_empty().operator == FilterOperator.NEMPTY


def test_leaves_are_immutable():
    expression = col("close").gt(1)
    with pytest.raises(ValidationError):
        expression.operand = 2


def test_to_dict_is_detached():
    expression = col("type").isin(["stock"])
    payload = expression.to_dict()
    payload["right"].append("fund")
    assert expression.operand == ["stock"]


def test_leaf_accepts_wire_names():
    expression = FilterExpression.model_validate(
        {"left": "close", "operation": "greater", "right": "VWAP"}
    )
    assert expression == col("close").gt("VWAP")


@pytest.mark.parametrize("name", ["", None, 5])
def test_invalid_column_name(name):
    with pytest.raises(ExpressionError):
        Column(name)


def test_column_is_hashable_and_reprs():
    assert hash(col("close")) == hash(col("close"))
    assert hash(col("close")) != hash(col("open"))
    assert repr(col("close")) == "Column('close')"
