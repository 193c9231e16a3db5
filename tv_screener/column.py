"""
Column handles for building filter expressions.

A Column names a scanner field. It is used to select fields in a Query and
to build FilterExpression leaves for ``Query.where()`` and the ``And()`` /
``Or()`` combinators.

Any operand that is itself a Column is replaced by its field name when the
expression is built, which is how field-to-field comparisons are written.

Examples:
    col("close") > 2.5
    col("High.All") <= "high"
    col("high").gt(col("VWAP"))              # close above VWAP
    col("close").between(2.5, 15)
    col("close").between("EMA5", "EMA20")
    col("type").isin(["stock", "fund"])
    col("typespecs").has_none_of(["reit", "etn", "etf"])
    col("description").like("apple")         # LOWER(description) LIKE '%apple%'
    col("premarket_change").not_empty()
    col("close").above_pct("VWAP", 1.03)     # close > VWAP * 1.03
    col("close").between_pct("EMA200", 1.2, 1.5)
    col("earnings_release_next_trading_date_fq").in_day_range(0, 0)
"""

from collections import abc
from typing import Any, Iterable, List, Optional, Union

from tv_screener.errors import ExpressionError
from tv_screener.models.filters import FilterExpression, FilterOperator


class Column:
    """A named scanner field. No validation against a schema is done."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        if not isinstance(name, str) or not name:
            raise ExpressionError(f"Column name must be a non-empty string, got {name!r}")
        self.name = name

    @staticmethod
    def extract_name(obj: Any) -> Any:
        """Field name for a Column, anything else unchanged."""
        if isinstance(obj, Column):
            return obj.name
        return obj

    @staticmethod
    def _as_list(values: Any) -> List[Any]:
        # A lone string is one value, not a sequence of characters
        if isinstance(values, (str, bytes, Column)) or not isinstance(values, abc.Iterable):
            return [Column.extract_name(values)]
        return [Column.extract_name(value) for value in values]

    def _leaf(self, operator: FilterOperator, operand: Any = None) -> FilterExpression:
        return FilterExpression(field=self.name, operator=operator, operand=operand)

    # Comparisons

    def gt(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.GREATER, self.extract_name(other))

    def gte(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.EGREATER, self.extract_name(other))

    def lt(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.LESS, self.extract_name(other))

    def lte(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.ELESS, self.extract_name(other))

    def eq(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.EQUAL, self.extract_name(other))

    def ne(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.NEQUAL, self.extract_name(other))

    __gt__ = gt
    __ge__ = gte
    __lt__ = lt
    __le__ = lte
    __eq__ = eq  # type: ignore[assignment]
    __ne__ = ne  # type: ignore[assignment]

    def __hash__(self) -> int:
        return hash(("Column", self.name))

    # Crossing predicates

    def crosses(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.CROSSES, self.extract_name(other))

    def crosses_above(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.CROSSES_ABOVE, self.extract_name(other))

    def crosses_below(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.CROSSES_BELOW, self.extract_name(other))

    # Ranges and sets

    def between(self, left: Any, right: Any) -> FilterExpression:
        """``left <= field <= right``; bounds may be values or fields."""
        return self._leaf(
            FilterOperator.IN_RANGE,
            [self.extract_name(left), self.extract_name(right)],
        )

    def not_between(self, left: Any, right: Any) -> FilterExpression:
        return self._leaf(
            FilterOperator.NOT_IN_RANGE,
            [self.extract_name(left), self.extract_name(right)],
        )

    def isin(self, values: Any) -> FilterExpression:
        return self._leaf(FilterOperator.IN_RANGE, self._as_list(values))

    def not_in(self, values: Any) -> FilterExpression:
        return self._leaf(FilterOperator.NOT_IN_RANGE, self._as_list(values))

    def has(self, values: Union[str, Iterable[str]]) -> FilterExpression:
        """Like ``isin()``, for fields of type set."""
        return self._leaf(FilterOperator.HAS, self._as_list(values))

    def has_none_of(self, values: Union[str, Iterable[str]]) -> FilterExpression:
        """Like ``not_in()``, for fields of type set."""
        return self._leaf(FilterOperator.HAS_NONE_OF, self._as_list(values))

    # Temporal ranges, in days/weeks/months relative to today

    def in_day_range(self, a: int, b: int) -> FilterExpression:
        return self._leaf(FilterOperator.IN_DAY_RANGE, [a, b])

    def in_week_range(self, a: int, b: int) -> FilterExpression:
        return self._leaf(FilterOperator.IN_WEEK_RANGE, [a, b])

    def in_month_range(self, a: int, b: int) -> FilterExpression:
        return self._leaf(FilterOperator.IN_MONTH_RANGE, [a, b])

    # Percentage-relative comparisons against a reference field

    def above_pct(self, column: Union["Column", str], pct: float) -> FilterExpression:
        """
        Field is above ``column * pct``.

        ``col("close").above_pct("VWAP", 1.03)`` matches a close more than
        3% above the VWAP.
        """
        return self._leaf(FilterOperator.ABOVE_PCT, [self.extract_name(column), pct])

    def below_pct(self, column: Union["Column", str], pct: float) -> FilterExpression:
        """Field is below ``column * pct``."""
        return self._leaf(FilterOperator.BELOW_PCT, [self.extract_name(column), pct])

    def between_pct(
        self, column: Union["Column", str], pct1: float, pct2: Optional[float] = None
    ) -> FilterExpression:
        """Field lies between ``column * pct1`` and ``column * pct2``."""
        return self._leaf(
            FilterOperator.IN_RANGE_PCT, self._pct_operand(column, pct1, pct2)
        )

    def not_between_pct(
        self, column: Union["Column", str], pct1: float, pct2: Optional[float] = None
    ) -> FilterExpression:
        return self._leaf(
            FilterOperator.NOT_IN_RANGE_PCT, self._pct_operand(column, pct1, pct2)
        )

    def _pct_operand(
        self, column: Union["Column", str], pct1: float, pct2: Optional[float]
    ) -> List[Any]:
        operand = [self.extract_name(column), pct1]
        if pct2 is not None:
            operand.append(pct2)
        return operand

    # Pattern matching

    def like(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.MATCH, self.extract_name(other))

    def not_like(self, other: Any) -> FilterExpression:
        return self._leaf(FilterOperator.NMATCH, self.extract_name(other))

    # Null checks

    def empty(self) -> FilterExpression:
        return self._leaf(FilterOperator.EMPTY)

    def not_empty(self) -> FilterExpression:
        """Field is not null."""
        return self._leaf(FilterOperator.NEMPTY)

    def __repr__(self) -> str:
        return f"Column({self.name!r})"


def col(name: str) -> Column:
    """Shorthand for ``Column(name)``."""
    return Column(name)


__all__ = ["Column", "col"]
