"""
Filter expression models for the scanner request document.

Two shapes make up a filter tree:
- FilterExpression: a single comparison (``left operation right``)
- LogicalExpression: an AND/OR over an ordered, non-empty operand list

Inside a LogicalExpression every operand is wrapped so the wire format can
tell leaves from composites by shape alone:

    {"expression": {"left": "close", "operation": "greater", "right": 5}}
    {"operation": {"operator": "or", "operands": [...]}}

ExpressionNode and OperationNode are those two wrappers; together they form
the FilterNode union.

Examples:
    leaf = FilterExpression(field="close", operator=FilterOperator.GREATER, operand=5)
    tree = LogicalExpression(
        operator=LogicalOperator.AND,
        operands=[ExpressionNode(expression=leaf)],
    )
    tree.to_dict()
    # {"operator": "and", "operands": [{"expression": {...}}]}
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterOperator(str, Enum):
    """Comparison operators understood by the scanner."""

    GREATER = "greater"
    EGREATER = "egreater"
    LESS = "less"
    ELESS = "eless"
    EQUAL = "equal"
    NEQUAL = "nequal"
    IN_RANGE = "in_range"  # BETWEEN or IN (...)
    NOT_IN_RANGE = "not_in_range"
    EMPTY = "empty"
    NEMPTY = "nempty"
    CROSSES = "crosses"
    CROSSES_ABOVE = "crosses_above"
    CROSSES_BELOW = "crosses_below"
    MATCH = "match"  # LOWER(col) LIKE '%pattern%'
    NMATCH = "nmatch"
    SMATCH = "smatch"
    HAS = "has"  # set field contains one of the values
    HAS_NONE_OF = "has_none_of"
    ABOVE_PCT = "above%"
    BELOW_PCT = "below%"
    IN_RANGE_PCT = "in_range%"
    NOT_IN_RANGE_PCT = "not_in_range%"
    IN_DAY_RANGE = "in_day_range"
    IN_WEEK_RANGE = "in_week_range"
    IN_MONTH_RANGE = "in_month_range"


class LogicalOperator(str, Enum):
    """Connectors for composite expressions."""

    AND = "and"
    OR = "or"


class FilterExpression(BaseModel):
    """
    A single comparison: ``field operator operand``.

    ``operand`` is a scalar, a bound pair, a list of values, a field name
    (for field-to-field comparisons) or None for the null checks. The wire
    names are ``left``, ``operation`` and ``right``; both spellings are
    accepted on input.

    Examples:
        FilterExpression(field="close", operator="egreater", operand=350)
        FilterExpression(field="close", operator="greater", operand="VWAP")
        FilterExpression.model_validate(
            {"left": "type", "operation": "in_range", "right": ["stock", "fund"]}
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str = Field(..., alias="left", description="Field on the left-hand side")
    operator: FilterOperator = Field(
        ..., alias="operation", description="Comparison operator"
    )
    operand: Any = Field(
        None, alias="right", description="Right-hand value, bounds, values or field name"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left": self.field,
            "operation": self.operator.value,
            "right": copy.deepcopy(self.operand),
        }


class ExpressionNode(BaseModel):
    """Operand wrapper marking a leaf inside a composite."""

    model_config = ConfigDict(frozen=True)

    expression: FilterExpression

    def to_dict(self) -> Dict[str, Any]:
        return {"expression": self.expression.to_dict()}


class LogicalExpression(BaseModel):
    """
    AND/OR composition over leaves and nested composites.

    The operand list must not be empty; the scanner's behaviour for an
    empty list is undefined.
    """

    model_config = ConfigDict(frozen=True)

    operator: LogicalOperator
    operands: List[Union[ExpressionNode, "OperationNode"]] = Field(
        ..., min_length=1, description="Ordered operands, leaves and composites mixed"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operator": self.operator.value,
            "operands": [operand.to_dict() for operand in self.operands],
        }

    def leaves(self) -> List[FilterExpression]:
        """All leaf expressions in the tree, depth-first, left to right."""
        found: List[FilterExpression] = []
        for operand in self.operands:
            if isinstance(operand, ExpressionNode):
                found.append(operand.expression)
            else:
                found.extend(operand.operation.leaves())
        return found

    def depth(self) -> int:
        """Nesting depth; a composite holding only leaves has depth 1."""
        nested = [
            operand.operation.depth()
            for operand in self.operands
            if isinstance(operand, OperationNode)
        ]
        return 1 + max(nested, default=0)


class OperationNode(BaseModel):
    """
    Operand wrapper marking a composite.

    This is also what ``And()`` and ``Or()`` return, so a combination can be
    passed straight back into another combinator.
    """

    model_config = ConfigDict(frozen=True)

    operation: LogicalExpression

    def to_dict(self) -> Dict[str, Any]:
        return {"operation": self.operation.to_dict()}


LogicalExpression.model_rebuild()
OperationNode.model_rebuild()

FilterNode = Union[ExpressionNode, OperationNode]


__all__ = [
    "FilterOperator",
    "LogicalOperator",
    "FilterExpression",
    "ExpressionNode",
    "LogicalExpression",
    "OperationNode",
    "FilterNode",
]
