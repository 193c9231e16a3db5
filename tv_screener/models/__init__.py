"""
Data models for tv_screener.

Filter expression trees plus the request document and response envelope
exchanged with the scanner API.
"""

from tv_screener.models.filters import (
    ExpressionNode,
    FilterExpression,
    FilterNode,
    FilterOperator,
    LogicalExpression,
    LogicalOperator,
    OperationNode,
)
from tv_screener.models.query import (
    QueryDocument,
    ScreenerResponse,
    ScreenerResult,
    ScreenerRow,
    SortBy,
    SortOrder,
    SymbolScope,
)

__all__ = [
    "FilterOperator",
    "LogicalOperator",
    "FilterExpression",
    "ExpressionNode",
    "LogicalExpression",
    "OperationNode",
    "FilterNode",
    "SortOrder",
    "SortBy",
    "SymbolScope",
    "QueryDocument",
    "ScreenerRow",
    "ScreenerResponse",
    "ScreenerResult",
]
