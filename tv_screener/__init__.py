"""
tv_screener: fluent query builder and async client for the TradingView scanner API.

Usage:
    from tv_screener import Query, And, Or, col

    result = await (
        Query()
        .select("name", "close", "volume")
        .where(col("close") > 10)
        .limit(5)
        .get_scanner_data()
    )
"""

from tv_screener.column import Column, col
from tv_screener.concurrency import scan_many
from tv_screener.errors import (
    ExpressionError,
    ScannerRequestError,
    ScannerTimeoutError,
    ScreenerError,
)
from tv_screener.markets import MARKETS, MARKETS_LIST
from tv_screener.models import (
    FilterExpression,
    FilterOperator,
    LogicalExpression,
    LogicalOperator,
    OperationNode,
    ScreenerResult,
)
from tv_screener.query import DEFAULT_RANGE, And, Or, Query
from tv_screener.transport import ScannerTransport
from tv_screener.util import format_technical_rating

__version__ = "0.1.0"

__all__ = [
    "Query",
    "And",
    "Or",
    "DEFAULT_RANGE",
    "Column",
    "col",
    "FilterExpression",
    "FilterOperator",
    "LogicalExpression",
    "LogicalOperator",
    "OperationNode",
    "ScreenerResult",
    "ScannerTransport",
    "scan_many",
    "ScreenerError",
    "ExpressionError",
    "ScannerRequestError",
    "ScannerTimeoutError",
    "MARKETS",
    "MARKETS_LIST",
    "format_technical_rating",
]
