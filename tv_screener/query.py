"""
Fluent query builder for the scanner API.

A Query accumulates one request document (markets, symbol scope, columns,
filters, sort, range) through chainable calls, posts it, and rehydrates the
positional response rows into named records.

Design Principles:
- Every chained call returns the same Query and leaves a postable document
- Replacing calls (select, where, where2, order_by) keep only the last effect
- limit() and offset() touch one end of the range each, in any order
- The endpoint is derived from the market scope, never set directly
- copy() is deep; diverge from a shared base query by copying first

Examples:
    from tv_screener import Query, And, Or, col

    result = await (
        Query()
        .select("name", "close", "volume", "relative_volume_10d_calc")
        .where(
            col("market_cap_basic").between(1_000_000, 50_000_000),
            col("relative_volume_10d_calc") > 1.2,
            col("MACD.macd") >= col("MACD.signal"),
        )
        .order_by("volume", ascending=False)
        .offset(5)
        .limit(15)
        .get_scanner_data()
    )

    # AND/OR trees, nested freely
    Query().where2(
        Or(
            And(col("type") == "stock", col("typespecs").has(["common", "preferred"])),
            And(col("type") == "fund", col("typespecs").has_none_of(["etf"])),
            col("type") == "dr",
        )
    )
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from tv_screener.column import Column
from tv_screener.config import settings
from tv_screener.errors import ExpressionError, ScreenerError, ScannerRequestError
from tv_screener.logging import (
    RequestContext,
    TimedOperation,
    get_logger,
    log_error,
    log_scan_complete,
    log_scan_start,
)
from tv_screener.models.filters import (
    ExpressionNode,
    FilterExpression,
    FilterNode,
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
from tv_screener.transport import Cookies, ScannerTransport, get_transport

logger = get_logger(__name__)

DEFAULT_RANGE: Tuple[int, int] = tuple(settings.SCANNER_DEFAULT_RANGE)

INDEX_PRESET = "index_components_market_pages"

Combinable = Union[FilterExpression, OperationNode, LogicalExpression, ExpressionNode]


def _chain(expressions: Tuple[Combinable, ...], operator: LogicalOperator) -> OperationNode:
    if not expressions:
        raise ExpressionError(
            f"{operator.value.upper()}() needs at least one expression"
        )

    operands: List[FilterNode] = []
    for expression in expressions:
        if isinstance(expression, FilterExpression):
            operands.append(ExpressionNode(expression=expression))
        elif isinstance(expression, (ExpressionNode, OperationNode)):
            operands.append(expression)
        elif isinstance(expression, LogicalExpression):
            operands.append(OperationNode(operation=expression))
        else:
            raise ExpressionError(
                f"Cannot combine {type(expression).__name__}; "
                f"expected a filter expression or And()/Or() result"
            )

    return OperationNode(
        operation=LogicalExpression(operator=operator, operands=operands)
    )


def And(*expressions: Combinable) -> OperationNode:
    """
    Combine expressions with AND.

    Leaves are wrapped as ``{"expression": ...}``; composites are kept as
    ``{"operation": ...}``, so results of And()/Or() nest freely.

    Raises:
        ExpressionError: If no expressions are given
    """
    return _chain(expressions, LogicalOperator.AND)


def Or(*expressions: Combinable) -> OperationNode:
    """
    Combine expressions with OR.

    Raises:
        ExpressionError: If no expressions are given
    """
    return _chain(expressions, LogicalOperator.OR)


def _remap_rows(rows: List[ScreenerRow], columns: List[str]) -> List[Dict[str, Any]]:
    """Zip each row's positional values onto the requested column names."""
    records = []
    misaligned = 0
    for row in rows:
        if len(row.d) != len(columns):
            misaligned += 1
        record: Dict[str, Any] = {"ticker": row.s}
        for index, name in enumerate(columns):
            record[name] = row.d[index] if index < len(row.d) else None
        records.append(record)

    if misaligned:
        logger.warning(
            f"{misaligned} of {len(rows)} rows did not match the "
            f"{len(columns)} requested columns",
            extra={"rows": len(rows), "columns": columns},
        )
    return records


class Query:
    """
    SQL-like builder over the scanner API.

    A fresh Query selects ``name, close, volume, market_cap_basic`` from the
    default market, sorted by traded value descending, rows 0-50 (all
    configurable in settings).

    Not safe for concurrent mutation; copy() before diverging.
    """

    def __init__(self, transport: Optional[ScannerTransport] = None):
        self._document = QueryDocument(
            markets=[settings.SCANNER_DEFAULT_MARKET],
            symbols=SymbolScope(query={"types": []}, tickers=[]),
            options={"lang": settings.SCANNER_LANG},
            columns=list(settings.SCANNER_DEFAULT_COLUMNS),
            sort=SortBy(sort_by=settings.SCANNER_DEFAULT_SORT, sort_order=SortOrder.DESC),
            range=list(DEFAULT_RANGE),
        )
        self._url = settings.scanner_url(settings.SCANNER_DEFAULT_MARKET)
        self._transport = transport

    @property
    def url(self) -> str:
        """Endpoint derived from the current market scope."""
        return self._url

    @property
    def transport(self) -> ScannerTransport:
        return self._transport or get_transport()

    # Projection and filtering

    def select(self, *columns: Union[Column, str]) -> "Query":
        """Replace the selected columns; response values follow this order."""
        self._document.columns = [Column.extract_name(column) for column in columns]
        return self

    def where(self, *expressions: FilterExpression) -> "Query":
        """
        Replace the flat filter list; the scanner AND-s the expressions.

        Raises:
            ExpressionError: If an argument is not a filter expression
        """
        for expression in expressions:
            if not isinstance(expression, FilterExpression):
                raise ExpressionError(
                    f"where() takes filter expressions, got {type(expression).__name__}; "
                    f"use where2() for And()/Or() trees"
                )
        self._document.filter = list(expressions)
        return self

    def where2(self, operation: Union[OperationNode, LogicalExpression]) -> "Query":
        """
        Replace the AND/OR filter tree.

        The argument must come from And() or Or(). The document stores the
        connector and operands directly, without the outer wrapper.

        Raises:
            ExpressionError: If the argument is not an And()/Or() result
        """
        if isinstance(operation, OperationNode):
            tree = operation.operation
        elif isinstance(operation, LogicalExpression):
            tree = operation
        else:
            raise ExpressionError(
                f"where2() takes an And()/Or() result, got {type(operation).__name__}"
            )
        self._document.filter2 = tree
        return self

    def order_by(
        self,
        column: Union[Column, str],
        ascending: bool = True,
        nulls_first: bool = False,
    ) -> "Query":
        """
        Replace the sort specification.

        Examples:
            Query().order_by("volume", ascending=False)
            Query().order_by("dividends_yield_current", False, nulls_first=False)
        """
        self._document.sort = SortBy(
            sort_by=Column.extract_name(column),
            sort_order=SortOrder.ASC if ascending else SortOrder.DESC,
            nulls_first=nulls_first,
        )
        return self

    # Pagination

    def _ensure_range(self) -> List[int]:
        if self._document.range is None:
            self._document.range = list(DEFAULT_RANGE)
        return self._document.range

    def limit(self, limit: int) -> "Query":
        """Set the end of the range window; the offset is untouched."""
        self._ensure_range()[1] = limit
        return self

    def offset(self, offset: int) -> "Query":
        """Set the start of the range window; the limit is untouched."""
        self._ensure_range()[0] = offset
        return self

    # Scope

    def set_markets(self, *markets: str) -> "Query":
        """
        Scope the query to markets.

        One market targets that market's endpoint; none or several target
        the global endpoint. An empty call means unscoped.

        Examples:
            Query().set_markets("italy")
            Query().set_markets("america", "israel", "hongkong", "switzerland")
            Query().set_markets("cfd", "crypto", "forex", "futures")
        """
        if len(markets) == 1:
            self._url = settings.scanner_url(markets[0])
        else:
            self._url = settings.global_url
        self._document.markets = list(markets)
        return self

    def _symbols(self) -> SymbolScope:
        if self._document.symbols is None:
            self._document.symbols = SymbolScope()
        return self._document.symbols

    def set_tickers(self, *tickers: str) -> "Query":
        """
        Scan only the given ``EXCHANGE:SYMBOL`` tickers.

        Resets the market scope to global.

        Examples:
            Query().set_tickers("NASDAQ:TSLA")
            Query().set_tickers("NYSE:GME", "AMEX:SPY", "MIL:RACE", "HOSE:VIX")
        """
        self._symbols().tickers = list(tickers)
        self.set_markets()
        return self

    def set_index(self, *indexes: str) -> "Query":
        """
        Scan only constituents of the given index (or indexes).

        Resets the market scope to global.

        Examples:
            Query().set_index("SYML:SP;SPX")
            Query().set_index("SYML:NSE;NIFTY", "SYML:TVC;UKX")
        """
        self._document.preset = INDEX_PRESET
        self._symbols().symbolset = list(indexes)
        self.set_markets()
        return self

    def set_property(self, key: str, value: Any) -> "Query":
        """
        Set a top-level document key, e.g. ``ignore_unknown_fields`` or
        ``price_conversion``. Modelled keys are validated.

        ``markets`` is routed through set_markets() so the endpoint follows
        the new scope.

        Raises:
            ScreenerError: If the value does not fit a modelled key
        """
        if key == "markets":
            if isinstance(value, str):
                value = [value]
            return self.set_markets(*(value or []))

        payload = self._document.to_dict()
        payload[key] = value
        try:
            self._document = QueryDocument.model_validate(payload)
        except ValidationError as exc:
            raise ScreenerError(
                f"Invalid value for {key!r}: {exc}", details={"key": key}
            ) from exc
        return self

    # Execution

    async def _execute(
        self,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        cookies: Optional[Cookies] = None,
    ) -> Tuple[Dict[str, Any], List[str]]:
        self._ensure_range()
        # Snapshot before the first await so later mutation cannot skew the response
        payload = self._document.to_dict()
        columns = list(payload["columns"])
        url = self._url

        if payload.get("filter") and payload.get("filter2"):
            logger.debug("Sending both flat and tree filters; scanner semantics apply")

        markets = payload.get("markets") or []
        with RequestContext(market=",".join(markets) or None, url=url):
            log_scan_start(logger, url, payload)
            try:
                with TimedOperation("scan", logger) as timer:
                    raw = await self.transport.post(
                        url, payload, headers=headers, timeout=timeout, cookies=cookies
                    )
            except ScannerRequestError as exc:
                log_error(logger, exc, {"operation": "scan"})
                raise

            rows = raw.get("data") if isinstance(raw, dict) else None
            log_scan_complete(
                logger,
                url,
                rows=len(rows or []),
                total_count=raw.get("totalCount", 0) if isinstance(raw, dict) else 0,
                exec_ms=timer.exec_ms or 0.0,
            )
        return raw, columns

    async def get_scanner_data_raw(
        self,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        cookies: Optional[Cookies] = None,
    ) -> Dict[str, Any]:
        """
        POST the document and return the response envelope untouched.

        Returns:
            ``{"totalCount": 17559, "data": [{"s": "NASDAQ:NVDA", "d": [...]}, ...]}``

        Raises:
            ScannerRequestError: On transport failure or non-2xx status
        """
        raw, _ = await self._execute(headers=headers, timeout=timeout, cookies=cookies)
        return raw

    async def get_scanner_data(
        self,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        cookies: Optional[Cookies] = None,
    ) -> ScreenerResult:
        """
        POST the document and return named records.

        Each record is ``{"ticker": <symbol>, <column>: <value>, ...}`` in
        the selected column order. A response without rows yields an empty
        result.

        Raises:
            ScannerRequestError: On transport failure or non-2xx status
            ScreenerError: If the response is not a scanner envelope
        """
        raw, columns = await self._execute(headers=headers, timeout=timeout, cookies=cookies)
        try:
            response = ScreenerResponse.model_validate(raw)
        except ValidationError as exc:
            raise ScreenerError(f"Unexpected scanner response: {exc}") from exc

        return ScreenerResult(
            total_count=response.total_count,
            rows=_remap_rows(response.data or [], columns),
            columns=columns,
        )

    # Introspection

    def copy(self) -> "Query":
        """Independent deep copy sharing only the transport."""
        clone = Query(transport=self._transport)
        clone._document = self._document.model_copy(deep=True)
        clone._url = self._url
        return clone

    def get_query(self) -> Dict[str, Any]:
        """The request document as it would be sent (a detached copy)."""
        return self._document.to_dict()

    def equals(self, other: "Query") -> bool:
        """Same serialized document and endpoint."""
        return self.get_query() == other.get_query() and self._url == other._url

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Query(\n  {json.dumps(self.get_query(), indent=2)}\n  url={self._url}\n)"


__all__ = ["Query", "And", "Or", "DEFAULT_RANGE", "INDEX_PRESET"]
