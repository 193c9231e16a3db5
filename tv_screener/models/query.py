"""
Request document and response models for the scanner API.

Provides:
- SortBy / SymbolScope: the nested pieces of a request document
- QueryDocument: the full request body a Query accumulates
- ScreenerRow / ScreenerResponse: the raw response envelope
- ScreenerResult: rows rehydrated into named records

Design Principles:
- Serialization is explicit (``to_dict``) so the wire shape never depends
  on pydantic dump options
- Unknown top-level keys are kept (``extra="allow"``) so callers can set
  scanner properties this package does not model
- Documents are plain values; ``model_copy(deep=True)`` yields a fully
  independent copy
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from tv_screener.models.filters import FilterExpression, LogicalExpression


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SortBy(BaseModel):
    """
    Sort specification.

    ``nulls_first`` is only sent when it was set explicitly.

    Examples:
        SortBy(sort_by="close", sort_order="asc", nulls_first=False)
        SortBy.model_validate({"sortBy": "Value.Traded", "sortOrder": "desc"})
    """

    model_config = ConfigDict(populate_by_name=True)

    sort_by: str = Field(..., alias="sortBy", description="Field to sort by")
    sort_order: SortOrder = Field(
        SortOrder.DESC, alias="sortOrder", description="Sort direction"
    )
    nulls_first: Optional[bool] = Field(
        None, alias="nullsFirst", description="Place null values first"
    )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order.value,
        }
        if self.nulls_first is not None:
            payload["nullsFirst"] = self.nulls_first
        return payload


class SymbolScope(BaseModel):
    """
    Symbol restriction of a request.

    ``tickers`` lists explicit ``EXCHANGE:SYMBOL`` names, ``symbolset`` lists
    index identifiers whose constituents are scanned.
    """

    model_config = ConfigDict(extra="allow")

    query: Optional[Dict[str, Any]] = Field(
        None, description="Symbol type query, e.g. {'types': []}"
    )
    tickers: Optional[List[str]] = Field(None, description="Explicit tickers")
    symbolset: Optional[List[str]] = Field(None, description="Index identifiers")
    watchlist: Optional[Dict[str, Any]] = Field(None, description="Watchlist reference")
    groups: Optional[List[Dict[str, Any]]] = Field(None, description="Symbol groups")

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            key: copy.deepcopy(value)
            for key, value in (
                ("query", self.query),
                ("tickers", self.tickers),
                ("symbolset", self.symbolset),
                ("watchlist", self.watchlist),
                ("groups", self.groups),
            )
            if value is not None
        }
        payload.update(copy.deepcopy(self.model_extra or {}))
        return payload


class QueryDocument(BaseModel):
    """
    The request document a Query mutates.

    ``filter`` holds leaves implicitly AND-ed by the scanner; ``filter2``
    holds one AND/OR tree. Both may be set at once; the scanner decides what
    that means.

    Examples:
        doc = QueryDocument(columns=["close"], markets=["crypto"], range=[0, 10])
        doc.to_dict()
        # {"markets": ["crypto"], "columns": ["close"], "range": [0, 10]}
    """

    model_config = ConfigDict(extra="allow")

    markets: Optional[List[str]] = Field(None, description="Market scope")
    symbols: Optional[SymbolScope] = Field(None, description="Symbol scope")
    options: Optional[Dict[str, Any]] = Field(None, description="Request options")
    columns: List[str] = Field(
        default_factory=list, description="Projected fields, in response order"
    )
    filter: Optional[List[FilterExpression]] = Field(
        None, description="Flat filters, implicitly AND-ed"
    )
    filter2: Optional[LogicalExpression] = Field(
        None, description="AND/OR filter tree"
    )
    sort: Optional[SortBy] = Field(None, description="Sort specification")
    range: Optional[List[int]] = Field(
        None, description="[offset, limit] window", min_length=2, max_length=2
    )
    preset: Optional[str] = Field(None, description="Scanner preset name")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape; the result shares no state with self."""
        payload: Dict[str, Any] = {}
        if self.markets is not None:
            payload["markets"] = list(self.markets)
        if self.symbols is not None:
            payload["symbols"] = self.symbols.to_dict()
        if self.options is not None:
            payload["options"] = copy.deepcopy(self.options)
        payload["columns"] = list(self.columns)
        if self.filter is not None:
            payload["filter"] = [expression.to_dict() for expression in self.filter]
        if self.filter2 is not None:
            payload["filter2"] = self.filter2.to_dict()
        if self.sort is not None:
            payload["sort"] = self.sort.to_dict()
        if self.range is not None:
            payload["range"] = list(self.range)
        if self.preset is not None:
            payload["preset"] = self.preset
        payload.update(copy.deepcopy(self.model_extra or {}))
        return payload


# Response models


class ScreenerRow(BaseModel):
    """One matched entity: ``s`` is the symbol, ``d`` the positional values."""

    model_config = ConfigDict(extra="allow")

    s: str = Field(..., description="Fully qualified symbol, e.g. NASDAQ:AAPL")
    d: List[Any] = Field(default_factory=list, description="Values in column order")


class ScreenerResponse(BaseModel):
    """Raw response envelope; ``data`` may be absent for zero matches."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_count: int = Field(0, alias="totalCount", ge=0)
    data: Optional[List[ScreenerRow]] = None


class ScreenerResult(BaseModel):
    """
    Scanner rows rehydrated into named records.

    Each record holds ``ticker`` followed by the requested columns in
    request order.

    Examples:
        result = await Query().select("close").get_scanner_data()
        print(result.total_count)
        for row in result.rows:
            print(row["ticker"], row["close"])

        df = result.to_dataframe()
    """

    total_count: int = Field(..., ge=0, description="Matches on the server")
    rows: List[Dict[str, Any]] = Field(
        default_factory=list, description="Records in server order"
    )
    columns: List[str] = Field(
        default_factory=list, description="Columns the request selected"
    )

    def __len__(self) -> int:
        return len(self.rows)

    def to_dataframe(self) -> pd.DataFrame:
        """Rows as a DataFrame with ``ticker`` plus the requested columns."""
        names = ["ticker"] + [name for name in self.columns if name != "ticker"]
        return pd.DataFrame(self.rows, columns=names)


__all__ = [
    "SortOrder",
    "SortBy",
    "SymbolScope",
    "QueryDocument",
    "ScreenerRow",
    "ScreenerResponse",
    "ScreenerResult",
]
