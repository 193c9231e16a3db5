"""
Market reference data for the scanner API.

Lists the market codes accepted by ``Query.set_markets()`` with display
names and a country / asset-class split.

Usage:
    from tv_screener.markets import MARKETS_LIST, get_market_info

    assert "crypto" in MARKETS_LIST
    info = get_market_info("america")
    print(info.name, info.type)   # United States MarketType.COUNTRY
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class MarketType(str, Enum):
    """Market categories."""

    COUNTRY = "country"
    ASSET_CLASS = "asset_class"


class MarketInfo(BaseModel):
    """Display metadata for one market code."""

    code: str = Field(description="Market code used in requests and endpoint URLs")
    name: str = Field(description="Display name")
    description: str = Field(description="Human-readable description")
    type: MarketType = Field(description="Country or asset class")


# (display name, market code), in display order
MARKETS: Tuple[Tuple[str, str], ...] = (
    ("United States", "america"),
    ("Canada", "canada"),
    ("Brazil", "brazil"),
    ("Mexico", "mexico"),
    ("United Kingdom", "uk"),
    ("Germany", "germany"),
    ("France", "france"),
    ("Italy", "italy"),
    ("Spain", "spain"),
    ("Netherlands", "netherlands"),
    ("Switzerland", "switzerland"),
    ("Sweden", "sweden"),
    ("Norway", "norway"),
    ("Finland", "finland"),
    ("Denmark", "denmark"),
    ("Belgium", "belgium"),
    ("Austria", "austria"),
    ("Poland", "poland"),
    ("Portugal", "portugal"),
    ("Greece", "greece"),
    ("Hungary", "hungary"),
    ("Czech Republic", "czech"),
    ("Russia", "russia"),
    ("Turkey", "turkey"),
    ("Israel", "israel"),
    ("Japan", "japan"),
    ("China", "china"),
    ("Hong Kong", "hongkong"),
    ("India", "india"),
    ("Singapore", "singapore"),
    ("South Korea", "korea"),
    ("Taiwan", "taiwan"),
    ("Australia", "australia"),
    ("New Zealand", "newzealand"),
    ("South Africa", "southafrica"),
    ("Egypt", "egypt"),
    ("Nigeria", "nigeria"),
    # Asset classes
    ("Crypto", "crypto"),
    ("Forex", "forex"),
    ("Coin", "coin"),
    ("CFD", "cfd"),
    ("Futures", "futures"),
    ("Bonds", "bonds"),
    ("Economy", "economy"),
    ("Options", "options"),
)

ASSET_CLASS_DESCRIPTIONS: Dict[str, str] = {
    "crypto": "Cryptocurrency markets",
    "forex": "Foreign exchange currency pairs",
    "coin": "Cryptocurrency coins",
    "cfd": "Contracts for Difference",
    "futures": "Futures contracts",
    "bonds": "Government and corporate bonds",
    "economy": "Economic indicators",
    "options": "Options contracts",
}

# Country adjectives where "<Name> stock markets" reads wrong
COUNTRY_DESCRIPTIONS: Dict[str, str] = {
    "america": "US stock markets (NYSE, NASDAQ, AMEX)",
    "uk": "UK stock markets",
    "czech": "Czech stock markets",
    "netherlands": "Dutch stock markets",
}

MARKETS_WITH_NAMES: Dict[str, str] = {code: name for name, code in MARKETS}

MARKETS_LIST: List[str] = [code for _, code in MARKETS]

ASSET_CLASSES: List[str] = [code for code in MARKETS_LIST if code in ASSET_CLASS_DESCRIPTIONS]

COUNTRY_MARKETS: List[str] = [
    code for code in MARKETS_LIST if code not in ASSET_CLASS_DESCRIPTIONS
]


def _build_market_info() -> Dict[str, MarketInfo]:
    info = {}
    for name, code in MARKETS:
        if code in ASSET_CLASS_DESCRIPTIONS:
            info[code] = MarketInfo(
                code=code,
                name=name,
                description=ASSET_CLASS_DESCRIPTIONS[code],
                type=MarketType.ASSET_CLASS,
            )
        else:
            info[code] = MarketInfo(
                code=code,
                name=name,
                description=COUNTRY_DESCRIPTIONS.get(code, f"{name} stock markets"),
                type=MarketType.COUNTRY,
            )
    return info


MARKET_INFO: Dict[str, MarketInfo] = _build_market_info()


def is_valid_market(market: str) -> bool:
    """Whether ``market`` is a known market code."""
    return market in MARKETS_WITH_NAMES


def get_market_info(market: str) -> Optional[MarketInfo]:
    return MARKET_INFO.get(market)


def get_market_name(market_code: str) -> Optional[str]:
    """Display name for a market code."""
    return MARKETS_WITH_NAMES.get(market_code)


def get_market_code(display_name: str) -> Optional[str]:
    """Market code for a display name."""
    for name, code in MARKETS:
        if name == display_name:
            return code
    return None


def get_markets_by_type(market_type: MarketType) -> List[str]:
    """Market codes of one type, in display order."""
    market_type = MarketType(market_type)
    return [code for code, info in MARKET_INFO.items() if info.type == market_type]


__all__ = [
    "MarketType",
    "MarketInfo",
    "MARKETS",
    "MARKETS_WITH_NAMES",
    "MARKETS_LIST",
    "ASSET_CLASSES",
    "COUNTRY_MARKETS",
    "MARKET_INFO",
    "is_valid_market",
    "get_market_info",
    "get_market_name",
    "get_market_code",
    "get_markets_by_type",
]
