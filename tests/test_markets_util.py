"""Tests for market reference data and value helpers."""

import pytest

from tv_screener.markets import (
    ASSET_CLASSES,
    COUNTRY_MARKETS,
    MARKETS_LIST,
    MarketType,
    get_market_code,
    get_market_info,
    get_market_name,
    get_markets_by_type,
    is_valid_market,
)
from tv_screener.util import TechnicalRating, format_technical_rating


def test_market_codes_are_unique():
    assert len(MARKETS_LIST) == len(set(MARKETS_LIST))


def test_asset_classes_and_countries_partition_markets():
    assert set(ASSET_CLASSES) | set(COUNTRY_MARKETS) == set(MARKETS_LIST)
    assert not set(ASSET_CLASSES) & set(COUNTRY_MARKETS)
    assert {"crypto", "forex", "futures", "bonds"} <= set(ASSET_CLASSES)


def test_lookup_helpers():
    assert is_valid_market("israel")
    assert not is_valid_market("atlantis")
    assert get_market_name("america") == "United States"
    assert get_market_code("Hong Kong") == "hongkong"
    assert get_market_code("Atlantis") is None
    assert get_market_info("atlantis") is None


def test_market_info_descriptions():
    assert get_market_info("america").description.startswith("US stock markets")
    assert get_market_info("japan").description == "Japan stock markets"
    assert get_market_info("crypto").type == MarketType.ASSET_CLASS


def test_markets_by_type_accepts_strings():
    assert get_markets_by_type("asset_class") == ASSET_CLASSES
    assert get_markets_by_type(MarketType.COUNTRY) == COUNTRY_MARKETS


@pytest.mark.parametrize(
    "rating, expected",
    [
        (1.0, TechnicalRating.STRONG_BUY),
        (0.5, TechnicalRating.STRONG_BUY),
        (0.3, TechnicalRating.BUY),
        (0.1, TechnicalRating.BUY),
        (0.0, TechnicalRating.NEUTRAL),
        (-0.1, TechnicalRating.NEUTRAL),
        (-0.3, TechnicalRating.SELL),
        (-0.5, TechnicalRating.SELL),
        (-0.9, TechnicalRating.STRONG_SELL),
    ],
)
def test_format_technical_rating(rating, expected):
    assert format_technical_rating(rating) == expected


def test_technical_rating_is_a_string():
    assert format_technical_rating(0.7) == "Strong Buy"
