"""Tests for the tv-screener command line."""

import json

import pytest
from typer.testing import CliRunner

from tv_screener import __version__
from tv_screener.cli import app, parse_filter
from tv_screener.errors import ExpressionError
from tv_screener.markets import ASSET_CLASSES

runner = CliRunner()


@pytest.mark.parametrize(
    "text, expected",
    [
        ("close > 100", {"left": "close", "operation": "greater", "right": 100}),
        ("close >= 1.5", {"left": "close", "operation": "egreater", "right": 1.5}),
        ("type == stock", {"left": "type", "operation": "equal", "right": "stock"}),
        ("close < SMA50", {"left": "close", "operation": "less", "right": "SMA50"}),
        (
            'exchange in ["NASDAQ", "NYSE"]',
            {"left": "exchange", "operation": "in_range", "right": ["NASDAQ", "NYSE"]},
        ),
        (
            "close between [10, 20]",
            {"left": "close", "operation": "in_range", "right": [10, 20]},
        ),
        (
            'close above% ["VWAP", 1.03]',
            {"left": "close", "operation": "above%", "right": ["VWAP", 1.03]},
        ),
        (
            "premarket_change not_empty",
            {"left": "premarket_change", "operation": "nempty", "right": None},
        ),
        ("name like apple", {"left": "name", "operation": "match", "right": "apple"}),
    ],
)
def test_parse_filter(text, expected):
    assert parse_filter(text).to_dict() == expected


@pytest.mark.parametrize(
    "text",
    ["close", "close >", "close ~ 5", "close between 5"],
)
def test_parse_filter_rejects_malformed_text(text):
    with pytest.raises(ExpressionError):
        parse_filter(text)


def test_markets_json_by_type():
    result = runner.invoke(app, ["markets", "--type", "asset_class", "--json"])

    assert result.exit_code == 0
    codes = [entry["code"] for entry in json.loads(result.stdout)]
    assert codes == ASSET_CLASSES


def test_markets_unknown_type_exits_with_error():
    result = runner.invoke(app, ["markets", "--type", "planet"])

    assert result.exit_code == 1


def test_config_json():
    result = runner.invoke(app, ["config", "--json"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["SCANNER_DEFAULT_MARKET"] == "america"
    assert config["SCANNER_TIMEOUT"] == 20.0


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_scan_rejects_bad_filter_before_sending():
    result = runner.invoke(app, ["scan", "-f", "close ~ 5"])

    assert result.exit_code == 1
    assert "Unknown operator" in result.stdout
