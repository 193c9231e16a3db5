"""
tv_screener Command Line Interface.

Usage:
    tv-screener scan                                   # default query
    tv-screener scan -s name -s close -s volume -m crypto --limit 10
    tv-screener scan -f "close > 100" -f "type in [\"stock\"]" --order-by volume --desc
    tv-screener scan -t NASDAQ:AAPL -t NYSE:GME --json
    tv-screener markets --type asset_class
    tv-screener config

For detailed help on any command:
    tv-screener <command> --help
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from tv_screener.column import Column
from tv_screener.errors import ExpressionError, ScreenerError
from tv_screener.logging import setup_logging
from tv_screener.models.filters import FilterExpression

app = typer.Typer(
    name="tv-screener",
    help="Query the TradingView scanner from the command line",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


# Filter operators accepted as 'column op value'
FILTER_OPERATORS: Dict[str, Callable[..., FilterExpression]] = {
    ">": Column.gt,
    ">=": Column.gte,
    "<": Column.lt,
    "<=": Column.lte,
    "==": Column.eq,
    "!=": Column.ne,
    "in": Column.isin,
    "not_in": Column.not_in,
    "has": Column.has,
    "has_none_of": Column.has_none_of,
    "like": Column.like,
    "not_like": Column.not_like,
    "crosses": Column.crosses,
    "crosses_above": Column.crosses_above,
    "crosses_below": Column.crosses_below,
    "between": Column.between,
    "not_between": Column.not_between,
    "above%": Column.above_pct,
    "below%": Column.below_pct,
    "between%": Column.between_pct,
    "not_between%": Column.not_between_pct,
}

# Operators whose JSON-array value is spread into positional arguments
SPREAD_OPERATORS = {"between", "not_between", "above%", "below%", "between%", "not_between%"}

NULL_OPERATORS: Dict[str, Callable[[Column], FilterExpression]] = {
    "empty": Column.empty,
    "not_empty": Column.not_empty,
}


def _parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_filter(text: str) -> FilterExpression:
    """
    Parse ``'column op value'`` into a filter expression.

    The value is read as JSON when possible, otherwise as a plain string.

    Examples:
        parse_filter("close >= 350")
        parse_filter('exchange in ["NASDAQ", "NYSE"]')
        parse_filter("close between [10, 20]")
        parse_filter("premarket_change not_empty")

    Raises:
        ExpressionError: If the text cannot be parsed
    """
    parts = text.split(maxsplit=2)
    if len(parts) == 2 and parts[1] in NULL_OPERATORS:
        return NULL_OPERATORS[parts[1]](Column(parts[0]))
    if len(parts) < 3:
        raise ExpressionError(f"Invalid filter {text!r}; use: COLUMN OPERATOR VALUE")

    name, op, raw_value = parts
    builder = FILTER_OPERATORS.get(op)
    if builder is None:
        raise ExpressionError(f"Unknown operator {op!r} in filter {text!r}")

    value = _parse_value(raw_value)
    if op in SPREAD_OPERATORS:
        if not isinstance(value, list):
            raise ExpressionError(f"Operator {op!r} needs a JSON array value")
        return builder(Column(name), *value)
    return builder(Column(name), value)


# ============================================================================
# SCAN COMMAND
# ============================================================================


@app.command(
    help="""
    Run a scanner query.

    Examples:
        tv-screener scan -s close -s volume -m crypto --limit 10
        tv-screener scan -f "close > 100" -f "volume >= 1000000" --order-by volume --desc
        tv-screener scan -t NASDAQ:AAPL -t NYSE:GME --json
    """
)
def scan(
    select: List[str] = typer.Option(
        [], "--select", "-s", help="Column to select (repeatable)"
    ),
    markets: List[str] = typer.Option(
        [], "--market", "-m", help="Market scope (repeatable)"
    ),
    tickers: List[str] = typer.Option(
        [], "--ticker", "-t", help="EXCHANGE:SYMBOL ticker (repeatable)"
    ),
    index: List[str] = typer.Option(
        [], "--index", "-i", help="Index identifier, e.g. SYML:SP;SPX (repeatable)"
    ),
    filters: List[str] = typer.Option(
        [], "--filter", "-f", help="Filter as 'column op value' (repeatable)"
    ),
    order_by: Optional[str] = typer.Option(None, "--order-by", help="Sort column"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Rows to return"),
    offset: Optional[int] = typer.Option(None, "--offset", help="Rows to skip"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout (s)"),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Print the raw response envelope"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level"),
):
    """Run a scanner query."""
    from tv_screener.query import Query
    from tv_screener.transport import close_transport

    setup_logging(level=log_level)

    try:
        query = Query()
        if select:
            query.select(*select)
        if markets:
            query.set_markets(*markets)
        if tickers:
            query.set_tickers(*tickers)
        if index:
            query.set_index(*index)
        if filters:
            query.where(*[parse_filter(text) for text in filters])
        if order_by:
            query.order_by(order_by, ascending=not desc)
        if limit is not None:
            query.limit(limit)
        if offset is not None:
            query.offset(offset)
    except ExpressionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    async def run():
        try:
            with console.status(f"[bold green]Scanning {query.url}..."):
                if raw:
                    return await query.get_scanner_data_raw(timeout=timeout)
                return await query.get_scanner_data(timeout=timeout)
        finally:
            await close_transport()

    try:
        result = asyncio.run(run())
    except ScreenerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if raw:
        console.print_json(data=result)
    elif json_out:
        console.print_json(data=result.model_dump())
    else:
        _display_result(result)


def _display_result(result):
    """Display a ScreenerResult as a Rich table."""
    df = result.to_dataframe()

    table = Table(show_header=True, header_style="bold")
    for name in df.columns:
        table.add_column(str(name))

    for _, row in df.iterrows():
        table.add_row(*[str(value) for value in row])

    console.print(table)
    console.print(
        f"\n[dim]Showing {len(result)} of {result.total_count} matches[/dim]"
    )


# ============================================================================
# MARKETS COMMAND
# ============================================================================


@app.command(
    help="""
    List market codes accepted by --market.

    Examples:
        tv-screener markets
        tv-screener markets --type country
        tv-screener markets --json
    """
)
def markets(
    market_type: Optional[str] = typer.Option(
        None, "--type", help="Filter by type: 'country' or 'asset_class'"
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List markets."""
    from tv_screener.markets import MARKET_INFO, MarketType

    infos = list(MARKET_INFO.values())
    if market_type:
        try:
            wanted = MarketType(market_type)
        except ValueError:
            console.print(f"[red]Unknown market type '{market_type}'[/red]")
            raise typer.Exit(1)
        infos = [info for info in infos if info.type == wanted]

    if json_out:
        console.print_json(data=[info.model_dump(mode="json") for info in infos])
        return

    table = Table(title="Scanner Markets", show_header=True, header_style="bold")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    table.add_column("Description", style="dim")
    for info in infos:
        table.add_row(info.code, info.name, info.type.value, info.description)

    console.print(table)
    console.print(f"\n[green]Total markets: {len(infos)}[/green]")


# ============================================================================
# CONFIG COMMAND
# ============================================================================


@app.command(help="Show current configuration.")
def config(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show current configuration."""
    from tv_screener.config import settings

    config_dict = settings.model_dump()

    if json_out:
        console.print_json(data=config_dict)
        return

    console.print("\n[bold]tv_screener Configuration[/bold]\n")
    for key, value in config_dict.items():
        console.print(f"  {key}: [green]{value}[/green]")
    console.print()


# ============================================================================
# VERSION COMMAND
# ============================================================================


@app.command(help="Show version information")
def version():
    """Show version information."""
    from tv_screener import __version__

    console.print(f"\n[bold]tv_screener[/bold] version [cyan]{__version__}[/cyan]\n")


if __name__ == "__main__":
    app()
