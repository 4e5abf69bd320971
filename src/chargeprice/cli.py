"""Command-line interface for fetching electricity prices."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .errors import ConfigurationError, PriceProviderError
from .logging_config import configure_logging
from .models import PricePoint
from .providers.base import DynamicPriceProvider
from .selection import create_client, create_monta, create_provider, create_tibber

console = Console()


@click.group()
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Path to YAML config file"
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Fetch electricity prices for charging-cost calculation."""
    ctx.ensure_object(dict)
    configure_logging(verbose)
    ctx.obj["config_path"] = Path(config_path) if config_path else None


def window_options(f):
    f = click.option("--hours", default=24, help="Window length when --from is omitted (default: 24)")(f)
    f = click.option("--to", "to_time", help="End of window, ISO 8601 (default: start of current hour)")(f)
    f = click.option("--from", "from_time", help="Start of window, ISO 8601")(f)
    return f


def resolve_window(from_time: str | None, to_time: str | None, hours: int) -> tuple[datetime, datetime]:
    """Turn the CLI options into an aware [start, end) window."""
    if to_time:
        end = _parse_time(to_time)
    else:
        end = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    start = _parse_time(from_time) if from_time else end - timedelta(hours=hours)
    return start, end


def _parse_time(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Not an ISO 8601 timestamp: {value}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_settings(ctx) -> Settings:
    try:
        return load_settings(ctx.obj["config_path"])
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        ctx.exit(1)


def _run(ctx, coro):
    """Run a fetch coroutine, reporting provider errors."""
    try:
        return asyncio.run(coro)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
    except PriceProviderError as e:
        # Response bodies may contain square brackets
        console.print(f"[red]Failed to fetch prices: {escape(str(e))}[/red]")
    ctx.exit(1)


def print_prices(prices: list[PricePoint], as_json: bool = False) -> None:
    if as_json:
        click.echo(json.dumps(
            [
                {
                    "valid_from": p.valid_from.isoformat(),
                    "valid_to": p.valid_to.isoformat(),
                    "value": str(p.value),
                }
                for p in prices
            ],
            indent=2,
        ))
        return

    table = Table(title="Hourly Prices")
    table.add_column("Valid from", style="cyan")
    table.add_column("Valid to")
    table.add_column("Price", justify="right")
    for p in prices:
        table.add_row(
            p.valid_from.strftime("%Y-%m-%d %H:%M %z"),
            p.valid_to.strftime("%H:%M"),
            str(p.value),
        )
    console.print(table)

    if prices:
        average = sum((p.value for p in prices), Decimal(0)) / len(prices)
        console.print(f"[dim]{len(prices)} hours, average {average:.4f}[/dim]")


def print_total(total: Decimal, start: datetime, end: datetime, as_json: bool = False) -> None:
    if as_json:
        click.echo(json.dumps({"from": start.isoformat(), "to": end.isoformat(), "total": str(total)}))
        return
    console.print(f"[green]Total cost {start.isoformat()} → {end.isoformat()}: {total}[/green]")


@cli.command()
@window_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def prices(ctx, from_time, to_time, hours, as_json):
    """Show hourly Tibber prices for a window.

    Uses TIBBER_ACCESS_TOKEN and optionally TIBBER_HOME_ID.
    """
    settings = _load_settings(ctx)
    start, end = resolve_window(from_time, to_time, hours)

    async def run():
        async with create_client(settings) as client:
            return await create_tibber(settings, client).get_price_data(start, end)

    print_prices(_run(ctx, run()), as_json)


@cli.command()
@window_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def total(ctx, from_time, to_time, hours, as_json):
    """Show the total Monta charging cost for a window.

    Requires MONTA_CLIENT_ID and MONTA_CLIENT_SECRET.
    """
    settings = _load_settings(ctx)
    start, end = resolve_window(from_time, to_time, hours)

    async def run():
        async with create_client(settings) as client:
            return await create_monta(settings, client).get_total_price(start, end)

    print_total(_run(ctx, run()), start, end, as_json)


@cli.command()
@window_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def fetch(ctx, from_time, to_time, hours, as_json):
    """Fetch from whichever provider is configured (PRICE_PROVIDER)."""
    settings = _load_settings(ctx)
    start, end = resolve_window(from_time, to_time, hours)

    async def run():
        async with create_client(settings) as client:
            provider = create_provider(settings, client)
            if isinstance(provider, DynamicPriceProvider):
                return await provider.get_price_data(start, end)
            return await provider.get_total_price(start, end)

    result = _run(ctx, run())
    if isinstance(result, list):
        print_prices(result, as_json)
    else:
        print_total(result, start, end, as_json)


if __name__ == "__main__":
    cli()
