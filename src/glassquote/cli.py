"""CLI interface for glass quoting."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from .calculators import transportation
from .config import get_config
from .coordinates import Coordinates
from .geocoding import GeocodingClient
from .models import QuoteCalculateRequest, QuoteItemResponse
from .quote_service import QuoteService, format_distance

app = typer.Typer(
    name="glassquote",
    help="""
    [bold]Glass Quoting CLI[/bold]

    Price windows, doors and glass panels with an itemized breakdown.

    [cyan]Examples:[/cyan]
      glassquote quote item.json
      glassquote quote item.json --table
      glassquote distance 4.711 74.0721 6.2442 75.5812 --per-km-rate 1200

    Negative coordinates must follow a [bold]--[/bold] separator:
      glassquote distance --per-km-rate 1200 -- 4.711 -74.0721 6.2442 -75.5812
    """,
    no_args_is_help=True,
)

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_quote_request(raw: dict[str, Any]) -> QuoteCalculateRequest:
    """Accept either a full request or a bare item object."""
    if "item" in raw:
        return QuoteCalculateRequest.model_validate(raw)
    return QuoteCalculateRequest.model_validate({"item": raw})


@app.command()
def quote(
    input_file: Path = typer.Argument(
        ...,
        help="JSON file describing one item (optionally with a delivery)",
        exists=True,
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output JSON file (default: stdout)",
        resolve_path=True,
    ),
    table: bool = typer.Option(
        False,
        "--table",
        help="Print a breakdown table instead of JSON",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed processing information",
    ),
):
    """Price one item and print its breakdown."""
    _configure_logging(verbose)

    try:
        config = get_config()
        payload = load_quote_request(json.loads(input_file.read_text()))
        if verbose:
            console.print(f"Pricing: [bold blue]{input_file}[/bold blue]")
            console.print(f"  Currency: {config.currency}")

        geocoder = GeocodingClient(config)
        try:
            response = QuoteService(config, geocoder=geocoder).calculate_item(payload)
        finally:
            geocoder.close()

        if output_file:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(json.dumps(response.model_dump(mode="json"), indent=2))
            console.print(f"[dim]Saved output to {output_file}[/dim]")
        elif table:
            _print_breakdown(response)
        else:
            print(json.dumps(response.model_dump(mode="json"), indent=2))

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        if verbose:
            import traceback

            console.print(f"[dim white]{traceback.format_exc()}[/dim white]")
        raise typer.Exit(code=1)


def _print_breakdown(response: QuoteItemResponse) -> None:
    computed = response.computed
    table = Table(title=f"Quote {response.item_id or ''}".strip())
    table.add_column("Component")
    table.add_column(f"Amount ({response.currency})", justify="right")

    for label, amount in (
        ("Base price", computed.base_price),
        ("Profile", computed.profile_cost),
        (f"Glass ({computed.glass_area_m2} m²)", computed.glass_cost),
        ("Accessories", computed.accessory_cost),
        ("Adjustments", computed.adjustments_total),
        ("Services", computed.services_total),
        ("Transportation", computed.transportation_cost),
        ("Margin", computed.margin_amount),
    ):
        table.add_row(label, f"{amount:,.2f}")
    table.add_section()
    table.add_row("[bold]Unit total[/bold]", f"[bold]{computed.unit_total:,.2f}[/bold]")
    if computed.quantity > 1:
        table.add_row(
            f"[bold]Line total (×{computed.quantity})[/bold]",
            f"[bold]{computed.line_total:,.2f}[/bold]",
        )
    console.print(table)

    for warning in response.warnings:
        console.print(f"[bold yellow]⚠️  {warning}[/bold yellow]")


@app.command()
def distance(
    lat1: float = typer.Argument(..., help="Origin latitude"),
    lon1: float = typer.Argument(..., help="Origin longitude"),
    lat2: float = typer.Argument(..., help="Destination latitude"),
    lon2: float = typer.Argument(..., help="Destination longitude"),
    base_rate: float = typer.Option(0.0, "--base-rate", help="Flat delivery charge"),
    per_km_rate: float = typer.Option(0.0, "--per-km-rate", help="Charge per kilometer"),
):
    """Great-circle distance and delivery cost between two points."""
    try:
        cost = transportation.calculate(
            Coordinates(latitude=lat1, longitude=lon1),
            Coordinates(latitude=lat2, longitude=lon2),
            base_rate,
            per_km_rate,
        )
    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        raise typer.Exit(code=1)

    console.print(f"Distance: [bold]{format_distance(cost.distance_m)}[/bold]")
    console.print(f"Transportation cost: [bold]{cost.total}[/bold]")
    if cost.requires_review:
        console.print("[bold yellow]⚠️  Distance requires manual review[/bold yellow]")


@app.command()
def version():
    """Show version information."""
    console.print("glassquote version 0.1.0")


if __name__ == "__main__":
    app()
