# src/cli/runner.py

"""Headless CLI commands sharing the dashboard's services."""

import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.models.price_point import PricePoint
from src.models.retailer import PRODUCT, Retailer
from src.services.price_oracle import GeminiPriceOracle
from src.services.refresh_orchestrator import PriceOracle, RefreshOrchestrator
from src.storage.file_manager import FileManager
from src.storage.history_store import HistoryStore
from src.ui.views import format_price, rank_retailers

logger = logging.getLogger("padel_tracker.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _ranking_to_dicts(
    latest: PricePoint,
    retailers: Sequence[Retailer],
) -> dict[str, object]:
    """Serialise the ranking view for JSON output."""
    return {
        "date": latest.date.isoformat(),
        "product": PRODUCT.name,
        "ranking": [
            {
                "retailerId": row.retailer.id,
                "name": row.retailer.name,
                "price": row.price,
                "bestDeal": row.is_best,
                "url": row.retailer.url,
            }
            for row in rank_retailers(latest, retailers)
        ],
    }


def _print_table(
    latest: PricePoint,
    retailers: Sequence[Retailer],
) -> None:
    """Render the ranking as a Rich table to stdout."""
    table = Table(
        title=f"Current Prices — {latest.date.isoformat()}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Retailer")
    table.add_column("Price", justify="right")
    table.add_column("", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, row in enumerate(rank_retailers(latest, retailers), 1):
        table.add_row(
            str(idx),
            f"[{row.retailer.color}]●[/] {row.retailer.name}",
            (
                f"[bold green]{format_price(row.price)}[/]"
                if row.is_best
                else format_price(row.price)
            ),
            "[green]Best Deal[/green]" if row.is_best else "",
            row.retailer.url,
        )

    Console().print(table)


def print_ranking(store: HistoryStore, output_format: str) -> None:
    """Print the latest snapshot as a table or JSON."""
    if output_format == "table":
        _print_table(store.latest, store.retailers)
    else:
        json.dump(
            _ranking_to_dicts(store.latest, store.retailers),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")


async def cli_refresh(
    output_format: str,
    store: HistoryStore | None = None,
    oracle: PriceOracle | None = None,
) -> int:
    """Run one refresh and print the ranking (0=ok, 1=fail)."""
    history_store = store or HistoryStore()
    orchestrator = RefreshOrchestrator(
        history_store, oracle or GeminiPriceOracle(),
    )

    _err.print(f"[bold]Checking live prices:[/bold] {PRODUCT.name}")
    result = await orchestrator.refresh()
    if not result.ok:
        _err.print(f"[red]{result.error}[/red]")
        return 1

    total = len(history_store.retailers)
    _err.print(
        f"[green]✓ Fresh prices for {len(result.found_ids)}"
        f" of {total} retailers[/green]"
    )
    if len(result.found_ids) < total:
        _err.print("[dim]Missing retailers keep their last known price.[/dim]")

    print_ranking(history_store, output_format)
    return 0


def run_show(
    output_format: str, store: HistoryStore | None = None,
) -> int:
    """Print the ranking of the latest stored snapshot."""
    history_store = store or HistoryStore()
    if history_store.is_seeded:
        _err.print(
            "[yellow]No stored history yet, showing sample data.[/yellow]"
        )
    print_ranking(history_store, output_format)
    return 0


def run_chart(
    open_browser: bool, store: HistoryStore | None = None,
) -> int:
    """Export the Plotly trend chart."""
    from src.storage.chart_exporter import export_history_chart

    history_store = store or HistoryStore()
    path = export_history_chart(
        history_store.history,
        history_store.retailers,
        PRODUCT,
        open_browser=open_browser,
    )
    if path is None:
        _err.print("[yellow]Nothing to chart.[/yellow]")
        return 1
    _err.print(f"[dim]Chart saved → {path}[/dim]")
    return 0


def run_export(
    export_format: str,
    store: HistoryStore | None = None,
    file_manager: FileManager | None = None,
) -> int:
    """Write the history to a CSV or JSON file."""
    history_store = store or HistoryStore()
    manager = file_manager or FileManager()
    try:
        if export_format == "csv":
            path = manager.export_csv(
                history_store.history, history_store.retailers,
            )
        else:
            path = manager.save_json(history_store.history)
    except OSError as exc:
        logger.error("Export failed: %s", exc, exc_info=True)
        _err.print(f"[red]Export failed: {exc}[/red]")
        return 1
    _err.print(f"[green]✓ Exported → {path}[/green]")
    return 0


def run_import_history(
    filepath: str, store: HistoryStore | None = None,
) -> int:
    """Import a JSON history dump into the store."""
    path = Path(filepath)
    _err.print(f"[bold]Importing price history from {path}...[/bold]")
    try:
        data = FileManager.read_json(path)
    except (OSError, ValueError, RecursionError) as exc:
        logger.error("Cannot read %s: %s", path, exc)
        _err.print(f"[red]Cannot read {path}: {exc}[/red]")
        return 1

    history_store = store or HistoryStore()
    try:
        count = history_store.import_history(data)
    except ValueError as exc:
        logger.error("Invalid history in %s: %s", path, exc)
        _err.print(f"[red]Invalid history: {exc}[/red]")
        return 1

    _err.print(
        f"[green]✓ Imported {count:,} entries"
        f" ({len(history_store.history)} days stored)[/green]"
    )
    return 0


async def run_health_check() -> int:
    """Run a reachability check on every retailer page."""
    from src.models.retailer import RETAILERS
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running retailer health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()
    names = {r.id: r.name for r in RETAILERS}

    table = Table(
        title="Retailer Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Retailer", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            names.get(r.retailer_id, r.retailer_id),
            status,
            latency,
            r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
