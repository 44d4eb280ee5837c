# main.py

"""Entry point for the padel_tracker dashboard (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("padel_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    retailer_names = ", ".join(r["name"] for r in Settings.RETAILERS)

    parser = argparse.ArgumentParser(
        prog="padel_tracker",
        description=(
            f"Track the price of the {Settings.PRODUCT['name']} "
            "across online retailers."
        ),
        epilog=f"Tracked retailers: {retailer_names}",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--refresh",
        action="store_true",
        default=False,
        help="Fetch live prices once and print the ranking.",
    )
    actions.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Print the ranking of the latest stored prices.",
    )
    actions.add_argument(
        "--chart",
        action="store_true",
        default=False,
        help="Export the price-history chart as HTML.",
    )
    actions.add_argument(
        "--export",
        choices=["csv", "json"],
        default=None,
        dest="export_format",
        help="Export the stored history to a file.",
    )
    actions.add_argument(
        "--import-history",
        default=None,
        metavar="PATH",
        dest="import_path",
        help="Import a JSON price-history array into the store.",
    )
    actions.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check that every retailer page is reachable.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format for --refresh/--show (default: table).",
    )
    parser.add_argument(
        "--no-browser",
        action="store_false",
        default=True,
        dest="open_browser",
        help="Do not open the exported chart in a browser.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual dashboard."""
    from src.ui.app import PadelTrackerApp

    try:
        app = PadelTrackerApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("padel_tracker TUI shutting down")


def _run_command(args: argparse.Namespace) -> int:
    """Run one headless command against the persisted history."""
    from src.cli import runner
    from src.storage.history_store import HistoryStore

    store = HistoryStore()
    try:
        if args.refresh:
            return asyncio.run(
                runner.cli_refresh(args.output_format, store=store)
            )
        if args.show:
            return runner.run_show(args.output_format, store=store)
        if args.chart:
            return runner.run_chart(args.open_browser, store=store)
        if args.export_format:
            return runner.run_export(args.export_format, store=store)
        return runner.run_import_history(args.import_path, store=store)
    finally:
        store.close()


def main() -> None:
    """Route to the TUI (no args) or a headless command."""
    log_file = setup_logging()
    logger.info("padel_tracker starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        from src.cli.runner import run_health_check

        sys.exit(asyncio.run(run_health_check()))
    elif (
        args.refresh
        or args.show
        or args.chart
        or args.export_format
        or args.import_path
    ):
        sys.exit(_run_command(args))
    else:
        _run_tui()


if __name__ == "__main__":
    main()
