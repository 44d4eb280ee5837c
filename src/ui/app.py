# src/ui/app.py

"""Terminal dashboard for the padel_tracker price history."""

import logging
import webbrowser
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Footer, Header, Static

from src.models.retailer import PRODUCT
from src.services.price_oracle import GeminiPriceOracle
from src.services.refresh_orchestrator import PriceOracle, RefreshOrchestrator
from src.storage.chart_exporter import export_history_chart
from src.storage.file_manager import FileManager
from src.storage.history_store import HistoryStore
from src.ui.views import (
    best_deal,
    format_price,
    rank_retailers,
    sparkline,
    trend_series,
)

logger = logging.getLogger("padel_tracker.ui")

_REFRESH_LABEL = "Check Live Prices"
_REFRESHING_LABEL = "Updating Prices..."


class PadelTrackerApp(App[object]):
    """Terminal dashboard showing price trend and current ranking."""

    CSS_PATH = "styles.css"
    TITLE = "PADEL TRACKER"
    SUB_TITLE = "Monitor. Analyze. Smash."

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh_prices", "Refresh"),
        Binding("g", "export_chart", "Chart"),
        Binding("e", "export_csv", "Export CSV"),
    ]

    def __init__(
        self,
        store: HistoryStore | None = None,
        oracle: PriceOracle | None = None,
        file_manager: FileManager | None = None,
    ) -> None:
        super().__init__()
        self.store = store or HistoryStore()
        self.orchestrator = RefreshOrchestrator(
            self.store, oracle or GeminiPriceOracle(),
        )
        self._file_manager = file_manager
        self.last_error: str | None = None

    def compose(self) -> ComposeResult:
        """Build the widget tree for the dashboard."""
        yield Header()
        yield Container(
            Static("", id="last_updated"),

            # Product card
            Vertical(
                Static(Text(PRODUCT.name, style="bold"), id="product_name"),
                Static(PRODUCT.description, id="product_description"),
                Static(
                    Text(
                        "View product image",
                        style=f"underline link {PRODUCT.image_url}",
                    ),
                    id="product_image",
                ),
                Horizontal(
                    Button(
                        _REFRESH_LABEL, variant="primary", id="refresh_btn",
                    ),
                    Static("", id="error"),
                    id="refresh_bar",
                ),
                Static(
                    "*Uses Google Search grounding to find real-time "
                    "pricing from the listed retailers.",
                    id="grounding_note",
                ),
                id="product_card",
            ),

            Horizontal(
                Vertical(
                    Static("Price History", classes="panel_title"),
                    DataTable(
                        id="trend_table",
                        zebra_stripes=True,
                        cursor_type="none",
                    ),
                    id="trend_panel",
                ),
                Vertical(
                    Static("Current Prices", classes="panel_title"),
                    DataTable(
                        id="price_table",
                        zebra_stripes=True,
                        cursor_type="row",
                    ),
                    id="price_panel",
                ),
                id="dashboard",
            ),
            Static("Ready", id="status"),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure table columns and render the loaded history."""
        trend = cast(
            DataTable[str | Text],
            self.query_one("#trend_table", DataTable),
        )
        trend.add_columns("Retailer", "Trend", "Min", "Max", "Latest")
        prices = cast(
            DataTable[str | Text],
            self.query_one("#price_table", DataTable),
        )
        prices.add_columns("Retailer", "Price", "")
        self._update_last_updated()
        self.render_history()
        if self.store.is_seeded:
            self.query_one("#status", Static).update(
                "Showing sample data, check live prices to start tracking"
            )

    # ── Rendering ────────────────────────────────────────

    def _update_last_updated(self) -> None:
        stamp = (
            self.orchestrator.last_updated
            or self.store.slots.updated_at(self.store.slot_name)
        )
        label = (
            stamp.astimezone().strftime("%Y-%m-%d %H:%M")
            if stamp
            else "never"
        )
        self.query_one("#last_updated", Static).update(
            f"Last Updated: {label}"
        )

    def render_history(self) -> None:
        """Refresh both tables from the store."""
        self.populate_trend_table()
        self.populate_price_table()

    def populate_trend_table(self) -> None:
        """One row per retailer with a sparkline over the full history."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#trend_table", DataTable),
        )
        table.clear()
        for series in trend_series(self.store.history, self.store.retailers):
            known = series.known_prices
            table.add_row(
                Text.assemble(
                    ("● ", series.retailer.color), series.retailer.name,
                ),
                Text(
                    sparkline([p for _, p in series.points]),
                    style=series.retailer.color,
                ),
                format_price(min(known)) if known else "--",
                format_price(max(known)) if known else "--",
                format_price(series.points[-1][1]) if series.points else "--",
            )

    def populate_price_table(self) -> None:
        """Fill the ranking table from the latest snapshot."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#price_table", DataTable),
        )
        table.clear()
        for row in rank_retailers(self.store.latest, self.store.retailers):
            style = "bold green" if row.is_best else ""
            table.add_row(
                Text.assemble(
                    ("● ", row.retailer.color), row.retailer.name,
                ),
                Text(format_price(row.price), style=style),
                Text("Best Deal", style="bold green") if row.is_best else "",
                key=row.retailer.id,
            )

    # ── Refresh ──────────────────────────────────────────

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        if event.button.id == "refresh_btn":
            await self.perform_refresh()

    async def action_refresh_prices(self) -> None:
        """Keyboard shortcut for the refresh button."""
        await self.perform_refresh()

    async def perform_refresh(self) -> None:
        """Fetch live prices, merge them and re-render.

        The refresh button stays disabled while the oracle call is
        pending.
        """
        button = self.query_one("#refresh_btn", Button)
        if button.disabled or self.orchestrator.in_flight:
            return

        error = self.query_one("#error", Static)
        status = self.query_one("#status", Static)
        button.disabled = True
        button.label = _REFRESHING_LABEL
        error.update("")
        status.update(f"🔍 Checking live prices for {PRODUCT.name}...")
        try:
            result = await self.orchestrator.refresh()
        finally:
            button.disabled = False
            button.label = _REFRESH_LABEL

        if not result.ok:
            if result.error:
                self.last_error = result.error
                error.update(Text(f"⚠ {result.error}", style="red"))
                status.update("❌ Refresh failed")
            return

        self.last_error = None
        self.render_history()
        self._update_last_updated()
        found = len(result.found_ids)
        total = len(self.store.retailers)
        best = best_deal(
            rank_retailers(self.store.latest, self.store.retailers)
        )
        summary = f"✅ Fresh prices for {found} of {total} retailers"
        if best is not None:
            summary += (
                f", best deal {best.retailer.name} "
                f"{format_price(best.price)}"
            )
        status.update(summary)

    # ── Actions ──────────────────────────────────────────

    def on_data_table_row_selected(
        self, event: DataTable.RowSelected
    ) -> None:
        """Open the selected retailer's product page in the browser."""
        if event.data_table.id != "price_table":
            return
        retailer_id = event.row_key.value
        for retailer in self.store.retailers:
            if retailer.id == retailer_id:
                webbrowser.open(retailer.url)
                return

    def action_export_chart(self) -> None:
        """Write the Plotly history chart and open it."""
        try:
            path = export_history_chart(
                self.store.history,
                self.store.retailers,
                PRODUCT,
                open_browser=True,
            )
        except Exception as e:
            logger.error("Failed to export chart", exc_info=True)
            self.notify(f"Chart failed: {e}", severity="error")
            return
        if path is None:
            self.notify("Nothing to chart yet", severity="warning")
        else:
            self.notify(f"Chart saved to {path}")

    def action_export_csv(self) -> None:
        """Export the full history to a CSV file."""
        try:
            if self._file_manager is None:
                self._file_manager = FileManager()
            path = self._file_manager.export_csv(
                self.store.history, self.store.retailers,
            )
            logger.info("Exported history to %s", path)
            self.notify(f"Exported to {path}")
        except Exception as e:
            logger.error("Failed to export history", exc_info=True)
            self.notify(f"Export failed: {e}", severity="error")

    def on_unmount(self) -> None:
        """Close the history store when the app exits."""
        self.store.close()
