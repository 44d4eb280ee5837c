# src/storage/chart_exporter.py

"""Generate the interactive Plotly price-history chart."""

import importlib
import logging
import webbrowser
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from src.config.settings import Settings
from src.models.price_point import PricePoint
from src.models.retailer import ProductDetails, Retailer
from src.ui.views import trend_series

logger = logging.getLogger("padel_tracker.chart")

_CHARTS_DIR: Path = Settings.CHARTS_DIR


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    """Create charts directory if it doesn't exist."""
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def build_history_chart(
    history: Sequence[PricePoint],
    retailers: Sequence[Retailer],
    product: ProductDetails,
) -> Any:
    """Build a line chart with one trace per retailer.

    Unknown prices are plotted as gaps (``None`` with
    ``connectgaps=False``), never as a drop to zero.
    """
    go = _get_plotly_go()
    symbol = Settings.CURRENCY_SYMBOL

    fig: Any = go.Figure()
    for series in trend_series(history, retailers):
        fig.add_trace(go.Scatter(
            x=[d.isoformat() for d, _ in series.points],
            y=[p for _, p in series.points],
            mode="lines+markers",
            name=series.retailer.name,
            line={"color": series.retailer.color, "width": 2},
            marker={"size": 6},
            connectgaps=False,
            hovertemplate=(
                f"{series.retailer.name}: {symbol}%{{y:.2f}}"
                "<extra></extra>"
            ),
        ))

    fig.update_layout(
        title=f"Price History — {product.name}",
        xaxis_title="Date",
        yaxis_title=f"Price ({symbol})",
        hovermode="x unified",
        template="plotly_white",
        legend={"orientation": "h", "y": -0.15},
    )
    if product.image_url:
        fig.add_layout_image(
            source=product.image_url,
            xref="paper",
            yref="paper",
            x=1,
            y=1.02,
            sizex=0.12,
            sizey=0.12,
            xanchor="right",
            yanchor="bottom",
        )
        fig.update_layout(margin={"t": 110})
    fig.update_xaxes(type="date", tickformat="%b %d")
    return fig


def export_history_chart(
    history: Sequence[PricePoint],
    retailers: Sequence[Retailer],
    product: ProductDetails,
    open_browser: bool = True,
) -> Path | None:
    """Write the price-history chart to HTML.

    Returns ``None`` when no retailer has a single known price.
    """
    if not any(
        p.price_for(r.id) is not None
        for p in history
        for r in retailers
    ):
        logger.warning("No known prices to chart")
        return None

    fig = build_history_chart(history, retailers, product)

    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"price_history_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
