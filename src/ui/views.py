# src/ui/views.py

"""Read-only ranking and trend views over the price history."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from src.config.settings import Settings
from src.models.price_point import PricePoint, normalize_price
from src.models.retailer import Retailer

_SPARK_BARS = "▁▂▃▄▅▆▇█"


@dataclass(frozen=True)
class RankedRetailer:
    """One row of the ranking view."""

    retailer: Retailer
    price: float | None
    is_best: bool


@dataclass(frozen=True)
class TrendSeries:
    """One retailer's prices across the whole history."""

    retailer: Retailer
    points: list[tuple[date, float | None]]

    @property
    def known_prices(self) -> list[float]:
        return [p for _, p in self.points if p is not None]


def rank_retailers(
    latest: PricePoint | None,
    retailers: Sequence[Retailer],
) -> list[RankedRetailer]:
    """Order retailers cheapest first, unknown prices last.

    ``sorted`` is stable, so equal prices and unknowns keep registry
    order.  Only the first row with a known price is the best deal.
    """
    def price_of(r: Retailer) -> float | None:
        return normalize_price(latest.price_for(r.id)) if latest else None

    ordered = sorted(
        retailers,
        key=lambda r: (
            price_of(r) is None,
            price_of(r) or 0.0,
        ),
    )
    rows: list[RankedRetailer] = []
    for idx, retailer in enumerate(ordered):
        price = price_of(retailer)
        rows.append(RankedRetailer(
            retailer=retailer,
            price=price,
            is_best=idx == 0 and price is not None,
        ))
    return rows


def best_deal(rows: Sequence[RankedRetailer]) -> RankedRetailer | None:
    """Return the flagged row, if any retailer has a known price."""
    return next((r for r in rows if r.is_best), None)


def trend_series(
    history: Sequence[PricePoint],
    retailers: Sequence[Retailer],
) -> list[TrendSeries]:
    """Build one series per retailer; unknown prices stay ``None``."""
    return [
        TrendSeries(
            retailer=r,
            points=[
                (p.date, normalize_price(p.price_for(r.id)))
                for p in history
            ],
        )
        for r in retailers
    ]


def format_price(price: float | None) -> str:
    """Render a price as ``€275.50`` or ``--`` when unknown."""
    if price is None:
        return "--"
    return f"{Settings.CURRENCY_SYMBOL}{price:,.2f}"


def sparkline(points: Sequence[float | None]) -> str:
    """Render a unicode sparkline with blanks for missing prices."""
    known = [p for p in points if p is not None]
    if not known:
        return " " * len(points)
    low, high = min(known), max(known)
    span = high - low
    chars: list[str] = []
    for p in points:
        if p is None:
            chars.append(" ")
        elif span == 0:
            chars.append(_SPARK_BARS[len(_SPARK_BARS) // 2])
        else:
            idx = round((p - low) / span * (len(_SPARK_BARS) - 1))
            chars.append(_SPARK_BARS[idx])
    return "".join(chars)
