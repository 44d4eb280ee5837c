# src/services/reconciler.py

"""Merge a fresh oracle snapshot into the daily price history."""

import logging
from collections.abc import Sequence
from datetime import date, datetime, timezone

from src.models.price_point import PricePoint, ScrapedPrice, normalize_price
from src.models.retailer import Retailer

logger = logging.getLogger("padel_tracker.reconciler")


def today_utc() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def build_snapshot(
    history: Sequence[PricePoint],
    today: date,
    scraped: Sequence[ScrapedPrice],
    retailers: Sequence[Retailer],
) -> PricePoint:
    """Build today's PricePoint, falling back to the last known prices.

    A retailer found by the oracle gets its scraped price (the last
    one when the oracle repeats a retailer).  Any other retailer keeps
    its price from the chronologically latest entry of *history*, or
    ``None`` when there is no such entry or it had no price either.
    """
    found: dict[str, float | None] = {
        s.retailer_id: normalize_price(s.price) for s in scraped
    }
    previous = max(history, key=lambda p: p.date, default=None)

    prices: dict[str, float | None] = {}
    fallbacks: list[str] = []
    for retailer in retailers:
        if retailer.id in found:
            prices[retailer.id] = found[retailer.id]
        else:
            prices[retailer.id] = (
                previous.price_for(retailer.id) if previous else None
            )
            fallbacks.append(retailer.id)

    if fallbacks:
        logger.info(
            "No fresh price for %s on %s, kept last known values",
            ", ".join(fallbacks),
            today.isoformat(),
        )
    return PricePoint(date=today, prices=prices)


def reconcile(
    history: Sequence[PricePoint],
    today: date,
    scraped: Sequence[ScrapedPrice],
    retailers: Sequence[Retailer],
) -> list[PricePoint]:
    """Return a new history with *scraped* merged in as *today*'s entry.

    Any existing entry for *today* is replaced, so re-running the merge
    for the same day is idempotent.  The result is sorted ascending by
    date whatever the order of *history*.  *history* is not modified.
    """
    entry = build_snapshot(history, today, scraped, retailers)
    merged = [p for p in history if p.date != today]
    replaced = len(history) - len(merged)
    merged.append(entry)
    merged.sort(key=lambda p: p.date)
    logger.debug(
        "Reconciled %s: %d scraped, %d replaced, %d entries total",
        today.isoformat(),
        len(scraped),
        replaced,
        len(merged),
    )
    return merged
