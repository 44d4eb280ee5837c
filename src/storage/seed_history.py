# src/storage/seed_history.py

"""Synthetic starter history used when nothing valid is persisted."""

import random
from collections.abc import Sequence
from datetime import date, timedelta

from src.config.settings import Settings
from src.models.price_point import PricePoint
from src.models.retailer import Retailer
from src.services.reconciler import today_utc


def seed_price(
    retailer: Retailer, rng: random.Random | None = None,
) -> float:
    """Return one synthetic price for *retailer*.

    ``base + 2 * len(name) + offset`` with the offset drawn uniformly
    from ``Settings.SEED_FLUCTUATION`` (inclusive).
    """
    low, high = Settings.SEED_FLUCTUATION
    offset = (rng or random).randint(low, high)
    return float(
        Settings.SEED_BASE_PRICE + 2 * len(retailer.name) + offset
    )


def generate_seed_history(
    retailers: Sequence[Retailer],
    today: date | None = None,
    days: int | None = None,
    rng: random.Random | None = None,
) -> list[PricePoint]:
    """Build one PricePoint per day for the *days* days ending *today*.

    The result is ordered oldest first.  Pass a seeded ``rng`` for
    reproducible output.
    """
    end = today or today_utc()
    count = Settings.SEED_DAYS if days is None else days
    history: list[PricePoint] = []
    for back in range(count - 1, -1, -1):
        history.append(PricePoint(
            date=end - timedelta(days=back),
            prices={r.id: seed_price(r, rng) for r in retailers},
        ))
    return history
