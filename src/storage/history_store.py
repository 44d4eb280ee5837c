# src/storage/history_store.py

"""Persisted daily price history for the tracked product."""

import json
import logging
import random
from collections.abc import Sequence
from datetime import date
from typing import Any, cast

from src.config.settings import Settings
from src.models.price_point import PricePoint, ScrapedPrice
from src.models.retailer import RETAILERS, Retailer
from src.services.reconciler import reconcile, today_utc
from src.storage.seed_history import generate_seed_history
from src.storage.slot_store import SlotStore

logger = logging.getLogger("padel_tracker.history")


def parse_records(
    data: object,
    retailer_ids: list[str],
) -> list[PricePoint]:
    """Validate decoded JSON and turn it into an ordered history.

    *data* must be a non-empty list of objects that each parse with
    :meth:`PricePoint.from_dict`.  Out-of-order records are sorted and
    when a date repeats the later record wins.

    Raises ``ValueError`` on any shape problem.
    """
    if not isinstance(data, list) or not data:
        msg = "History must be a non-empty JSON array"
        raise ValueError(msg)

    items = cast(list[object], data)
    by_date: dict[date, PricePoint] = {}
    for item in items:
        if not isinstance(item, dict):
            msg = f"History entry is not an object: {item!r}"
            raise ValueError(msg)
        point = PricePoint.from_dict(
            cast(dict[str, Any], item), retailer_ids,
        )
        by_date[point.date] = point

    if len(by_date) != len(items):
        logger.warning(
            "Dropped %d duplicate-date history entries",
            len(items) - len(by_date),
        )
    return [by_date[d] for d in sorted(by_date)]


class HistoryStore:
    """Owns the in-memory price history and its persisted mirror.

    The store is loaded once at construction and written back to its
    slot after every mutation.
    """

    def __init__(
        self,
        slots: SlotStore | None = None,
        retailers: Sequence[Retailer] | None = None,
        slot_name: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.slots = slots or SlotStore()
        self.retailers: tuple[Retailer, ...] = tuple(
            RETAILERS if retailers is None else retailers
        )
        self.slot_name = slot_name or Settings.HISTORY_SLOT
        self._rng = rng
        self.is_seeded = False
        self._history: list[PricePoint] = self.load()

    @property
    def history(self) -> list[PricePoint]:
        """A copy of the full history, oldest first."""
        return list(self._history)

    @property
    def latest(self) -> PricePoint:
        """The most recent PricePoint."""
        return self._history[-1]

    def close(self) -> None:
        """Close the underlying slot store."""
        self.slots.close()

    def _retailer_ids(self) -> list[str]:
        return [r.id for r in self.retailers]

    # ── Persistence ──────────────────────────────────────

    def load(self) -> list[PricePoint]:
        """Read and validate the persisted history.

        Absent, undecodable or malformed data is replaced by a
        generated seed history; this never raises.
        """
        raw = self.slots.get(self.slot_name)
        if raw is None:
            logger.info(
                "No persisted history in slot '%s', seeding",
                self.slot_name,
            )
            return self._seed()

        try:
            history = parse_records(
                json.loads(raw), self._retailer_ids(),
            )
        except (ValueError, RecursionError) as exc:
            # json.JSONDecodeError is a ValueError subclass
            logger.warning(
                "Persisted history in slot '%s' is invalid (%s), "
                "seeding",
                self.slot_name,
                exc,
            )
            return self._seed()

        self.is_seeded = False
        logger.info(
            "Loaded %d history entries (%s .. %s)",
            len(history),
            history[0].date.isoformat(),
            history[-1].date.isoformat(),
        )
        return history

    def save(self, history: Sequence[PricePoint]) -> None:
        """Serialise *history* and overwrite the persisted slot."""
        payload = json.dumps([p.to_dict() for p in history])
        self.slots.set(self.slot_name, payload)
        self._history = list(history)
        self.is_seeded = False
        logger.info(
            "Saved %d history entries to slot '%s'",
            len(history),
            self.slot_name,
        )

    def _seed(self) -> list[PricePoint]:
        self.is_seeded = True
        return generate_seed_history(self.retailers, rng=self._rng)

    # ── Mutation ─────────────────────────────────────────

    def merge(
        self,
        scraped: Sequence[ScrapedPrice],
        today: date | None = None,
    ) -> list[PricePoint]:
        """Reconcile an oracle result into the history and persist it."""
        day = today or today_utc()
        merged = reconcile(
            self._history, day, scraped, self.retailers,
        )
        self.save(merged)
        return self.history

    def import_history(self, data: object) -> int:
        """Merge externally exported records into the history.

        Imported dates replace same-dated entries.  Returns the number
        of imported records.  Raises ``ValueError`` when *data* is not
        a valid history array.
        """
        imported = parse_records(data, self._retailer_ids())
        base = [] if self.is_seeded else self._history
        by_date = {p.date: p for p in base}
        for point in imported:
            by_date[point.date] = point
        self.save([by_date[d] for d in sorted(by_date)])
        logger.info("Imported %d history entries", len(imported))
        return len(imported)
