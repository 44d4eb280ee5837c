# src/services/refresh_orchestrator.py

"""Coordinates one user-triggered price refresh."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol

from src.config.settings import Settings
from src.models.price_point import PricePoint, ScrapedPrice
from src.services.price_oracle import PriceOracleError
from src.storage.history_store import HistoryStore

logger = logging.getLogger("padel_tracker.refresh")


class PriceOracle(Protocol):
    """Anything that can fetch today's retailer prices."""

    async def fetch_current_prices(self) -> list[ScrapedPrice]: ...


@dataclass
class RefreshResult:
    """Outcome of a single refresh attempt."""

    ok: bool
    history: list[PricePoint] = field(
        default_factory=lambda: list[PricePoint]()
    )
    found_ids: list[str] = field(
        default_factory=lambda: list[str]()
    )
    error: str | None = None
    skipped: bool = False
    finished_at: datetime = field(default_factory=datetime.now)


class RefreshOrchestrator:
    """Runs oracle → reconcile → persist, one refresh at a time.

    A second ``refresh()`` while one is pending is refused rather than
    queued.  A failed oracle call leaves the history untouched.
    """

    def __init__(
        self,
        store: HistoryStore,
        oracle: PriceOracle,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self._in_flight = False
        self.last_updated: datetime | None = None

    @property
    def in_flight(self) -> bool:
        """True while a refresh is waiting on the oracle."""
        return self._in_flight

    async def refresh(self, today: date | None = None) -> RefreshResult:
        """Fetch current prices and merge them as today's snapshot."""
        if self._in_flight:
            logger.warning("Refresh already in progress, ignoring")
            return RefreshResult(
                ok=False,
                history=self.store.history,
                skipped=True,
            )

        self._in_flight = True
        try:
            scraped = await self.oracle.fetch_current_prices()
        except PriceOracleError as exc:
            logger.error("Price refresh failed: %s", exc, exc_info=True)
            return RefreshResult(
                ok=False,
                history=self.store.history,
                error=Settings.ORACLE_ERROR_MESSAGE,
            )
        finally:
            self._in_flight = False

        history = self.store.merge(scraped, today=today)
        self.last_updated = datetime.now()
        found = sorted({s.retailer_id for s in scraped})
        logger.info(
            "Refresh complete: %d/%d retailers with fresh prices",
            len(found),
            len(self.store.retailers),
        )
        return RefreshResult(
            ok=True,
            history=history,
            found_ids=found,
            finished_at=self.last_updated,
        )
