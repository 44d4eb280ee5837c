# src/services/health_checker.py

"""Retailer product-page reachability checker."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.retailer import RETAILERS, Retailer

logger = logging.getLogger("padel_tracker.health")


@dataclass
class HealthResult:
    """Result of a single retailer page probe."""

    retailer_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def _make_session() -> curl_requests.Session:
    return curl_requests.Session(
        impersonate=Settings.IMPERSONATE_BROWSER,
    )


def probe_retailer(
    retailer: Retailer,
    session: curl_requests.Session | None = None,
) -> HealthResult:
    """GET the retailer's product page and classify the outcome."""
    http = session or _make_session()
    start = time.monotonic()
    try:
        resp = http.get(
            retailer.url,
            headers=Settings.DEFAULT_HEADERS,
            timeout=Settings.REQUEST_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        if resp.status_code != 200:
            return HealthResult(
                retailer_id=retailer.id,
                status="down",
                latency_ms=elapsed_ms,
                message=f"HTTP {resp.status_code}",
            )

        if elapsed_ms > Settings.SLOW_THRESHOLD_MS:
            return HealthResult(
                retailer_id=retailer.id,
                status="slow",
                latency_ms=elapsed_ms,
                message="High latency",
            )

        return HealthResult(
            retailer_id=retailer.id,
            status="ok",
            latency_ms=elapsed_ms,
            message="",
        )

    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            retailer_id=retailer.id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )


class HealthChecker:
    """Runs concurrent probes against every registered retailer."""

    def __init__(
        self, retailers: Sequence[Retailer] | None = None,
    ) -> None:
        self.retailers = tuple(
            RETAILERS if retailers is None else retailers
        )

    async def check_all(self) -> list[HealthResult]:
        """Probe every retailer page concurrently."""
        tasks = [
            asyncio.to_thread(probe_retailer, r)
            for r in self.retailers
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.retailer_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
