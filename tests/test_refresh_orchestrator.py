# tests/test_refresh_orchestrator.py

"""Tests for the refresh orchestrator."""

import asyncio
import json
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from src.config.settings import Settings
from src.models.price_point import ScrapedPrice
from src.services.price_oracle import GeminiPriceOracle, PriceOracleError
from src.services.refresh_orchestrator import RefreshOrchestrator
from src.storage.history_store import HistoryStore
from src.storage.slot_store import SlotStore

TODAY = date(2026, 10, 19)


class FakeOracle:
    """Oracle double returning canned prices or raising."""

    def __init__(
        self,
        prices: list[ScrapedPrice] | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.prices = prices or []
        self.error = error
        self.gate = gate
        self.calls = 0

    async def fetch_current_prices(self) -> list[ScrapedPrice]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.prices)


class TestRefreshOrchestrator(unittest.IsolatedAsyncioTestCase):
    """Success, failure and single-flight behaviour."""

    def setUp(self) -> None:
        """Seed an in-memory store with one known day."""
        self.slots = SlotStore(db_path=Path(":memory:"))
        self.slots.set(
            Settings.HISTORY_SLOT,
            json.dumps([
                {"date": "2026-10-18", "justpadel": 280, "decathlon": 300},
            ]),
        )
        self.store = HistoryStore(slots=self.slots)

    def tearDown(self) -> None:
        """Close the slot store."""
        self.slots.close()

    async def test_success_merges_and_persists(self) -> None:
        """Fresh prices become today's entry and are saved."""
        oracle = FakeOracle([
            ScrapedPrice("justpadel", 260.0),
            ScrapedPrice("passasports", 270.0),
        ])
        orchestrator = RefreshOrchestrator(self.store, oracle)

        result = await orchestrator.refresh(today=TODAY)

        self.assertTrue(result.ok)
        self.assertIsNone(result.error)
        self.assertEqual(result.found_ids, ["justpadel", "passasports"])
        self.assertEqual(result.history[-1].date, TODAY)
        self.assertEqual(result.history[-1].price_for("decathlon"), 300.0)
        self.assertIsNotNone(orchestrator.last_updated)

        saved = json.loads(self.slots.get(Settings.HISTORY_SLOT) or "[]")
        self.assertEqual(saved[-1]["date"], "2026-10-19")
        self.assertEqual(saved[-1]["justpadel"], 260.0)

    async def test_empty_answer_still_records_day(self) -> None:
        """No prices found carries the previous values forward."""
        orchestrator = RefreshOrchestrator(self.store, FakeOracle([]))

        result = await orchestrator.refresh(today=TODAY)

        self.assertTrue(result.ok)
        self.assertEqual(result.found_ids, [])
        self.assertEqual(len(result.history), 2)
        self.assertEqual(result.history[-1].price_for("justpadel"), 280.0)

    async def test_failure_leaves_history_untouched(self) -> None:
        """An oracle error reports the fixed message and saves nothing."""
        before_raw = self.slots.get(Settings.HISTORY_SLOT)
        before = self.store.history
        orchestrator = RefreshOrchestrator(
            self.store, FakeOracle(error=PriceOracleError("boom")),
        )

        result = await orchestrator.refresh(today=TODAY)

        self.assertFalse(result.ok)
        self.assertFalse(result.skipped)
        self.assertEqual(result.error, Settings.ORACLE_ERROR_MESSAGE)
        self.assertEqual(self.store.history, before)
        self.assertEqual(self.slots.get(Settings.HISTORY_SLOT), before_raw)
        self.assertIsNone(orchestrator.last_updated)
        self.assertFalse(orchestrator.in_flight)

    async def test_concurrent_refresh_is_skipped(self) -> None:
        """A second refresh while one is pending does not call the oracle."""
        gate = asyncio.Event()
        oracle = FakeOracle([ScrapedPrice("justpadel", 250.0)], gate=gate)
        orchestrator = RefreshOrchestrator(self.store, oracle)

        first = asyncio.create_task(orchestrator.refresh(today=TODAY))
        await asyncio.sleep(0)
        self.assertTrue(orchestrator.in_flight)

        second = await orchestrator.refresh(today=TODAY)
        self.assertTrue(second.skipped)
        self.assertFalse(second.ok)

        gate.set()
        result = await first
        self.assertTrue(result.ok)
        self.assertEqual(oracle.calls, 1)
        self.assertFalse(orchestrator.in_flight)

    async def test_odd_gemini_reply_never_escapes(self) -> None:
        """Huge prices and deep nesting from Gemini do not crash refresh."""
        huge = "1" + "0" * 400
        replies = (
            '[{"retailerName": "JustPadel", "price": ' + huge + "}]",
            "[" * 100000 + "]" * 100000,
        )
        for text in replies:
            with self.subTest(text=text[:40]):
                client = MagicMock()
                response = MagicMock(text=text, candidates=[])
                client.aio.models.generate_content = AsyncMock(
                    return_value=response,
                )
                orchestrator = RefreshOrchestrator(
                    self.store, GeminiPriceOracle(client=client),
                )

                result = await orchestrator.refresh(today=TODAY)

                self.assertTrue(result.ok)
                self.assertEqual(result.found_ids, [])
                self.assertEqual(
                    self.store.latest.price_for("justpadel"), 280.0,
                )

    async def test_refresh_allowed_after_failure(self) -> None:
        """The in-flight flag resets so the user can retry."""
        oracle = FakeOracle(error=PriceOracleError("boom"))
        orchestrator = RefreshOrchestrator(self.store, oracle)
        await orchestrator.refresh(today=TODAY)

        oracle.error = None
        oracle.prices = [ScrapedPrice("decathlon", 290.0)]
        result = await orchestrator.refresh(today=TODAY)

        self.assertTrue(result.ok)
        self.assertEqual(oracle.calls, 2)


if __name__ == "__main__":
    unittest.main()
