# tests/test_price_oracle.py

"""Tests for the Gemini price oracle adapter."""

import json
import unittest
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

from src.models.price_point import ScrapedPrice
from src.models.retailer import PRODUCT, RETAILERS
from src.services.price_oracle import (
    GeminiPriceOracle,
    PriceOracleError,
    build_prompt,
    extract_json_array,
    match_retailer,
    parse_oracle_response,
)


def _make_client(text: str | None = None, error: Exception | None = None) -> Any:
    """Build a fake google-genai client with an async generate_content."""
    client = MagicMock()
    response = MagicMock()
    response.text = text
    response.candidates = []
    client.aio.models.generate_content = AsyncMock(
        return_value=response, side_effect=error,
    )
    return client


class TestExtractJsonArray(unittest.TestCase):
    """Locating the JSON array inside free text."""

    def test_surrounding_prose(self) -> None:
        """Text around the array is ignored."""
        text = (
            'Here is the data: [{"retailerName":"X","price":1}] Thanks'
        )
        self.assertEqual(
            extract_json_array(text), [{"retailerName": "X", "price": 1}],
        )

    def test_markdown_fences(self) -> None:
        """A ```json fenced block is unwrapped."""
        text = '```json\n[{"retailerName": "Decathlon", "price": 289}]\n```'
        self.assertEqual(len(extract_json_array(text)), 1)

    def test_missing_brackets(self) -> None:
        """No brackets gives an empty list, not an error."""
        self.assertEqual(extract_json_array('{"retailerName": "X"}'), [])
        self.assertEqual(extract_json_array("no data today"), [])

    def test_unbalanced_brackets(self) -> None:
        """A lone or reversed bracket gives an empty list."""
        self.assertEqual(extract_json_array('[{"retailerName": "X"}'), [])
        self.assertEqual(extract_json_array("] then ["), [])

    def test_invalid_json(self) -> None:
        """Broken JSON inside the brackets gives an empty list."""
        self.assertEqual(extract_json_array("[{retailerName: X}]"), [])

    def test_deep_nesting(self) -> None:
        """Nesting too deep to decode gives an empty list."""
        self.assertEqual(extract_json_array("[" * 100000 + "]" * 100000), [])

    def test_empty_or_none(self) -> None:
        """Empty responses give an empty list."""
        self.assertEqual(extract_json_array(""), [])
        self.assertEqual(extract_json_array(None), [])


class TestMatchRetailer(unittest.TestCase):
    """Fuzzy retailer-name matching."""

    def test_spaced_name_matches(self) -> None:
        """'just padel' maps to the justpadel retailer."""
        retailer = match_retailer("just padel", RETAILERS)
        assert retailer is not None
        self.assertEqual(retailer.id, "justpadel")

    def test_case_insensitive_exact(self) -> None:
        """Exact names match regardless of case."""
        retailer = match_retailer("DECATHLON", RETAILERS)
        assert retailer is not None
        self.assertEqual(retailer.id, "decathlon")

    def test_returned_name_contains_registry_name(self) -> None:
        """A longer returned name containing the registry name matches."""
        retailer = match_retailer("Holland Padel (hollandpadel.com)", RETAILERS)
        assert retailer is not None
        self.assertEqual(retailer.id, "hollandpadel")

    def test_registry_name_contains_returned_name(self) -> None:
        """A shorter returned name contained in the registry name matches."""
        retailer = match_retailer("Nuestro", RETAILERS)
        assert retailer is not None
        self.assertEqual(retailer.id, "padelnuestro")

    def test_unrelated_name_dropped(self) -> None:
        """A name with no substring relationship matches nothing."""
        self.assertIsNone(match_retailer("Bol.com", RETAILERS))

    def test_empty_name_dropped(self) -> None:
        """Blank names match nothing."""
        self.assertIsNone(match_retailer("", RETAILERS))
        self.assertIsNone(match_retailer("  - ", RETAILERS))

    def test_first_registry_match_wins(self) -> None:
        """An ambiguous name resolves to the first registry entry."""
        retailer = match_retailer("Padel", RETAILERS)
        assert retailer is not None
        self.assertEqual(retailer.id, "justpadel")


class TestParseOracleResponse(unittest.TestCase):
    """From raw text to ScrapedPrice records."""

    def test_maps_names_to_ids(self) -> None:
        """Known names become ScrapedPrice records in response order."""
        text = json.dumps([
            {"retailerName": "Tennis Voordeel", "price": 269.95},
            {"retailerName": "JustPadel", "price": 275.5},
        ])
        self.assertEqual(
            parse_oracle_response(text, RETAILERS),
            [
                ScrapedPrice("tennisvoordeel", 269.95),
                ScrapedPrice("justpadel", 275.5),
            ],
        )

    def test_drops_unmatched_and_zero(self) -> None:
        """Unknown shops and 'not found' zeros are omitted."""
        text = json.dumps([
            {"retailerName": "Amazon", "price": 199},
            {"retailerName": "Decathlon", "price": 0},
            {"retailerName": "PassaSports", "price": 289},
        ])
        self.assertEqual(
            parse_oracle_response(text, RETAILERS),
            [ScrapedPrice("passasports", 289.0)],
        )

    def test_skips_malformed_items(self) -> None:
        """Non-object items and missing names are skipped."""
        text = json.dumps([
            "JustPadel",
            {"price": 250},
            {"retailerName": 5, "price": 250},
            {"retailerName": "Decathlon", "price": "250"},
            {"retailerName": "Decathlon", "price": 250},
        ])
        self.assertEqual(
            parse_oracle_response(text, RETAILERS),
            [ScrapedPrice("decathlon", 250.0)],
        )

    def test_huge_integer_price_dropped(self) -> None:
        """A price too large for a float is dropped, not raised."""
        text = (
            '[{"retailerName": "JustPadel", "price": '
            + "1" + "0" * 400
            + '}, {"retailerName": "Decathlon", "price": 250}]'
        )
        self.assertEqual(
            parse_oracle_response(text, RETAILERS),
            [ScrapedPrice("decathlon", 250.0)],
        )

    def test_garbage_gives_empty(self) -> None:
        """Unparseable text yields no prices."""
        self.assertEqual(parse_oracle_response("sorry!", RETAILERS), [])


class TestBuildPrompt(unittest.TestCase):
    """The natural-language request."""

    def test_lists_every_retailer(self) -> None:
        """Each retailer appears as 'name: url'."""
        prompt = build_prompt(RETAILERS, PRODUCT)
        self.assertIn(PRODUCT.name, prompt)
        for retailer in RETAILERS:
            self.assertIn(f"{retailer.name}: {retailer.url}", prompt)
        self.assertIn('"retailerName"', prompt)


class TestGeminiPriceOracle(unittest.IsolatedAsyncioTestCase):
    """The async oracle call against a fake client."""

    async def test_fetch_parses_response(self) -> None:
        """A successful call returns matched prices."""
        client = _make_client(
            'Sure! [{"retailerName": "just padel", "price": 255}]'
        )
        oracle = GeminiPriceOracle(client=client, model="test-model")

        prices = await oracle.fetch_current_prices()

        self.assertEqual(prices, [ScrapedPrice("justpadel", 255.0)])
        kwargs = client.aio.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertIn(PRODUCT.name, kwargs["contents"])
        self.assertEqual(len(kwargs["config"].tools), 1)

    async def test_empty_text_is_not_an_error(self) -> None:
        """A response without text yields an empty list."""
        oracle = GeminiPriceOracle(client=_make_client(None))
        self.assertEqual(await oracle.fetch_current_prices(), [])

    async def test_service_error_raises(self) -> None:
        """SDK failures surface as PriceOracleError."""
        oracle = GeminiPriceOracle(
            client=_make_client(error=RuntimeError("quota exceeded")),
        )
        with self.assertRaises(PriceOracleError) as ctx:
            await oracle.fetch_current_prices()
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    async def test_unparseable_response_raises(self) -> None:
        """A failure while reading the reply surfaces as PriceOracleError."""
        oracle = GeminiPriceOracle(client=_make_client("[]"))
        with patch(
            "src.services.price_oracle.parse_oracle_response",
            side_effect=RecursionError("too deep"),
        ):
            with self.assertRaises(PriceOracleError) as ctx:
                await oracle.fetch_current_prices()
        self.assertIsInstance(ctx.exception.__cause__, RecursionError)

    async def test_missing_api_key_raises(self) -> None:
        """Without a key no client is built and the call fails."""
        with patch("src.services.price_oracle.genai.Client") as mock_client:
            oracle = GeminiPriceOracle()
            with self.assertRaises(PriceOracleError):
                await oracle.fetch_current_prices()
            mock_client.assert_not_called()

    async def test_client_built_from_api_key(self) -> None:
        """A configured key is passed to genai.Client."""
        fake = _make_client("[]")
        with patch(
            "src.services.price_oracle.Settings.ORACLE_API_KEY", "secret",
        ), patch(
            "src.services.price_oracle.genai.Client", return_value=fake,
        ) as mock_client:
            oracle = GeminiPriceOracle()
            self.assertEqual(await oracle.fetch_current_prices(), [])
            mock_client.assert_called_once_with(api_key="secret")


if __name__ == "__main__":
    unittest.main()
