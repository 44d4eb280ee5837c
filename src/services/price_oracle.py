# src/services/price_oracle.py

"""Gemini-backed price oracle with Google Search grounding.

The model is asked for the current checkout price at every registered
retailer and answers in free text that should contain a JSON array of
``{"retailerName": str, "price": number}``.  This module turns that
text into :class:`ScrapedPrice` records keyed by registry id.
"""

import json
import logging
import re
from collections.abc import Sequence
from typing import Any, cast

from google import genai
from google.genai import types

from src.config.settings import Settings
from src.models.price_point import ScrapedPrice, normalize_price
from src.models.retailer import PRODUCT, RETAILERS, ProductDetails, Retailer

logger = logging.getLogger("padel_tracker.oracle")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]+")

PRICE_PROMPT_TEMPLATE = """\
I need to find the current *lowest selling price* (in Euros) of the \
"{product_name}" padel racket from the following specific URLs.

{retailer_list}

Please use Google Search to find the price listed on these specific pages.

IMPORTANT PRICING RULES:
1. **FIND THE DEAL/SALE PRICE**: Many of these items are discounted. You \
MUST return the discounted price (the price the user would pay at \
checkout), NOT the MSRP or "Adviesprijs".
2. If you see two prices (e.g., "€300" crossed out and "€250" active), \
return 250.
3. Ignore "Club" or "Member" specific prices unless it is the only price \
available, but always prefer the public sale price.

OUTPUT INSTRUCTIONS:
- Return the data strictly as a JSON array.
- Each item in the array should be an object with "retailerName" \
(string) and "price" (number).
- If a price cannot be found, use 0.
- Do not include any markdown formatting (like ```json). Just return the \
raw JSON string.

Example format:
[
  {{ "retailerName": "JustPadel", "price": 275.50 }},
  {{ "retailerName": "Decathlon", "price": 0 }}
]"""


class PriceOracleError(Exception):
    """The oracle call itself failed (credentials, network, quota)."""


def build_prompt(
    retailers: Sequence[Retailer],
    product: ProductDetails,
) -> str:
    """Render the natural-language price request for *retailers*."""
    retailer_list = "\n".join(f"{r.name}: {r.url}" for r in retailers)
    return PRICE_PROMPT_TEMPLATE.format(
        product_name=product.name,
        retailer_list=retailer_list,
    )


def extract_json_array(text: str | None) -> list[Any]:
    """Parse the JSON array embedded in a model response.

    Markdown fences are stripped, then only the text between the first
    ``[`` and the last ``]`` is decoded.  Missing brackets, invalid
    JSON or a non-array value yield an empty list.
    """
    if not text:
        return []
    cleaned = _FENCE_RE.sub("", text).strip()
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start == -1 or end == -1 or end < start:
        logger.warning(
            "No JSON array in oracle response: %.200s", cleaned,
        )
        return []
    try:
        data = json.loads(cleaned[start:end + 1])
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.warning(
            "Failed to parse oracle JSON (%s): %.200s", exc, cleaned,
        )
        return []
    if not isinstance(data, list):
        return []
    return cast(list[Any], data)


def _squash(name: str) -> str:
    """Lower-case *name* and drop everything but letters and digits."""
    return _NON_ALNUM_RE.sub("", name.lower())


def match_retailer(
    name: str,
    retailers: Sequence[Retailer],
) -> Retailer | None:
    """Map a free-text retailer name onto the registry.

    The first retailer (registry order) whose name contains *name*, or
    is contained in it, wins.  Comparison ignores case, spaces and
    punctuation.
    """
    candidate = _squash(name)
    if not candidate:
        return None
    for retailer in retailers:
        known = _squash(retailer.name)
        if candidate in known or known in candidate:
            return retailer
    return None


def parse_oracle_response(
    text: str | None,
    retailers: Sequence[Retailer],
) -> list[ScrapedPrice]:
    """Turn raw oracle text into ScrapedPrice records.

    Unmatched names and entries without a positive price are dropped:
    the oracle answers 0 when it could not find a price, which means
    "unknown" rather than free.
    """
    results: list[ScrapedPrice] = []
    for item in extract_json_array(text):
        if not isinstance(item, dict):
            continue
        entry = cast(dict[str, Any], item)
        name = entry.get("retailerName")
        if not isinstance(name, str):
            continue
        retailer = match_retailer(name, retailers)
        if retailer is None:
            logger.debug("Unmatched retailer name '%s' dropped", name)
            continue
        price = normalize_price(entry.get("price"))
        if price is None:
            logger.debug("No usable price for '%s'", retailer.id)
            continue
        results.append(ScrapedPrice(retailer_id=retailer.id, price=price))
    return results


def _log_grounding(response: Any) -> None:
    """Log the search sources the model grounded its answer on."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is not None:
            logger.debug(
                "Grounding source: %s (%s)",
                getattr(web, "title", ""),
                getattr(web, "uri", ""),
            )


class GeminiPriceOracle:
    """Asks Gemini, with Google Search enabled, for today's prices."""

    def __init__(
        self,
        client: Any | None = None,
        model: str | None = None,
        retailers: Sequence[Retailer] | None = None,
        product: ProductDetails | None = None,
    ) -> None:
        self._client = client
        self.model = model or Settings.ORACLE_MODEL
        self.retailers: tuple[Retailer, ...] = tuple(
            RETAILERS if retailers is None else retailers
        )
        self.product = product or PRODUCT

    def _get_client(self) -> Any:
        """Create the Gemini client on first use."""
        if self._client is None:
            api_key = Settings.ORACLE_API_KEY
            if not api_key:
                msg = (
                    "No Gemini API key configured "
                    "(set GEMINI_API_KEY or API_KEY)"
                )
                raise PriceOracleError(msg)
            self._client = genai.Client(api_key=api_key)
        return self._client

    async def fetch_current_prices(self) -> list[ScrapedPrice]:
        """Ask the oracle once for current prices.

        Raises :class:`PriceOracleError` when the call fails.  An
        unparseable answer is not a failure and yields ``[]``.
        """
        client = self._get_client()
        prompt = build_prompt(self.retailers, self.product)
        logger.info(
            "Requesting prices for %d retailers from %s",
            len(self.retailers),
            self.model,
        )
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
        except Exception as exc:
            logger.error(
                "Gemini request failed: %s", exc, exc_info=True,
            )
            msg = f"Gemini request failed: {exc}"
            raise PriceOracleError(msg) from exc

        try:
            _log_grounding(response)
            prices = parse_oracle_response(response.text, self.retailers)
        except Exception as exc:
            logger.error(
                "Unusable Gemini response: %s", exc, exc_info=True,
            )
            msg = f"Unusable Gemini response: {exc}"
            raise PriceOracleError(msg) from exc
        logger.info(
            "Oracle returned prices for %d/%d retailers",
            len(prices),
            len(self.retailers),
        )
        return prices
