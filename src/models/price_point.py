# src/models/price_point.py

"""Daily price snapshot models for the history store."""

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_price(value: object) -> float | None:
    """Coerce a stored or scraped price into ``float | None``.

    Zero, negative, non-finite and non-numeric values all mean
    "no credible price known" and become ``None``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        price = float(value)
    except OverflowError:
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


@dataclass(frozen=True)
class ScrapedPrice:
    """One retailer price returned by a single oracle call."""

    retailer_id: str
    price: float


@dataclass
class PricePoint:
    """All retailer prices recorded for one calendar day.

    ``prices`` maps retailer id to price, ``None`` when unknown.
    """

    date: date
    prices: dict[str, float | None] = field(
        default_factory=lambda: dict[str, float | None]()
    )

    def price_for(self, retailer_id: str) -> float | None:
        """Return the price for *retailer_id*, or ``None`` if unknown."""
        return self.prices.get(retailer_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the persisted wire format.

        ``{"date": "YYYY-MM-DD", "<retailer id>": price, ...}`` with
        unknown prices omitted.
        """
        record: dict[str, Any] = {"date": self.date.isoformat()}
        for retailer_id, price in self.prices.items():
            if price is not None:
                record[retailer_id] = price
        return record

    @classmethod
    def from_dict(
        cls,
        record: dict[str, Any],
        retailer_ids: list[str],
    ) -> "PricePoint":
        """Build a PricePoint from one persisted record.

        Raises ``ValueError`` when the record is malformed: missing or
        non-ISO ``date``, or a non-numeric value for a known retailer.
        Keys that are not registered retailers are ignored.
        """
        raw_date = record.get("date")
        if not isinstance(raw_date, str) or not _ISO_DATE_RE.match(
            raw_date
        ):
            msg = f"Record has no YYYY-MM-DD date: {record!r}"
            raise ValueError(msg)
        day = date.fromisoformat(raw_date)

        prices: dict[str, float | None] = {}
        for retailer_id in retailer_ids:
            value = record.get(retailer_id)
            if value is not None and (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
            ):
                msg = (
                    f"Non-numeric price for '{retailer_id}' "
                    f"on {raw_date}: {value!r}"
                )
                raise ValueError(msg)
            prices[retailer_id] = normalize_price(value)
        return cls(date=day, prices=prices)
