# src/models/retailer.py

"""Retailer registry and tracked-product models."""

from dataclasses import dataclass

from src.config.settings import Settings


@dataclass(frozen=True)
class Retailer:
    """An online shop whose price for the tracked product is followed."""

    id: str
    name: str
    url: str
    color: str


@dataclass(frozen=True)
class ProductDetails:
    """Descriptive metadata for the single tracked product."""

    name: str
    image_url: str
    description: str


def load_retailers(
    entries: list[dict[str, str]] | None = None,
) -> tuple[Retailer, ...]:
    """Build the immutable retailer registry from configuration.

    Raises ``ValueError`` when two entries share an id.
    """
    raw = Settings.RETAILERS if entries is None else entries
    retailers = tuple(
        Retailer(
            id=e["id"],
            name=e["name"],
            url=e["url"],
            color=e["color"],
        )
        for e in raw
    )
    ids = [r.id for r in retailers]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        msg = f"Duplicate retailer id(s): {', '.join(duplicates)}"
        raise ValueError(msg)
    return retailers


def load_product() -> ProductDetails:
    """Return the tracked product's details from configuration."""
    return ProductDetails(
        name=Settings.PRODUCT["name"],
        image_url=Settings.PRODUCT["image_url"],
        description=Settings.PRODUCT["description"],
    )


RETAILERS: tuple[Retailer, ...] = load_retailers()
PRODUCT: ProductDetails = load_product()
