# src/models/raw_listing.py

"""Source-agnostic shape of a marketplace search hit, before normalisation."""

from dataclasses import dataclass, field

from src.models.product import SourcePlatform


@dataclass
class RawListing:
    """A single search hit as returned by a marketplace, mapped by its adapter."""

    title: str
    price: int
    description: str = ""
    review_count: int = 0
    review_average: float = 0.0
    image_urls: list[str] = field(default_factory=lambda: list[str]())
    shop_name: str = ""
    item_url: str = ""
    affiliate_url: str = ""
    item_code: str | None = None


@dataclass
class SourceBatch:
    """All listings one marketplace returned for one request."""

    platform: SourcePlatform
    listings: list[RawListing] = field(
        default_factory=lambda: list[RawListing]()
    )
