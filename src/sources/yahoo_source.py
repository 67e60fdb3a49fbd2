# src/sources/yahoo_source.py

"""Yahoo! Shopping item search API source."""

from typing import Any

from src.models.errors import SourceUnavailableError
from src.models.product import SourcePlatform
from src.models.raw_listing import RawListing
from src.sources.base_source import BaseSource


class YahooSource(BaseSource):
    """Yahoo! Shopping itemSearch (V3)."""

    platform = SourcePlatform.YAHOO

    SEARCH_API = (
        "https://shopping.yahooapis.jp/ShoppingWebService/V3/itemSearch"
    )

    @staticmethod
    def _parse_hit(hit: dict[str, Any]) -> RawListing:
        """Parse a single Yahoo! hit into a RawListing."""
        image: dict[str, Any] = hit.get("image") or {}
        review: dict[str, Any] = hit.get("review") or {}
        seller: dict[str, Any] = hit.get("seller") or {}
        image_urls = [
            str(url)
            for url in (image.get("medium"), image.get("small"))
            if url
        ]
        return RawListing(
            title=str(hit.get("name", "") or ""),
            price=BaseSource.to_int(hit.get("price")),
            description=str(
                hit.get("description") or hit.get("caption") or ""
            ),
            review_count=BaseSource.to_int(review.get("count")),
            review_average=BaseSource.to_float(review.get("rate")),
            image_urls=image_urls,
            shop_name=str(seller.get("name") or "Yahoo!ショッピング"),
            item_url=str(hit.get("url", "") or ""),
            item_code=str(hit["code"]) if hit.get("code") else None,
        )

    def search(self, query: str) -> list[RawListing]:
        """Search Yahoo! Shopping for listings matching the query."""
        app_id = self.settings.YAHOO_APP_ID
        if not app_id:
            raise SourceUnavailableError(
                self.source_name, "YAHOO_APP_ID is not configured"
            )

        params: dict[str, str] = {
            "appid": app_id,
            "query": query,
            "results": str(self.settings.HITS_PER_SOURCE),
            "sort": "-score",
            "image_size": "300",
        }
        if self.settings.YAHOO_AFFILIATE_ID:
            params["affiliate_type"] = "vc"
            params["affiliate_id"] = self.settings.YAHOO_AFFILIATE_ID

        data = self._fetch_json(self.SEARCH_API, params)
        hits: list[dict[str, Any]] = data.get("hits") or []
        listings = [self._parse_hit(hit) for hit in hits]
        self.logger.info(
            "[yahoo] %d listings for '%s'", len(listings), query
        )
        return listings
