# src/sources/rakuten_source.py

"""Rakuten Ichiba item search API source."""

from typing import Any

from src.models.errors import SourceUnavailableError
from src.models.product import SourcePlatform
from src.models.raw_listing import RawListing
from src.sources.base_source import BaseSource


class RakutenSource(BaseSource):
    """Rakuten Ichiba Item Search (version 20170706, formatVersion 2)."""

    platform = SourcePlatform.RAKUTEN

    SEARCH_API = (
        "https://app.rakuten.co.jp/services/api/IchibaItem/Search/20170706"
    )

    @staticmethod
    def _image_urls(raw_urls: Any) -> list[str]:
        """formatVersion 2 returns strings, version 1 returns dicts."""
        urls: list[str] = []
        for entry in raw_urls or []:
            if isinstance(entry, dict):
                url = str(entry.get("imageUrl", ""))
            else:
                url = str(entry)
            if url:
                urls.append(url)
        return urls

    @staticmethod
    def _parse_item(entry: dict[str, Any]) -> RawListing:
        """Parse a single Rakuten item into a RawListing."""
        item: dict[str, Any] = entry.get("Item", entry)
        image_urls = RakutenSource._image_urls(
            item.get("mediumImageUrls")
        ) or RakutenSource._image_urls(item.get("smallImageUrls"))
        return RawListing(
            title=str(item.get("itemName", "") or ""),
            price=BaseSource.to_int(item.get("itemPrice")),
            description=str(item.get("itemCaption", "") or ""),
            review_count=BaseSource.to_int(item.get("reviewCount")),
            review_average=BaseSource.to_float(item.get("reviewAverage")),
            image_urls=image_urls,
            shop_name=str(item.get("shopName", "") or ""),
            item_url=str(item.get("itemUrl", "") or ""),
            affiliate_url=str(item.get("affiliateUrl", "") or ""),
            item_code=str(item["itemCode"]) if item.get("itemCode") else None,
        )

    def search(self, query: str) -> list[RawListing]:
        """Search Rakuten for listings matching the query."""
        app_id = self.settings.RAKUTEN_APP_ID
        if not app_id:
            raise SourceUnavailableError(
                self.source_name, "RAKUTEN_APP_ID is not configured"
            )

        params: dict[str, str] = {
            "applicationId": app_id,
            "keyword": query,
            "hits": str(self.settings.HITS_PER_SOURCE),
            "page": "1",
            "sort": "standard",
            "formatVersion": "2",
        }
        if self.settings.RAKUTEN_AFFILIATE_ID:
            params["affiliateId"] = self.settings.RAKUTEN_AFFILIATE_ID

        data = self._fetch_json(self.SEARCH_API, params)
        items: list[dict[str, Any]] = data.get("Items") or []
        listings = [self._parse_item(item) for item in items]
        self.logger.info(
            "[rakuten] %d listings for '%s'", len(listings), query
        )
        return listings
