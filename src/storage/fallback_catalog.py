# src/storage/fallback_catalog.py

"""Small curated catalog served when no marketplace and no cache answer."""

from src.models.product import SourcePlatform
from src.models.raw_listing import RawListing, SourceBatch

FALLBACK_LISTINGS: list[RawListing] = [
    RawListing(
        title="ザバス ホエイプロテイン100 ココア味 1050g",
        price=3980,
        description=(
            "吸収の良いホエイプロテインを100%使用。"
            "1食(21g)あたり エネルギー 83kcal たんぱく質 15.0g"
        ),
        review_count=1234,
        review_average=4.5,
        shop_name="ProteinMatch セレクト",
        item_url="https://item.rakuten.co.jp/",
        item_code="fallback-savas-whey-cocoa",
    ),
    RawListing(
        title="ビーレジェンド ホエイプロテイン 南国パイン風味 1kg",
        price=3480,
        description="コスパに優れたホエイプロテイン。美味しさとコストパフォーマンスを追求。",
        review_count=2890,
        review_average=4.6,
        shop_name="ProteinMatch セレクト",
        item_url="https://item.rakuten.co.jp/",
        item_code="fallback-belegend-whey-pine",
    ),
    RawListing(
        title="ソイプロテイン プレーン味 無添加 1kg",
        price=2980,
        description="植物性プロテイン100%使用。人工甘味料・香料不使用で自然な味わい。",
        review_count=567,
        review_average=4.2,
        shop_name="ProteinMatch セレクト",
        item_url="https://item.rakuten.co.jp/",
        item_code="fallback-soy-plain",
    ),
]


def fallback_batches() -> list[SourceBatch]:
    """The curated catalog as a single batch, ready for the ranker."""
    return [
        SourceBatch(
            platform=SourcePlatform.RAKUTEN,
            listings=list(FALLBACK_LISTINGS),
        )
    ]
