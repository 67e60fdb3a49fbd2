# src/pipeline/normalizer.py

"""Raw marketplace listing -> canonical Product."""

import hashlib
import re
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bs4 import BeautifulSoup

from src.config.pipeline_config import DEFAULT_CONFIG, PipelineConfig
from src.extraction.text_extractor import (
    extract_brand,
    extract_flavor,
    extract_nutrition,
    extract_protein_type,
    extract_tags,
    round_half_up,
)
from src.models.errors import MalformedListingError
from src.models.product import Product, SourcePlatform
from src.models.raw_listing import RawListing

_RAKUTEN_THUMBNAIL_HOST = "thumbnail.image.rakuten.co.jp"
_IMAGE_SIZE_RE = re.compile(r"\?_ex=\d+x\d+")
_WHITESPACE_RE = re.compile(r"\s+")
_ELLIPSIS = "..."


def strip_html(text: str) -> str:
    """Drop markup from a caption and collapse whitespace."""
    if not text:
        return ""
    if "<" in text:
        text = BeautifulSoup(text, "lxml").get_text(" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, length: int) -> str:
    """Cut *text* to *length* characters, marking the cut with an ellipsis."""
    if len(text) <= length:
        return text
    return text[:length].rstrip() + _ELLIPSIS


def high_resolution_image(url: str, size: str = DEFAULT_CONFIG.hires_image_size) -> str:
    """Swap a Rakuten thumbnail size parameter for a larger one."""
    if _RAKUTEN_THUMBNAIL_HOST in url and _IMAGE_SIZE_RE.search(url):
        return _IMAGE_SIZE_RE.sub(f"?_ex={size}", url)
    return url


def _with_affiliate_id(url: str, affiliate_id: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme:
        return url
    query = dict(parse_qsl(parsed.query))
    query["rafID"] = affiliate_id
    return urlunparse(parsed._replace(query=urlencode(query)))


def _purchase_url(
    raw: RawListing, platform: SourcePlatform, config: PipelineConfig,
) -> str:
    if raw.affiliate_url:
        return raw.affiliate_url
    if (
        raw.item_url
        and platform is SourcePlatform.RAKUTEN
        and config.rakuten_affiliate_id
    ):
        return _with_affiliate_id(raw.item_url, config.rakuten_affiliate_id)
    return raw.item_url


def _listing_id(raw: RawListing, platform: SourcePlatform) -> str:
    if raw.item_code:
        return f"{platform.value}_{raw.item_code}"
    # Deterministic token keeps normalize() idempotent
    digest = hashlib.sha1(
        f"{raw.title}|{raw.item_url}".encode("utf-8")
    ).hexdigest()[:12]
    return f"{platform.value}_{digest}"


def normalize(
    raw: RawListing,
    platform: SourcePlatform,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> Product:
    """Convert one raw listing into a canonical Product.

    Raises:
        MalformedListingError: the listing has no title or no positive price.
    """
    title = (raw.title or "").strip()
    if not title:
        raise MalformedListingError(
            f"{platform.value} listing {raw.item_code or '?'} has no title"
        )
    if raw.price <= 0:
        raise MalformedListingError(
            f"{platform.value} listing '{title}' has no positive price"
        )

    description = strip_html(raw.description)
    nutrition = extract_nutrition(title, description, config)
    servings = nutrition.servings if nutrition.servings >= 1 else config.default_servings

    image_url = next((u for u in raw.image_urls if u), "")

    return Product(
        id=_listing_id(raw, platform),
        name=title,
        brand=extract_brand(title),
        protein_type=extract_protein_type(title, description),
        flavor=extract_flavor(title),
        nutrition=nutrition,
        price=raw.price,
        price_per_serving=round_half_up(raw.price / servings),
        review_average=min(max(raw.review_average, 0.0), 5.0),
        review_count=max(raw.review_count, 0),
        source=platform,
        shop_name=raw.shop_name,
        purchase_url=_purchase_url(raw, platform, config),
        image_url=high_resolution_image(image_url, config.hires_image_size),
        description=truncate(description, config.description_length),
        tags=extract_tags(title),
    )
