# src/pipeline/ranker.py

"""Request-scoped ranking: normalise -> validate -> dedupe -> score -> sort."""

import logging
from dataclasses import dataclass, field

from src.config.pipeline_config import DEFAULT_CONFIG, PipelineConfig
from src.filters.deduplicator import ProductDeduplicator
from src.filters.product_validator import ProductValidator
from src.models.errors import MalformedListingError
from src.models.preferences import UserPreferenceProfile
from src.models.product import Product, ProteinType, ScoredProduct
from src.models.raw_listing import SourceBatch
from src.pipeline.normalizer import normalize
from src.pipeline.scorer import score_with_reason

logger = logging.getLogger("protein_match.pipeline")

_PLANT_TYPES = frozenset({ProteinType.SOY, ProteinType.PLANT})
_NIGHT_TYPES = frozenset({ProteinType.CASEIN})


@dataclass
class RankingResult:
    """Ranked page plus counters describing what was dropped on the way."""

    products: list[ScoredProduct] = field(
        default_factory=lambda: list[ScoredProduct]()
    )
    # Valid, deduplicated pool the page was cut from
    candidates: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    sources: list[str] = field(
        default_factory=lambda: list[str]()
    )
    listing_count: int = 0
    malformed_count: int = 0
    invalid_count: int = 0
    deduplicated_count: int = 0
    total_found: int = 0


def derive_preferred_types(
    prefs: UserPreferenceProfile,
) -> frozenset[ProteinType] | None:
    """Protein types the answers point at, or ``None`` when they don't."""
    if prefs.body == "plant" or prefs.lactose_intolerant or prefs.goal == "beauty":
        return _PLANT_TYPES
    if prefs.timing == "night":
        return _NIGHT_TYPES
    return None


def normalize_batches(
    batches: list[SourceBatch],
    config: PipelineConfig = DEFAULT_CONFIG,
) -> tuple[list[Product], int]:
    """Normalise every listing, skipping malformed ones.

    Returns the products and the count of skipped listings.
    """
    products: list[Product] = []
    malformed = 0
    for batch in batches:
        for raw in batch.listings:
            try:
                products.append(normalize(raw, batch.platform, config))
            except MalformedListingError as exc:
                malformed += 1
                logger.warning("Skipping malformed listing: %s", exc)
    return products, malformed


def _select_page(
    ranked: list[ScoredProduct],
    preferred: frozenset[ProteinType] | None,
    config: PipelineConfig,
) -> list[ScoredProduct]:
    """Truncate to a page, reserving quota for preferred and other types.

    Slots a group cannot fill go to the other group; the page keeps
    score order.
    """
    if preferred is None:
        return ranked[: config.page_size]

    matching = [
        i for i, s in enumerate(ranked)
        if s.product.protein_type in preferred
    ]
    others = [
        i for i, s in enumerate(ranked)
        if s.product.protein_type not in preferred
    ]

    chosen = matching[: config.preferred_type_quota]
    chosen += others[: config.other_type_quota]
    spare = config.page_size - len(chosen)
    if spare > 0:
        leftovers = (
            matching[config.preferred_type_quota:]
            + others[config.other_type_quota:]
        )
        chosen += leftovers[:spare]

    return [ranked[i] for i in sorted(chosen)[: config.page_size]]


def rank_candidates(
    products: list[Product],
    prefs: UserPreferenceProfile,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> list[ScoredProduct]:
    """Score, sort and page already-validated products."""
    scored: list[ScoredProduct] = []
    for product in products:
        total, reason = score_with_reason(product, prefs)
        scored.append(
            ScoredProduct(product=product, score=total, match_reason=reason)
        )

    # Stable: equal score and review count keep input order
    scored.sort(key=lambda s: (-s.score, -s.product.review_count))

    page = _select_page(scored, derive_preferred_types(prefs), config)
    for rank, item in enumerate(page, 1):
        item.rank = rank
    return page


def rank_products(
    batches: list[SourceBatch],
    prefs: UserPreferenceProfile,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> RankingResult:
    """Run the full pipeline over listings from several marketplaces."""
    result = RankingResult(
        sources=[b.platform.value for b in batches],
        listing_count=sum(len(b.listings) for b in batches),
    )

    products, result.malformed_count = normalize_batches(batches, config)
    products, result.invalid_count = ProductValidator.validate(
        products, config
    )
    products, result.deduplicated_count = ProductDeduplicator.deduplicate(
        products
    )
    result.candidates = products
    result.total_found = len(products)
    result.products = rank_candidates(products, prefs, config)

    logger.info(
        "Ranked %d of %d listings (%d malformed, %d invalid, %d duplicates)",
        len(result.products),
        result.listing_count,
        result.malformed_count,
        result.invalid_count,
        result.deduplicated_count,
    )
    return result
