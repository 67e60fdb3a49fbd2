# src/filters/product_validator.py

"""Product validation: drop anything that is not a protein powder."""

import logging

from src.config.pipeline_config import DEFAULT_CONFIG, PipelineConfig
from src.extraction.keyword_tables import EXCLUDED_KEYWORDS, PROTEIN_KEYWORDS
from src.extraction.text_extractor import has_weight_token, normalise_text
from src.models.product import Product

logger = logging.getLogger("protein_match.filters")


def rejection_reason(
    product: Product,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> str | None:
    """Return why *product* fails the validity gate, or ``None`` if it passes."""
    text = normalise_text(f"{product.name} {product.description}")

    excluded = next((kw for kw in EXCLUDED_KEYWORDS if kw in text), None)
    if excluded is not None:
        return f"excluded keyword '{excluded}'"
    if not any(kw in text for kw in PROTEIN_KEYWORDS):
        return "no protein keyword"
    if product.nutrition.protein_grams < config.min_protein_grams:
        return (
            f"protein {product.nutrition.protein_grams}g "
            f"< {config.min_protein_grams}g"
        )
    if not (
        config.min_price_per_serving
        <= product.price_per_serving
        <= config.max_price_per_serving
    ):
        return f"price per serving {product.price_per_serving} out of band"
    if config.require_reviews and product.review_count < 1:
        return "no reviews"
    if config.require_weight_token and not has_weight_token(product.name):
        return "no weight in title"
    return None


def is_valid_product(
    product: Product,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> bool:
    """True when *product* is a protein powder with plausible numbers."""
    return rejection_reason(product, config) is None


class ProductValidator:
    """Validate products and drop those that fail the protein gate."""

    @staticmethod
    def validate(
        products: list[Product],
        config: PipelineConfig = DEFAULT_CONFIG,
    ) -> tuple[list[Product], int]:
        """Keep valid protein products.

        Returns the valid products and the count of dropped items.
        """
        valid: list[Product] = []
        dropped = 0

        for product in products:
            reason = rejection_reason(product, config)
            if reason is not None:
                logger.debug(
                    "Dropped %s (%s): %s",
                    product.id,
                    product.name,
                    reason,
                )
                dropped += 1
                continue
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d non-protein or implausible products",
                dropped,
            )

        return valid, dropped
