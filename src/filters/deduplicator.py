# src/filters/deduplicator.py

"""Product deduplication across multiple marketplace sources."""

import logging
import re

from src.extraction.text_extractor import normalise_text
from src.models.product import Product

logger = logging.getLogger("protein_match.filters")


class ProductDeduplicator:
    """Collapse listings of the same product, keeping the most-reviewed one."""

    # Whitespace, punctuation and bracket characters (ASCII and Japanese)
    _NOISE_RE = re.compile(
        r"[\s\-_()\[\]{}（）【】「」『』〔〕・,.、。!?！？/:;'\"]+"
    )

    @staticmethod
    def normalise_name(name: str) -> str:
        """Normalise a product name to a grouping key.

        Folds width, lowercases, and strips whitespace,
        punctuation and bracket characters.
        """
        return ProductDeduplicator._NOISE_RE.sub(
            "", normalise_text(name)
        )

    @staticmethod
    def deduplicate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Remove duplicate products, keeping the most-reviewed per group.

        The winner takes the slot of the first-seen listing of its group;
        on equal review counts the first-seen listing stays.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not products:
            return [], 0

        seen_names: dict[str, int] = {}
        kept: list[Product] = []
        removed = 0

        for product in products:
            key = ProductDeduplicator.normalise_name(product.name)

            if key in seen_names:
                existing_idx = seen_names[key]
                if product.review_count > kept[existing_idx].review_count:
                    kept[existing_idx] = product
                removed += 1
                continue

            seen_names[key] = len(kept)
            kept.append(product)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate products",
                removed,
            )

        return kept, removed
