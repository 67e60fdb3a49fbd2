# tests/test_deduplicator.py

"""Tests for ProductDeduplicator cross-source deduplication."""

import unittest

from src.filters.deduplicator import ProductDeduplicator
from src.models.product import NutritionFacts, Product, ProteinType, SourcePlatform


def _make(
    name: str,
    review_count: int = 10,
    source: SourcePlatform = SourcePlatform.RAKUTEN,
    item: str = "1",
) -> Product:
    """Create a minimal Product."""
    return Product(
        id=f"{source.value}_{item}",
        name=name,
        brand="ザバス",
        protein_type=ProteinType.WHEY,
        flavor="チョコレート",
        nutrition=NutritionFacts(protein_grams=20.0, calories=110.0, servings=33),
        price=3980,
        price_per_serving=121,
        review_average=4.5,
        review_count=review_count,
        source=source,
    )


class TestNormaliseName(unittest.TestCase):
    """Grouping keys ignore width, case, spacing and brackets."""

    def test_equivalent_spellings(self) -> None:
        """Variants of one title share a key."""
        key = ProductDeduplicator.normalise_name("ザバス ホエイプロテイン100 ココア 1kg")
        variants = [
            "ザバス　ホエイプロテイン１００　ココア　１ｋｇ",
            "【ザバス】ホエイプロテイン100・ココア (1kg)",
            "ザバス ホエイプロテイン100 ココア 1KG",
        ]
        for variant in variants:
            with self.subTest(variant=variant):
                self.assertEqual(ProductDeduplicator.normalise_name(variant), key)

    def test_different_products_differ(self) -> None:
        """Flavor or size differences keep keys apart."""
        self.assertNotEqual(
            ProductDeduplicator.normalise_name("ザバス ホエイ ココア 1kg"),
            ProductDeduplicator.normalise_name("ザバス ホエイ バニラ 1kg"),
        )


class TestDeduplicate(unittest.TestCase):
    """ProductDeduplicator.deduplicate behaviour."""

    def test_empty_list(self) -> None:
        """Empty input returns empty output."""
        kept, removed = ProductDeduplicator.deduplicate([])
        self.assertEqual(kept, [])
        self.assertEqual(removed, 0)

    def test_no_duplicates(self) -> None:
        """Unique products are all kept in order."""
        products = [
            _make("ザバス ホエイ ココア 1kg", item="a"),
            _make("ザバス ホエイ バニラ 1kg", item="b"),
        ]
        kept, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual(kept, products)
        self.assertEqual(removed, 0)

    def test_higher_review_count_wins(self) -> None:
        """The most-reviewed listing survives, whichever came first."""
        fewer = _make("ザバス ホエイ ココア 1kg", review_count=40, item="a")
        more = _make(
            "ザバス　ホエイ　ココア　1kg",
            review_count=900,
            source=SourcePlatform.YAHOO,
            item="b",
        )
        for order in ([fewer, more], [more, fewer]):
            with self.subTest(first=order[0].id):
                kept, removed = ProductDeduplicator.deduplicate(order)
                self.assertEqual(kept, [more])
                self.assertEqual(removed, 1)

    def test_tie_keeps_first_seen(self) -> None:
        """Equal review counts keep the earlier listing."""
        first = _make("ザバス ホエイ ココア 1kg", review_count=50, item="a")
        second = _make("ザバス ホエイ ココア 1kg", review_count=50, item="b")
        kept, _removed = ProductDeduplicator.deduplicate([first, second])
        self.assertEqual([p.id for p in kept], ["rakuten_a"])

    def test_winner_takes_first_slot(self) -> None:
        """A replacement keeps the position of its group's first listing."""
        products = [
            _make("ザバス ホエイ ココア 1kg", review_count=5, item="a"),
            _make("ソイプロテイン プレーン 1kg", review_count=100, item="b"),
            _make("ザバス ホエイ ココア 1kg", review_count=500, item="c"),
        ]
        kept, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual([p.id for p in kept], ["rakuten_c", "rakuten_b"])
        self.assertEqual(removed, 1)

    def test_output_length(self) -> None:
        """len(output) == len(input) - overlaps across groups."""
        products = [
            _make("A プロテイン 1kg", item="1"),
            _make("A プロテイン 1kg", item="2"),
            _make("A プロテイン 1kg", item="3"),
            _make("B プロテイン 1kg", item="4"),
            _make("B プロテイン 1kg", item="5"),
            _make("C プロテイン 1kg", item="6"),
        ]
        kept, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual(len(kept), 3)
        self.assertEqual(removed, 3)
        self.assertEqual(len(kept), len(products) - removed)


if __name__ == "__main__":
    unittest.main()
