# tests/test_ranker.py

"""Tests for the request-scoped ranking pipeline."""

import dataclasses
import unittest

from src.config.pipeline_config import DEFAULT_CONFIG
from src.models.preferences import UserPreferenceProfile
from src.models.product import NutritionFacts, Product, ProteinType, SourcePlatform
from src.models.raw_listing import RawListing, SourceBatch
from src.pipeline.ranker import (
    derive_preferred_types,
    normalize_batches,
    rank_candidates,
    rank_products,
)
from src.storage.fallback_catalog import fallback_batches

NIGHT_PREFS = UserPreferenceProfile(
    goal="health",
    exercise="light",
    budget="low",
    flavor="coffee",
    timing="night",
)
PLAIN_PREFS = dataclasses.replace(NIGHT_PREFS, timing="")


def _product(
    idx: int,
    protein_type: ProteinType = ProteinType.WHEY,
    review_average: float = 4.0,
    review_count: int = 100,
) -> Product:
    """Create a Product whose score is driven by its reviews."""
    return Product(
        id=f"rakuten_{protein_type.value}_{idx}",
        name=f"プロテイン {protein_type.value} {idx} 1kg",
        brand="その他",
        protein_type=protein_type,
        flavor="プレーン",
        nutrition=NutritionFacts(protein_grams=20.0, calories=110.0, servings=33),
        price=3300,
        price_per_serving=100,
        review_average=review_average,
        review_count=review_count,
        source=SourcePlatform.RAKUTEN,
    )


def _graded(
    count: int, protein_type: ProteinType, top: float,
) -> list[Product]:
    """*count* products with strictly falling review averages from *top*."""
    return [
        _product(i, protein_type, review_average=top - i * 0.1)
        for i in range(count)
    ]


class TestDerivePreferredTypes(unittest.TestCase):
    """Preferred protein types from the answers."""

    def test_plant_leaning_answers(self) -> None:
        """Plant body, lactose intolerance or beauty prefer soy/plant."""
        for prefs in (
            dataclasses.replace(PLAIN_PREFS, body="plant"),
            dataclasses.replace(PLAIN_PREFS, lactose_intolerant=True),
            dataclasses.replace(PLAIN_PREFS, goal="beauty"),
        ):
            with self.subTest(prefs=prefs):
                self.assertEqual(
                    derive_preferred_types(prefs),
                    frozenset({ProteinType.SOY, ProteinType.PLANT}),
                )

    def test_night_prefers_casein(self) -> None:
        """Night timing prefers casein."""
        self.assertEqual(
            derive_preferred_types(NIGHT_PREFS), frozenset({ProteinType.CASEIN})
        )

    def test_no_preference(self) -> None:
        """Neutral answers impose no quota."""
        self.assertIsNone(derive_preferred_types(PLAIN_PREFS))


class TestRankCandidates(unittest.TestCase):
    """Sorting, paging and quotas."""

    def test_sorted_and_ranked(self) -> None:
        """Descending score, ranks 1..n."""
        products = _graded(5, ProteinType.WHEY, top=4.0)[::-1]
        ranked = rank_candidates(products, PLAIN_PREFS)
        scores = [s.score for s in ranked]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertEqual([s.rank for s in ranked], [1, 2, 3, 4, 5])
        self.assertEqual(ranked[0].product.id, "rakuten_whey_0")

    def test_no_quota_truncates_to_page(self) -> None:
        """Without preferred types the top page_size win."""
        ranked = rank_candidates(_graded(15, ProteinType.WHEY, 5.0), PLAIN_PREFS)
        self.assertEqual(len(ranked), DEFAULT_CONFIG.page_size)
        self.assertEqual(ranked[-1].product.id, "rakuten_whey_9")

    def test_quota_reserves_preferred_slots(self) -> None:
        """Six casein slots even though every whey outscores them."""
        products = (
            _graded(10, ProteinType.WHEY, top=5.0)
            + _graded(8, ProteinType.CASEIN, top=3.0)
        )
        ranked = rank_candidates(products, NIGHT_PREFS)
        types = [s.product.protein_type for s in ranked]
        self.assertEqual(len(ranked), 10)
        self.assertEqual(types.count(ProteinType.CASEIN), 6)
        self.assertEqual(types.count(ProteinType.WHEY), 4)
        # Page keeps score order: the four whey first
        self.assertEqual(types[:4], [ProteinType.WHEY] * 4)
        self.assertEqual([s.rank for s in ranked], list(range(1, 11)))

    def test_short_group_spares_go_to_the_other(self) -> None:
        """Two casein products leave eight slots for whey."""
        products = (
            _graded(12, ProteinType.WHEY, top=5.0)
            + _graded(2, ProteinType.CASEIN, top=3.0)
        )
        ranked = rank_candidates(products, NIGHT_PREFS)
        types = [s.product.protein_type for s in ranked]
        self.assertEqual(len(ranked), 10)
        self.assertEqual(types.count(ProteinType.CASEIN), 2)
        self.assertEqual(types.count(ProteinType.WHEY), 8)

    def test_short_other_group(self) -> None:
        """Preferred products fill the slots others cannot."""
        products = (
            _graded(1, ProteinType.WHEY, top=5.0)
            + _graded(12, ProteinType.CASEIN, top=4.0)
        )
        ranked = rank_candidates(products, NIGHT_PREFS)
        types = [s.product.protein_type for s in ranked]
        self.assertEqual(types.count(ProteinType.CASEIN), 9)
        self.assertEqual(types.count(ProteinType.WHEY), 1)

    def test_fewer_than_a_page(self) -> None:
        """Small candidate sets come back whole."""
        ranked = rank_candidates(_graded(3, ProteinType.CASEIN, 4.0), NIGHT_PREFS)
        self.assertEqual(len(ranked), 3)

    def test_tie_broken_by_review_count(self) -> None:
        """Equal scores order by review count (both past the volume cap)."""
        fewer = _product(1, review_count=1000)
        more = _product(2, review_count=5000)
        ranked = rank_candidates([fewer, more], PLAIN_PREFS)
        self.assertEqual(ranked[0].score, ranked[1].score)
        self.assertEqual(ranked[0].product.id, "rakuten_whey_2")

    def test_custom_page_size(self) -> None:
        """Quotas and page size come from the config."""
        config = dataclasses.replace(
            DEFAULT_CONFIG, page_size=4, preferred_type_quota=2, other_type_quota=2
        )
        products = (
            _graded(5, ProteinType.WHEY, top=5.0)
            + _graded(5, ProteinType.CASEIN, top=3.0)
        )
        ranked = rank_candidates(products, NIGHT_PREFS, config)
        types = [s.product.protein_type for s in ranked]
        self.assertEqual(types, [ProteinType.WHEY] * 2 + [ProteinType.CASEIN] * 2)


class TestRankProducts(unittest.TestCase):
    """The full pipeline over raw batches."""

    def test_counts_every_drop(self) -> None:
        """Malformed, invalid and duplicate listings are counted."""
        good = RawListing(title="ホエイプロテイン チョコ 1kg", price=3300, review_count=10)
        batches = [
            SourceBatch(
                platform=SourcePlatform.RAKUTEN,
                listings=[
                    good,
                    RawListing(title="", price=3000),
                    RawListing(title="ホエイプロテイン 1kg", price=0),
                    RawListing(title="プロテイン シェイカー 600ml", price=1200),
                ],
            ),
            SourceBatch(
                platform=SourcePlatform.YAHOO,
                listings=[
                    RawListing(
                        title="ホエイプロテイン　チョコ　1kg",
                        price=3500,
                        review_count=99,
                    ),
                ],
            ),
        ]
        result = rank_products(batches, PLAIN_PREFS)
        self.assertEqual(result.listing_count, 5)
        self.assertEqual(result.malformed_count, 2)
        self.assertEqual(result.invalid_count, 1)
        self.assertEqual(result.deduplicated_count, 1)
        self.assertEqual(result.total_found, 1)
        self.assertEqual(len(result.products), 1)
        self.assertEqual(result.products[0].product.source, SourcePlatform.YAHOO)

    def test_only_surviving_source_contributes(self) -> None:
        """Failed sources hand over no batch; the survivor alone is ranked."""
        survivor = SourceBatch(
            platform=SourcePlatform.YAHOO,
            listings=[RawListing(title="ソイプロテイン ココア 1kg", price=2980)],
        )
        result = rank_products([survivor], PLAIN_PREFS)
        self.assertEqual(result.sources, ["yahoo"])
        self.assertEqual(len(result.products), 1)
        self.assertEqual(result.candidates[0].source, SourcePlatform.YAHOO)

    def test_empty_batches(self) -> None:
        """No listings, no products, no error."""
        result = rank_products([], PLAIN_PREFS)
        self.assertEqual(result.products, [])
        self.assertEqual(result.total_found, 0)

    def test_fallback_catalog_is_all_valid(self) -> None:
        """Every curated fallback listing survives the pipeline."""
        products, malformed = normalize_batches(fallback_batches())
        self.assertEqual(malformed, 0)
        result = rank_products(fallback_batches(), PLAIN_PREFS)
        self.assertEqual(result.total_found, len(products))
        self.assertEqual(result.invalid_count, 0)

    def test_match_reason_attached(self) -> None:
        """Each ranked product carries its reason string."""
        result = rank_products(fallback_batches(), PLAIN_PREFS)
        for item in result.products:
            self.assertIsInstance(item.match_reason, str)
        self.assertTrue(any(item.match_reason for item in result.products))


if __name__ == "__main__":
    unittest.main()
