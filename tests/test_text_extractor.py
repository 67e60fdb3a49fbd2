# tests/test_text_extractor.py

"""Tests for brand, flavor, type and nutrition extraction from listing text."""

import unittest

from src.extraction.keyword_tables import BRAND_UNKNOWN, FLAVOR_OTHER
from src.extraction.text_extractor import (
    estimate_servings,
    extract_brand,
    extract_flavor,
    extract_nutrition,
    extract_protein_type,
    extract_sugar,
    extract_tags,
    extract_weight_grams,
    has_weight_token,
    round_half_up,
)
from src.models.product import NutritionFacts, ProteinType


class TestRoundHalfUp(unittest.TestCase):
    """round_half_up never rounds .5 to even."""

    def test_half_rounds_up(self) -> None:
        """0.5, 2.5 and 32.5 all round away from zero."""
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(32.5), 33)

    def test_below_half_rounds_down(self) -> None:
        """145.909... rounds to 146, 33.33 to 33."""
        self.assertEqual(round_half_up(4815 / 33), 146)
        self.assertEqual(round_half_up(1000 / 30), 33)


class TestExtractBrand(unittest.TestCase):
    """Brand lookup via the ordered variant table."""

    def test_known_brands(self) -> None:
        """Spelling variants map onto one canonical brand."""
        cases = {
            "ザバス ホエイプロテイン100 リッチショコラ味 980g": "ザバス",
            "SAVAS ホエイプロテイン 1kg": "ザバス",
            "MYPROTEIN Impact ホエイ 1kg": "マイプロテイン",
            "ＭＹＰＲＯＴＥＩＮ ホエイ 1kg": "マイプロテイン",
            "ビーレジェンド ホエイプロテイン 1kg": "beLEGEND",
            "ゴールドジム ホエイプロテイン 1500g": "ゴールドジム",
            "Optimum Nutrition ゴールドスタンダード 2.27kg": "オプティマム",
        }
        for title, expected in cases.items():
            with self.subTest(title=title):
                self.assertEqual(extract_brand(title), expected)

    def test_unknown_brand_falls_back_to_first_token(self) -> None:
        """An unlisted maker is taken from the first title token."""
        self.assertEqual(
            extract_brand("ノーブランド ソイプロテイン 1kg"), "ノーブランド"
        )
        self.assertEqual(
            extract_brand("【国産】ホエイ 1kg"), "国産"
        )

    def test_empty_title_is_sentinel(self) -> None:
        """An empty title yields the unknown-brand sentinel."""
        self.assertEqual(extract_brand(""), BRAND_UNKNOWN)
        self.assertEqual(extract_brand("   "), BRAND_UNKNOWN)


class TestExtractFlavor(unittest.TestCase):
    """Flavor synonyms collapse onto canonical labels."""

    def test_synonyms(self) -> None:
        """Each synonym resolves to its group's label."""
        cases = {
            "リッチショコラ味": "チョコレート",
            "ココア味": "チョコレート",
            "Chocolate": "チョコレート",
            "いちごミルク風味": "ストロベリー",
            "ロイヤルミルクティー風味": "ミルクティー",
            "カフェオレ風味": "コーヒー",
            "南国パイン風味": "フルーツ",
            "抹茶味": "抹茶",
            "ノンフレーバー": "プレーン",
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(extract_flavor(text), expected)

    def test_no_flavor_is_sentinel(self) -> None:
        """A title with no known flavor gets the sentinel label."""
        self.assertEqual(extract_flavor("ホエイプロテイン 1kg"), FLAVOR_OTHER)


class TestExtractProteinType(unittest.TestCase):
    """Protein type follows the documented precedence."""

    def test_precedence(self) -> None:
        """soy > casein > wpi > plant > other > whey."""
        cases = {
            "ソイ&ホエイ ブレンドプロテイン": ProteinType.SOY,
            "大豆プロテイン 1kg": ProteinType.SOY,
            "カゼイン WPI ブレンド": ProteinType.CASEIN,
            "WPI アイソレート 1kg": ProteinType.WPI,
            "ピープロテイン 植物性 1kg": ProteinType.PLANT,
            "エッグプロテイン 500g": ProteinType.OTHER,
            "ホエイプロテイン チョコ 1kg": ProteinType.WHEY,
            "プロテイン 1kg": ProteinType.WHEY,
        }
        for title, expected in cases.items():
            with self.subTest(title=title):
                self.assertEqual(extract_protein_type(title), expected)

    def test_description_counts(self) -> None:
        """Keywords in the description classify too."""
        self.assertEqual(
            extract_protein_type("プロテイン 1kg", "原材料名：大豆たんぱく、ココア"),
            ProteinType.SOY,
        )

    def test_allergen_line_does_not_make_whey_soy(self) -> None:
        """'乳化剤（大豆由来）' on a whey caption keeps the product whey."""
        caption = "原材料名：乳清たんぱく（国内製造）、ココアパウダー、乳化剤（大豆由来）"
        self.assertEqual(
            extract_protein_type(
                "ザバス ホエイプロテイン100 リッチショコラ味 980g", caption
            ),
            ProteinType.WHEY,
        )
        self.assertEqual(
            extract_protein_type("プロテイン 1kg", caption), ProteinType.WHEY
        )

    def test_title_wins_over_description(self) -> None:
        """A typed title is not overridden by caption keywords."""
        self.assertEqual(
            extract_protein_type("ソイプロテイン 1kg", "ホエイ不使用"),
            ProteinType.SOY,
        )

    def test_chocolate_is_not_isolate(self) -> None:
        """'chocolate' must not trigger the isolate keyword."""
        self.assertEqual(
            extract_protein_type("Whey Protein Chocolate 1kg"),
            ProteinType.WHEY,
        )


class TestWeight(unittest.TestCase):
    """Container weight parsing."""

    def test_units(self) -> None:
        """g, kg, キロ and full-width forms parse to grams."""
        cases = {
            "980g": 980.0,
            "1kg": 1000.0,
            "2.5kg": 2500.0,
            "1キロ": 1000.0,
            "９８０ｇ": 980.0,
            "１ｋｇ": 1000.0,
            "3㎏": 3000.0,
        }
        for title, expected in cases.items():
            with self.subTest(title=title):
                self.assertEqual(extract_weight_grams(title), expected)

    def test_largest_weight_wins(self) -> None:
        """A per-serving weight does not shadow the container size."""
        self.assertEqual(
            extract_weight_grams("1食20g ホエイプロテイン 1kg"), 1000.0
        )

    def test_no_weight(self) -> None:
        """Titles without a weight report None."""
        self.assertIsNone(extract_weight_grams("ホエイプロテイン100 チョコ"))
        self.assertFalse(has_weight_token("ホエイプロテイン100 チョコ"))
        self.assertTrue(has_weight_token("ホエイプロテイン 1kg"))

    def test_estimate_servings(self) -> None:
        """Weight / serving size, with a default when unknown."""
        self.assertEqual(estimate_servings("ホエイ 1kg"), 33)
        self.assertEqual(estimate_servings("ホエイ 980g"), 33)
        self.assertEqual(estimate_servings("ホエイ 1050g", 21.0), 50)
        self.assertEqual(estimate_servings("ホエイ"), 30)
        self.assertEqual(estimate_servings("ホエイ 10g"), 30)


class TestExtractNutrition(unittest.TestCase):
    """extract_nutrition always returns complete facts."""

    def test_fallback_to_type_defaults(self) -> None:
        """No numbers in the text: servings from weight, type defaults."""
        facts = extract_nutrition("Protein Powder 1kg", "")
        self.assertIsInstance(facts, NutritionFacts)
        self.assertEqual(facts.servings, 33)
        self.assertEqual(facts.protein_grams, 20.0)
        self.assertEqual(facts.calories, 110.0)
        self.assertEqual(facts.serving_size_grams, 30.0)
        self.assertIsNone(facts.sugar_grams)

    def test_soy_defaults(self) -> None:
        """Soy products default to soy nutrition."""
        facts = extract_nutrition("ソイプロテイン 1kg")
        self.assertEqual(facts.protein_grams, 17.0)
        self.assertEqual(facts.calories, 115.0)

    def test_combined_declaration(self) -> None:
        """Serving size, calories and protein from one label line."""
        facts = extract_nutrition(
            "ホエイプロテイン 1050g",
            "1食(21g)あたり エネルギー 83kcal たんぱく質 15.0g",
        )
        self.assertEqual(facts.serving_size_grams, 21.0)
        self.assertEqual(facts.calories, 83.0)
        self.assertEqual(facts.protein_grams, 15.0)
        self.assertEqual(facts.servings, 50)

    def test_separate_statements(self) -> None:
        """Protein and calories stated apart are both picked up."""
        facts = extract_nutrition(
            "ホエイプロテイン 1kg",
            "栄養成分 たんぱく質:24g 脂質 1.2g エネルギー:120kcal",
        )
        self.assertEqual(facts.protein_grams, 24.0)
        self.assertEqual(facts.calories, 120.0)
        self.assertEqual(facts.servings, 33)

    def test_full_width_label(self) -> None:
        """Full-width digits and colons are folded before matching."""
        facts = extract_nutrition(
            "ホエイプロテイン １ｋｇ", "たんぱく質：２１ｇ　エネルギー：１１７ｋｃａｌ"
        )
        self.assertEqual(facts.protein_grams, 21.0)
        self.assertEqual(facts.calories, 117.0)
        self.assertEqual(facts.servings, 33)

    def test_implausible_values_ignored(self) -> None:
        """Container totals are not mistaken for per-serving facts."""
        facts = extract_nutrition(
            "ホエイプロテイン 1kg", "内容量中 たんぱく質 750g 3900kcal"
        )
        self.assertEqual(facts.protein_grams, 20.0)
        self.assertEqual(facts.calories, 110.0)

    def test_bare_calories(self) -> None:
        """A kcal figure without a label still counts."""
        facts = extract_nutrition("ホエイプロテイン 1kg", "1杯あたり 95kcal")
        self.assertEqual(facts.calories, 95.0)

    def test_sugar(self) -> None:
        """Sugar grams are captured when stated."""
        self.assertEqual(extract_sugar("糖質 0.5g"), 0.5)
        facts = extract_nutrition("ホエイプロテイン 1kg", "糖質：0.8g")
        self.assertEqual(facts.sugar_grams, 0.8)

    def test_carbohydrate_when_sugar_missing(self) -> None:
        """Carbohydrate stands in for sugar; an explicit sugar figure wins."""
        self.assertEqual(extract_sugar("炭水化物：2.1g"), 2.1)
        self.assertEqual(extract_sugar("Carbohydrates 3g"), 3.0)
        self.assertEqual(extract_sugar("炭水化物 2.1g 糖質 0.4g"), 0.4)
        self.assertIsNone(extract_sugar("たんぱく質 21g"))

    def test_end_to_end_title(self) -> None:
        """A real Rakuten title resolves every field."""
        title = "ザバス ホエイプロテイン100 リッチショコラ味 980g"
        self.assertEqual(extract_brand(title), "ザバス")
        self.assertEqual(extract_protein_type(title), ProteinType.WHEY)
        self.assertEqual(extract_flavor(title), "チョコレート")
        self.assertEqual(extract_nutrition(title).servings, 33)


class TestExtractTags(unittest.TestCase):
    """Card tags come out in table order."""

    def test_tags(self) -> None:
        """Multiple tags are collected, none when nothing matches."""
        self.assertEqual(
            extract_tags("国産 無添加 ソイプロテイン 1kg"), ("国産", "無添加")
        )
        self.assertEqual(extract_tags("ホエイプロテイン 1kg"), ())


if __name__ == "__main__":
    unittest.main()
