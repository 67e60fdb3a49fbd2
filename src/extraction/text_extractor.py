# src/extraction/text_extractor.py

"""Best-effort extraction of structured facts from listing titles and captions.

Marketplace text is inconsistent, so every extractor degrades to a sane
default instead of raising.  Input is NFKC-normalised first, which folds
full-width digits, colons and units (``９８０ｇ``, ``：``, ``㎏``) onto
their ASCII forms before any pattern is applied.
"""

import math
import re
import unicodedata

from src.config.pipeline_config import DEFAULT_CONFIG, PipelineConfig
from src.extraction.keyword_tables import (
    BRAND_UNKNOWN,
    BRAND_VARIANTS,
    DEFAULT_PROTEIN_TYPE,
    FLAVOR_GROUPS,
    FLAVOR_OTHER,
    PROTEIN_TYPE_KEYWORDS,
    TAG_KEYWORDS,
    TYPE_NUTRITION_DEFAULTS,
)
from src.models.product import NutritionFacts, ProteinType

_NUM = r"(\d+(?:\.\d+)?)"

# "1食(30g)あたり エネルギー 117kcal たんぱく質 21.0g"
_COMBINED_RE = re.compile(
    _NUM + r"\s*g\s*\)?\s*(?:あたり|当たり|当り|per\s*serving)?"
    r"[^\d]{0,30}?(?:エネルギー|カロリー|熱量|energy|calories)\s*:?\s*"
    + _NUM + r"\s*kcal"
    r"[^\d]{0,30}?(?:たんぱく質|タンパク質|蛋白質|protein)\s*:?\s*"
    + _NUM + r"\s*g",
    re.IGNORECASE,
)
_PROTEIN_RE = re.compile(
    r"(?:たんぱく質|タンパク質|蛋白質|protein)\s*:?\s*" + _NUM + r"\s*g",
    re.IGNORECASE,
)
_CALORIE_RE = re.compile(
    r"(?:エネルギー|カロリー|熱量|energy|calories)\s*:?\s*" + _NUM + r"\s*kcal",
    re.IGNORECASE,
)
_BARE_CALORIE_RE = re.compile(_NUM + r"\s*kcal", re.IGNORECASE)
_SUGAR_RE = re.compile(
    r"(?:糖質|糖類|sugars?)\s*:?\s*" + _NUM + r"\s*g",
    re.IGNORECASE,
)
_CARBOHYDRATE_RE = re.compile(
    r"(?:炭水化物|carbohydrates?)\s*:?\s*" + _NUM + r"\s*g",
    re.IGNORECASE,
)
_WEIGHT_RE = re.compile(
    _NUM + r"\s*(kg|キロ|グラム|g)(?![a-z])",
    re.IGNORECASE,
)
_BRAND_SPLIT_RE = re.compile(r"[\s【】\[\]()「」]+")

# Per-serving values above these are container totals, not serving facts
_MAX_PLAUSIBLE_PROTEIN = 60.0
_MAX_PLAUSIBLE_CALORIES = 1000.0


def normalise_text(text: str | None) -> str:
    """NFKC-fold and lower-case *text* for keyword matching."""
    if not text:
        return ""
    return unicodedata.normalize("NFKC", text).lower()


def round_half_up(value: float) -> int:
    """Round .5 away from zero, the way marketplace prices are rounded."""
    return int(math.floor(value + 0.5))


def _first_match(
    text: str,
    table: tuple[tuple[str, tuple[str, ...]], ...],
) -> str | None:
    for label, keywords in table:
        if any(kw in text for kw in keywords):
            return label
    return None


def extract_brand(title: str) -> str:
    """Return the canonical brand for *title*.

    Falls back to the first whitespace/bracket-delimited token, then to
    :data:`BRAND_UNKNOWN`.
    """
    brand = _first_match(normalise_text(title), BRAND_VARIANTS)
    if brand is not None:
        return brand
    tokens = [t for t in _BRAND_SPLIT_RE.split((title or "").strip()) if t]
    return tokens[0] if tokens else BRAND_UNKNOWN


def extract_flavor(title: str) -> str:
    """Map flavor synonyms in *title* onto one canonical label."""
    flavor = _first_match(normalise_text(title), FLAVOR_GROUPS)
    return flavor if flavor is not None else FLAVOR_OTHER


def extract_protein_type(title: str, description: str = "") -> ProteinType:
    """Classify by keyword precedence, title first.

    The description is consulted only when the title names no type, so
    ingredient lists cannot override what the title says.
    """
    for text in (normalise_text(title), normalise_text(description)):
        for protein_type, keywords in PROTEIN_TYPE_KEYWORDS:
            if any(kw in text for kw in keywords):
                return protein_type
    return DEFAULT_PROTEIN_TYPE


def extract_tags(title: str) -> tuple[str, ...]:
    """Collect card tags (diet, muscle, domestic...) mentioned in *title*."""
    text = normalise_text(title)
    return tuple(
        tag for tag, keywords in TAG_KEYWORDS
        if any(kw in text for kw in keywords)
    )


def extract_weight_grams(title: str) -> float | None:
    """Return the container weight in grams, or ``None``.

    When several weights appear (e.g. a per-serving "20g" next to "1kg")
    the largest is taken as the container size.
    """
    weights: list[float] = []
    for value, unit in _WEIGHT_RE.findall(normalise_text(title)):
        grams = float(value)
        if unit in ("kg", "キロ"):
            grams *= 1000
        weights.append(grams)
    return max(weights) if weights else None


def has_weight_token(title: str) -> bool:
    """True when *title* states a weight/quantity."""
    return extract_weight_grams(title) is not None


def estimate_servings(
    title: str,
    serving_size_grams: float = DEFAULT_CONFIG.serving_size_grams,
    default: int = DEFAULT_CONFIG.default_servings,
) -> int:
    """Container weight / serving size; *default* when no weight is stated."""
    grams = extract_weight_grams(title)
    if grams is None or serving_size_grams <= 0:
        return default
    servings = round_half_up(grams / serving_size_grams)
    return servings if servings >= 1 else default


def extract_sugar(text: str) -> float | None:
    """Sugar grams per serving, falling back to carbohydrate when stated."""
    folded = normalise_text(text)
    match = _SUGAR_RE.search(folded) or _CARBOHYDRATE_RE.search(folded)
    return float(match.group(1)) if match else None


def _search_plausible(
    pattern: re.Pattern[str], text: str, ceiling: float,
) -> float | None:
    for match in pattern.finditer(text):
        value = float(match.group(1))
        if 0 < value <= ceiling:
            return value
    return None


def extract_nutrition(
    title: str,
    description: str = "",
    config: PipelineConfig = DEFAULT_CONFIG,
) -> NutritionFacts:
    """Build complete per-serving nutrition from listing text.

    Resolution order:

    1. A combined "serving size / calories / protein" declaration.
    2. Separate protein-gram and calorie statements anywhere in the text.
    3. Serving count from the title weight (÷ serving size).
    4. Protein-type defaults for whatever is still unknown.

    Never raises and never returns partial facts.
    """
    text = normalise_text(f"{title} {description}")
    protein_type = extract_protein_type(title, description)
    default_protein, default_calories = TYPE_NUTRITION_DEFAULTS[protein_type]

    protein: float | None = None
    calories: float | None = None
    serving_size = config.serving_size_grams

    combined = _COMBINED_RE.search(text)
    if combined:
        size, kcal, grams = (float(g) for g in combined.groups())
        if config.min_serving_size_grams <= size <= config.max_serving_size_grams:
            serving_size = size
        if 0 < kcal <= _MAX_PLAUSIBLE_CALORIES:
            calories = kcal
        if 0 < grams <= _MAX_PLAUSIBLE_PROTEIN:
            protein = grams

    if protein is None:
        protein = _search_plausible(_PROTEIN_RE, text, _MAX_PLAUSIBLE_PROTEIN)
    if calories is None:
        calories = _search_plausible(
            _CALORIE_RE, text, _MAX_PLAUSIBLE_CALORIES
        ) or _search_plausible(
            _BARE_CALORIE_RE, text, _MAX_PLAUSIBLE_CALORIES
        )

    servings = estimate_servings(
        title, serving_size, config.default_servings
    )

    return NutritionFacts(
        protein_grams=protein if protein is not None else default_protein,
        calories=calories if calories is not None else default_calories,
        servings=servings,
        serving_size_grams=serving_size,
        sugar_grams=extract_sugar(text),
    )
