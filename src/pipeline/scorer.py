# src/pipeline/scorer.py

"""Additive match score of a product against one user's diagnosis answers.

The raw score only orders products within a single request; it is not
normalised to any fixed range.
"""

from src.models.preferences import UserPreferenceProfile
from src.models.product import Product, ProteinType

# --- Reviews ---
REVIEW_AVERAGE_WEIGHT = 8.0         # 5.0 stars -> 40
REVIEW_COUNT_DIVISOR = 50.0
REVIEW_COUNT_CAP = 20.0

# --- Budget fit (yen per serving) ---
BUDGET_LOW = 120
BUDGET_MID = 150
BUDGET_HIGH = 180
BUDGET_CONSCIOUS = 80               # "budget" body hint with no explicit tier
BUDGET_BEAUTY = 150
BUDGET_HEAVY_EXERCISE = 120
BUDGET_DEFAULT = 100

BUDGET_TIER_CEILINGS: dict[str, int] = {
    "low": BUDGET_LOW,
    "mid": BUDGET_MID,
    "high": BUDGET_HIGH,
}

BUDGET_FULL_RATIO = 0.8
BUDGET_PARTIAL_RATIO = 1.0
BUDGET_STRETCH_RATIO = 1.2
BUDGET_FULL_POINTS = 25.0
BUDGET_PARTIAL_POINTS = 20.0
BUDGET_STRETCH_POINTS = 10.0

# --- Protein content (grams per serving) ---
PROTEIN_TIERS: tuple[tuple[float, float], ...] = (
    (22.0, 15.0),
    (20.0, 12.0),
    (18.0, 8.0),
    (15.0, 5.0),
)

# --- Preference bonuses ---
LACTOSE_FRIENDLY_TYPES = frozenset({ProteinType.SOY, ProteinType.PLANT})
LACTOSE_FRIENDLY_BONUS = 20.0

DIET_LOW_CALORIE_THRESHOLD = 100.0
DIET_LOW_CALORIE_BONUS = 10.0
DIET_LOW_SUGAR_THRESHOLD = 1.0
DIET_LOW_SUGAR_BONUS = 10.0

MUSCLE_HIGH_PROTEIN_THRESHOLD = 20.0
MUSCLE_HIGH_PROTEIN_BONUS = 10.0
MUSCLE_VERY_HIGH_PROTEIN_THRESHOLD = 24.0
MUSCLE_VERY_HIGH_PROTEIN_BONUS = 5.0

FLAVOR_MATCH_BONUS = 10.0
FLAVOR_ANY_BONUS = 5.0

SWEET_FLAVORS = frozenset({"チョコレート", "バニラ", "ストロベリー", "バナナ"})
LIGHT_FLAVORS = frozenset({"プレーン", "ミルク"})

FLAVOR_PREFERENCE_LABELS: dict[str, frozenset[str]] = {
    "sweet": SWEET_FLAVORS,
    "light": LIGHT_FLAVORS,
    "chocolate": frozenset({"チョコレート"}),
    "fruit": frozenset({"ストロベリー", "バナナ", "フルーツ"}),
    "coffee": frozenset({"コーヒー", "抹茶", "ミルクティー"}),
}


def target_budget(prefs: UserPreferenceProfile) -> int:
    """Yen-per-serving ceiling implied by the answers (first rule wins)."""
    tier = BUDGET_TIER_CEILINGS.get(prefs.budget)
    if tier is not None:
        return tier
    if prefs.body == "budget":
        return BUDGET_CONSCIOUS
    if prefs.goal == "beauty":
        return BUDGET_BEAUTY
    if prefs.exercise == "heavy":
        return BUDGET_HEAVY_EXERCISE
    return BUDGET_DEFAULT


def review_points(product: Product) -> float:
    quality = product.review_average * REVIEW_AVERAGE_WEIGHT
    volume = min(product.review_count / REVIEW_COUNT_DIVISOR, REVIEW_COUNT_CAP)
    return quality + volume


def budget_points(price_per_serving: float, budget: float) -> float:
    """Tiered, not continuous: 25 / 20 / 10 / 0."""
    if price_per_serving <= budget * BUDGET_FULL_RATIO:
        return BUDGET_FULL_POINTS
    if price_per_serving <= budget * BUDGET_PARTIAL_RATIO:
        return BUDGET_PARTIAL_POINTS
    if price_per_serving <= budget * BUDGET_STRETCH_RATIO:
        return BUDGET_STRETCH_POINTS
    return 0.0


def protein_points(protein_grams: float) -> float:
    for threshold, points in PROTEIN_TIERS:
        if protein_grams >= threshold:
            return points
    return 0.0


def _preference_bonuses(
    product: Product, prefs: UserPreferenceProfile,
) -> list[tuple[str, float]]:
    """Named bonuses earned by *product*; names feed the match reason."""
    bonuses: list[tuple[str, float]] = []
    nutrition = product.nutrition

    if prefs.lactose_intolerant and product.protein_type in LACTOSE_FRIENDLY_TYPES:
        bonuses.append(("乳糖に配慮", LACTOSE_FRIENDLY_BONUS))

    if prefs.goal == "diet":
        if nutrition.calories < DIET_LOW_CALORIE_THRESHOLD:
            bonuses.append(("低カロリー", DIET_LOW_CALORIE_BONUS))
        if (
            nutrition.sugar_grams is not None
            and nutrition.sugar_grams < DIET_LOW_SUGAR_THRESHOLD
        ):
            bonuses.append(("低糖質", DIET_LOW_SUGAR_BONUS))

    if prefs.goal == "muscle":
        if nutrition.protein_grams > MUSCLE_HIGH_PROTEIN_THRESHOLD:
            bonuses.append(("高タンパク", MUSCLE_HIGH_PROTEIN_BONUS))
        if nutrition.protein_grams > MUSCLE_VERY_HIGH_PROTEIN_THRESHOLD:
            bonuses.append(("超高タンパク", MUSCLE_VERY_HIGH_PROTEIN_BONUS))

    if prefs.flavor == "any":
        bonuses.append(("味のこだわりなし", FLAVOR_ANY_BONUS))
    elif product.flavor in FLAVOR_PREFERENCE_LABELS.get(prefs.flavor, frozenset()):
        bonuses.append((f"好みの味({product.flavor})", FLAVOR_MATCH_BONUS))

    return bonuses


def score_with_reason(
    product: Product, prefs: UserPreferenceProfile,
) -> tuple[float, str]:
    """Score *product* and summarise the bonuses it earned."""
    budget = target_budget(prefs)
    in_budget = budget_points(product.price_per_serving, budget)
    bonuses = _preference_bonuses(product, prefs)

    total = (
        review_points(product)
        + in_budget
        + protein_points(product.nutrition.protein_grams)
        + sum(points for _, points in bonuses)
    )

    reasons = [name for name, _ in bonuses]
    if in_budget == BUDGET_FULL_POINTS:
        reasons.insert(0, "予算内で高コスパ")
    elif in_budget == BUDGET_PARTIAL_POINTS:
        reasons.insert(0, "予算内")
    return total, "・".join(reasons)


def score(product: Product, prefs: UserPreferenceProfile) -> float:
    """Deterministic additive match score; higher is better."""
    total, _ = score_with_reason(product, prefs)
    return total
