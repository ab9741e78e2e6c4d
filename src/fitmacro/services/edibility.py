"""Rule tables deciding whether a scanned product is something you can eat."""

import re
from collections.abc import Callable

from fitmacro.domain.barcode import EdibilityVerdict, ProductSignals
from fitmacro.services.parsing import to_number

Predicate = Callable[[ProductSignals], bool]

COSMETIC_KEYWORDS = (
    "sunscreen", "spf", "sun screen", "uv", "broad spectrum", "moisturizer",
    "cleanser", "serum", "retinol", "niacinamide", "hyaluronic", "cream",
    "lotion", "ointment", "balm", "mask", "peel", "exfoliant", "skin", "face",
    "body", "shampoo", "conditioner", "hair", "deodorant", "antiperspirant",
    "makeup", "cosmetic", "fragrance", "parfum", "perfume", "aftershave",
    "lipstick", "lip balm",
)
HOUSEHOLD_KEYWORDS = (
    "detergent", "bleach", "disinfectant", "cleaner", "dishwashing", "laundry",
    "fabric softener", "air freshener", "insecticide", "repellent", "trash bag",
    "aluminum foil", "food wrap", "zip bag",
)
CONTAINER_KEYWORDS = (
    "refillable", "reusable", "stainless", "plastic", "metal", "glass", "flask",
    "tumbler", "thermos", "water bottle", "sports bottle", "mug", "container",
    "jar", "lid",
)
CHEMICAL_KEYWORDS = (
    "alcohol denat", "benzene", "sulfate", "hydroxide", "chloride",
    "titanium dioxide", "zinc oxide", "silicone", "polyethylene", "polypropyl",
    "acrylate", "copolymer",
)
PET_KEYWORDS = ("cat litter", "dog shampoo", "flea", "tick collar")
FOOD_KEYWORDS = (
    "sugar", "salt", "wheat", "rice", "milk", "cream", "butter", "egg", "yeast",
    "cocoa", "chocolate", "vanilla", "flour", "soy", "peanut", "almond",
    "hazelnut", "olive", "sunflower", "garlic", "onion", "tomato", "apple",
    "banana", "strawberry", "meat", "fish", "chicken", "pasta", "snack", "chips",
    "protein", "bar", "snack bar", "protein bar", "energy bar", "granola",
    "cereal", "bread", "oats", "builder",
)
SUPPLEMENT_KEYWORDS = (
    "powder", "whey", "casein", "isolate", "concentrate", "mass gainer", "gainer",
    "collagen", "pea protein", "soy protein", "plant protein", "creatine", "bcaa",
    "branched chain amino acids", "electrolyte", "pre-workout", "post-workout",
)
BEVERAGE_KEYWORDS = (
    "drink", "juice", "water", "mineral water", "spring water", "sparkling",
    "soda", "cola", "energy drink", "sports drink", "tea", "coffee", "smoothie",
)
SNACK_KEYWORDS = ("bar", "snack", "nutrition bar")
CLEAR_BAR_KEYWORDS = ("protein bar", "energy bar", "nutrition bar", "builder bar")
DRINKING_WATER_KEYWORDS = (
    "bottled water",
    "spring water",
    "mineral water",
    "drinking water",
)
BODY_CARE_KEYWORDS = ("skin", "hair", "body", "face")
FOOD_CATEGORY_TAGS = (
    "en:snacks",
    "en:snack-bars",
    "en:protein-bars",
    "en:nutrition-bars",
    "en:protein-supplements",
    "en:breakfast-cereals",
    "en:beverages",
    "en:meals",
)
BAR_CATEGORY_TAGS = ("en:snack-bars", "en:protein-bars")

_BAR_PHRASE_RE = re.compile(r"\b(protein|energy|nutrition|builder)\s*bar\b")
_SPF_RE = re.compile(r"\bspf\s?\d{1,3}\b")
_METRIC_SERVING_RE = re.compile(r"\b(\d+(\.\d+)?)\s*(g|ml)\b", re.IGNORECASE)
_SNACK_WORD_RE = re.compile(r"\b(bar|snack|nutrition)\b")
_MACRO_KEYS = ("energy-kcal_100g", "proteins_100g", "carbohydrates_100g", "fat_100g")


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _tags_match(tags: list[str], needles: tuple[str, ...]) -> bool:
    lowered = [tag.lower() for tag in tags]
    return any(needle in tag for needle in needles for tag in lowered)


def has_bar_phrase(signals: ProductSignals) -> bool:
    """True for "protein bar", "energy bar" and similar phrases."""
    return _BAR_PHRASE_RE.search(signals.haystack) is not None


def is_clearly_bar(signals: ProductSignals) -> bool:
    """Clear bar products skip the non-food rejection."""
    return has_bar_phrase(signals) or _mentions(signals.haystack, CLEAR_BAR_KEYWORDS)


def has_plausible_macros(signals: ProductSignals) -> bool:
    """True when any per-100 macro is a positive number."""
    if not signals.nutriments:
        return False
    return any(
        to_number(signals.nutriments.get(key), -1.0) > 0 for key in _MACRO_KEYS
    )


def has_food_category(signals: ProductSignals) -> bool:
    """True when a category tag names a food group."""
    return _tags_match(signals.categories_tags, FOOD_CATEGORY_TAGS)


def is_reusable_container(signals: ProductSignals) -> bool:
    """Bottles, jars and flasks, unless the product is drinking water."""
    text = f"{signals.name} {signals.categories}".lower()
    if not _mentions(text, CONTAINER_KEYWORDS):
        return False
    return not _mentions(text, DRINKING_WATER_KEYWORDS)


def has_strong_food_evidence(signals: ProductSignals) -> bool:
    """Any food wording, food category, metric serving or plausible macros."""
    text = signals.haystack
    return (
        has_bar_phrase(signals)
        or _mentions(text, FOOD_KEYWORDS)
        or _mentions(text, SUPPLEMENT_KEYWORDS)
        or _mentions(text, BEVERAGE_KEYWORDS)
        or _mentions(text, SNACK_KEYWORDS)
        or has_food_category(signals)
        or _METRIC_SERVING_RE.search(signals.serving_size) is not None
        or has_plausible_macros(signals)
    )


def looks_non_food(signals: ProductSignals) -> bool:
    """Cosmetic, household or chemical wording with nothing food-like to offset it."""
    text = signals.haystack
    flagged = (
        _mentions(text, COSMETIC_KEYWORDS)
        or _mentions(text, HOUSEHOLD_KEYWORDS)
        or _mentions(text, CHEMICAL_KEYWORDS)
    )
    return (
        flagged
        and not is_clearly_bar(signals)
        and not has_strong_food_evidence(signals)
    )


def _is_supplement(signals: ProductSignals) -> bool:
    return _mentions(signals.haystack, SUPPLEMENT_KEYWORDS)


def _is_bar_or_snack(signals: ProductSignals) -> bool:
    return _SNACK_WORD_RE.search(signals.haystack) is not None or _tags_match(
        signals.categories_tags, BAR_CATEGORY_TAGS
    )


def _is_body_oil(signals: ProductSignals) -> bool:
    text = signals.haystack
    return "oil" in text and _mentions(text, BODY_CARE_KEYWORDS)


REJECTION_RULES: list[tuple[Predicate, str]] = [
    (lambda signals: _mentions(signals.haystack, PET_KEYWORDS), "pet product"),
    (is_reusable_container, "reusable container"),
    (looks_non_food, "cosmetic/chemical/household product"),
]

SCORE_RULES: list[tuple[Predicate, int, str]] = [
    (has_bar_phrase, 3, "bar phrase"),
    (_is_supplement, 2, "supplement wording"),
    (lambda signals: _mentions(signals.haystack, BEVERAGE_KEYWORDS), 2, "beverage"),
    (lambda signals: _mentions(signals.haystack, FOOD_KEYWORDS), 2, "food wording"),
    (has_plausible_macros, 3, "plausible macros"),
    (has_food_category, 3, "food category"),
    (
        lambda signals: _mentions(signals.haystack, DRINKING_WATER_KEYWORDS),
        3,
        "drinking water",
    ),
    (_is_body_oil, -3, "body care oil"),
    (lambda signals: _SPF_RE.search(signals.haystack) is not None, -4, "spf rating"),
]

VERDICT_RULES: list[tuple[Predicate, int, str]] = [
    (_is_supplement, 2, "supplement/powder evidence"),
    (_is_bar_or_snack, 2, "bar/snack evidence"),
    (lambda signals: True, 3, "sufficient edible evidence"),
]


def edibility_score(signals: ProductSignals) -> int:
    """Sum the score deltas of every matching rule."""
    return sum(delta for predicate, delta, _ in SCORE_RULES if predicate(signals))


def guard_edible(signals: ProductSignals) -> EdibilityVerdict:
    """Decide whether a product is edible and say why."""
    for predicate, reason in REJECTION_RULES:
        if predicate(signals):
            return EdibilityVerdict(is_edible=False, reason=reason)
    score = edibility_score(signals)
    for predicate, min_score, reason in VERDICT_RULES:
        if score >= min_score and predicate(signals):
            return EdibilityVerdict(is_edible=True, reason=reason)
    return EdibilityVerdict(is_edible=False, reason="insufficient edible evidence")
