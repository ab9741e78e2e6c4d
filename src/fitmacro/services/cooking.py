"""Cooked-to-raw weight conversion and food naming defaults."""

import re

from fitmacro.domain.nutrition import FoodItem
from fitmacro.services.parsing import round_half_up

# Cooked weight as a fraction of raw weight.
YIELD_FACTORS: dict[str, float] = {
    "grilled": 0.75,
    "roasted": 0.75,
    "baked": 0.78,
    "boiled": 0.80,
    "steamed": 0.85,
    "fried": 0.70,
    "sauteed": 0.72,
}

_WHOLE_CHICKEN_RE = re.compile(r"bone[\s-]?in|skin[\s-]?on")
_COOK_WORDS = set(YIELD_FACTORS) | {
    "cooked",
    "raw",
    "roast",
    "pan",
    "pan-fried",
    "sauteed",
    "sautéed",
    "poached",
    "air-fried",
}
_CHICKEN_BREAST_CONFIDENCE_BOOST = 0.1


def raw_equivalent_grams(food: FoodItem) -> int | None:
    """Estimate the uncooked mass of a weighed food."""
    if food.weight_g is None:
        return None
    if food.cook_state != "cooked" or food.cook_method is None:
        return food.weight_g
    factor = YIELD_FACTORS.get(food.cook_method)
    if factor is None:
        return food.weight_g
    return round_half_up(food.weight_g / factor)


def describe_food(food: FoodItem) -> str:
    """One entry of the Stage 2 food list."""
    if food.unit == "piece":
        count = food.quantity if food.quantity is not None else 1
        count_text = f"{count:g}"
        return f"{count_text} x {food.name}"
    raw_grams = raw_equivalent_grams(food)
    if raw_grams != food.weight_g:
        return (
            f"{raw_grams}g {food.name} "
            f"(raw-equivalent; {food.weight_g}g {food.cook_method} as served)"
        )
    return f"{raw_grams}g {food.name}"


def total_raw_weight(foods: list[FoodItem]) -> int:
    """Sum raw-equivalent grams over weighed foods."""
    return sum(raw_equivalent_grams(food) or 0 for food in foods)


def is_plain_chicken(name: str) -> bool:
    """True when the name is chicken plus, at most, cooking words."""
    words = re.findall(r"[\w-]+", name.lower())
    return [word for word in words if word not in _COOK_WORDS] == ["chicken"]


def apply_chicken_breast_default(
    food: FoodItem, description: str = "", summary: str = ""
) -> FoodItem:
    """Plain chicken defaults to breast, the usual fitness-app cut.

    Bone-in or skin-on chicken keeps its name when the food, the request
    description or the identification summary says so.
    """
    if not is_plain_chicken(food.name):
        return food
    context = " ".join((food.name, description, summary)).lower()
    if _WHOLE_CHICKEN_RE.search(context):
        return food
    return food.model_copy(
        update={
            "name": "chicken breast",
            "confidence": min(1.0, food.confidence + _CHICKEN_BREAST_CONFIDENCE_BOOST),
        }
    )
