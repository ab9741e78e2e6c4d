"""Helpers that turn free-text LLM output into trusted values."""

import json
import math
import re

from fitmacro.domain.nutrition import FoodItem, NutritionRecord

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_QUANTITY_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*("
    r"ml|liters?|litres?|l|fl\s*oz|oz|kg|grams?|g|lb|pounds?|cups?|"
    r"tbsp|tablespoons?|tsp|teaspoons?|slices?|pieces?|servings?|bottles?|cans?"
    r")\b",
    re.IGNORECASE,
)

_COOK_STATES = {"raw", "cooked", "unknown"}
_COOK_METHODS = {
    "grilled",
    "roasted",
    "baked",
    "boiled",
    "steamed",
    "fried",
    "sauteed",
    "raw",
}


def extract_json(text: object) -> dict[str, object] | None:
    """Recover a JSON object from model output, or None."""
    if not isinstance(text, str) or not text:
        return None
    fence = _FENCE_RE.search(text)
    if fence and fence.group(1):
        parsed = _loads_object(fence.group(1))
        if parsed is not None:
            return parsed
    raw = _OBJECT_RE.search(text)
    if raw:
        return _loads_object(raw.group(0))
    return None


def _loads_object(candidate: str) -> dict[str, object] | None:
    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def to_number(value: object, fallback: float = 0.0) -> float:
    """Coerce any value to a finite float, else the fallback."""
    if isinstance(value, bool):
        number = float(value)
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return fallback
    elif value is None:
        return fallback
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            number = float(stripped)
        except ValueError:
            return fallback
    else:
        return fallback
    return number if math.isfinite(number) else fallback


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round."""
    return math.floor(value + 0.5)


def safe_num(value: object) -> int:
    """Coerce to a finite number (0 when impossible) and round to an integer."""
    return round_half_up(to_number(value, 0.0))


def build_complete_nutrition(data: dict[str, object] | None) -> NutritionRecord:
    """Build a full nutrition record, zero-filling missing or junk values."""
    payload = data or {}
    values: dict[str, int] = {}
    for name, field in NutritionRecord.model_fields.items():
        alias = field.alias or name
        raw = payload.get(alias, payload.get(name))
        if name == "carbs" and raw is None:
            raw = payload.get("carbohydrates")
        values[name] = safe_num(raw)
    return NutritionRecord(**values)


def extract_quantity_from_text(text: str | None) -> str | None:
    """Find a quantity with unit such as "330 ml" or "2 slices"."""
    if not text:
        return None
    match = _QUANTITY_RE.search(text)
    if not match:
        return None
    unit = re.sub(r"\s+", " ", match.group(2))
    return f"{match.group(1)} {unit}"


def language_instruction(language: str | None) -> str:
    """Prompt line forcing natural-language output into the user's language."""
    if not language or language == "en":
        return ""
    return (
        "All natural language text (ai_summary, summaries, descriptions) "
        f"MUST be written in {language}."
    )


def coerce_food_item(raw: object, fallback_name: str) -> FoodItem | None:
    """Turn one loose food dict from the model into a FoodItem."""
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        name = fallback_name
    unit = raw.get("unit")
    weight = to_number(raw.get("weight_g"), math.nan)
    weight_g = round_half_up(weight) if math.isfinite(weight) and weight > 0 else None
    quantity = to_number(raw.get("quantity"), math.nan)
    confidence = to_number(raw.get("confidence"), 1.0)
    cook_state = raw.get("cook_state")
    cook_method = raw.get("cook_method")
    return FoodItem(
        name=name.strip(),
        weight_g=weight_g,
        confidence=min(1.0, max(0.0, confidence)),
        unit="piece" if unit == "piece" else "gram",
        quantity=quantity if math.isfinite(quantity) and quantity > 0 else None,
        cook_state=cook_state if cook_state in _COOK_STATES else "unknown",
        cook_method=cook_method if cook_method in _COOK_METHODS else None,
    )


def normalize_ai_foods(foods: object, fallback_name: str) -> list[FoodItem]:
    """Normalize a model food list; an empty list becomes one fallback item."""
    items: list[FoodItem] = []
    if isinstance(foods, list):
        for raw in foods:
            item = coerce_food_item(raw, fallback_name)
            if item is not None:
                items.append(item)
    if not items:
        return [FoodItem(name=fallback_name, weight_g=None, confidence=1.0)]
    return items
