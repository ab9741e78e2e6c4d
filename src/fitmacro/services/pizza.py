"""Per-slice pizza estimation."""

import logging
from dataclasses import dataclass

from fitmacro.domain.errors import PizzaEstimationError
from fitmacro.domain.nutrition import FoodItem, MealAnalysis, NutritionRecord
from fitmacro.services.llm import ChatClient, image_message, system_message
from fitmacro.services.parsing import (
    extract_json,
    language_instruction,
    safe_num,
    to_number,
)
from fitmacro.services.prompts import PIZZA_ESTIMATE

_logger = logging.getLogger(__name__)


def mentions_pizza(description: str, summary: str, food_names: list[str]) -> bool:
    """Return true when any request or Stage 1 text mentions pizza."""
    combined = " ".join([description, summary, *food_names]).lower()
    return "pizza" in combined


@dataclass
class PizzaEstimator:
    """Estimates slice count and per-slice macros, then multiplies out."""

    client: ChatClient
    model: str

    async def estimate(
        self,
        photo_url: str | None,
        description: str,
        language: str = "en",
    ) -> MealAnalysis:
        """Return pizza totals or raise PizzaEstimationError."""
        messages = [
            system_message(
                PIZZA_ESTIMATE.render(language=language_instruction(language))
            )
        ]
        if description:
            messages.append({"role": "user", "content": description})
        if photo_url:
            messages.append(image_message("Analyze this pizza photo.", photo_url))

        content = await self.client.complete(
            model=self.model, messages=messages, temperature=0
        )
        parsed = extract_json(content)
        if parsed is None:
            raise PizzaEstimationError("Pizza analysis failed")

        slices = to_number(parsed.get("slices"))
        if slices <= 0:
            raise PizzaEstimationError("Pizza analysis returned no slices")

        nutrition = NutritionRecord(
            calories=safe_num(to_number(parsed.get("calories_per_slice")) * slices),
            protein=safe_num(to_number(parsed.get("protein_per_slice")) * slices),
            carbs=safe_num(to_number(parsed.get("carbs_per_slice")) * slices),
            fat=safe_num(to_number(parsed.get("fat_per_slice")) * slices),
        )
        total_weight = safe_num(to_number(parsed.get("weight_per_slice_g")) * slices)
        pizza_type = parsed.get("type")
        name = pizza_type if isinstance(pizza_type, str) and pizza_type else "pizza"
        summary = parsed.get("summary")
        food = (
            FoodItem(name=name, weight_g=total_weight, confidence=0.9)
            if total_weight > 0
            else FoodItem(name=name, unit="piece", quantity=slices, confidence=0.9)
        )
        _logger.info(
            "Pizza totals: slices=%s calories=%s protein=%s carbs=%s fat=%s",
            slices,
            nutrition.calories,
            nutrition.protein,
            nutrition.carbs,
            nutrition.fat,
        )
        return MealAnalysis(
            nutrition=nutrition,
            ai_summary=summary if isinstance(summary, str) else "",
            ai_foods=[food],
            path="pizza",
        )
