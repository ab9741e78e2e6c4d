"""Nutrition domain models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MealKind = Literal["branded", "single_food", "mixed_meal"]
FoodUnit = Literal["gram", "piece"]
CookState = Literal["raw", "cooked", "unknown"]
CookMethod = Literal[
    "grilled", "roasted", "baked", "boiled", "steamed", "fried", "sauteed", "raw"
]
AnalysisPath = Literal["bypass", "image_shortcut", "pizza", "multi_stage"]


class NutritionRecord(BaseModel):
    """Whole-number nutrition totals for one meal or product."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    vitamin_a: int = 0
    vitamin_c: int = 0
    vitamin_d: int = 0
    vitamin_e: int = 0
    vitamin_k: int = 0
    vitamin_b12: int = 0
    iron: int = 0
    calcium: int = 0
    magnesium: int = 0
    zinc: int = 0
    water: int = 0
    sodium: int = 0
    potassium: int = 0
    chloride: int = 0
    fiber: int = 0

    def macros(self) -> dict[str, int]:
        """Return the four headline macros."""
        return {
            "protein": self.protein,
            "calories": self.calories,
            "carbs": self.carbs,
            "fat": self.fat,
        }


class FoodItem(BaseModel):
    """Single identified food with its portion."""

    name: str
    weight_g: int | None = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    unit: FoodUnit = "gram"
    quantity: float | None = None
    cook_state: CookState = "unknown"
    cook_method: CookMethod | None = None

    @model_validator(mode="after")
    def _weight_matches_unit(self) -> "FoodItem":
        """Count-based foods never carry a weight, weightless foods are counts."""
        if self.unit == "piece":
            self.weight_g = None
        elif self.weight_g is None:
            self.unit = "piece"
        return self


class ClassificationResult(BaseModel):
    """Stage 0 decision for a meal description."""

    model_config = ConfigDict(frozen=True)

    kind: MealKind
    normalized_name: str
    quantity_description: str | None = None


class IdentificationResult(BaseModel):
    """Stage 1 output: the foods seen and a short summary."""

    foods: list[FoodItem] = Field(default_factory=list)
    summary: str = ""


class MealRequest(BaseModel):
    """Inbound meal description and/or photo reference."""

    description: str = ""
    photo_url: str | None = None
    language: str = "en"


class MealAnalysis(BaseModel):
    """Final nutrition answer for a meal request."""

    nutrition: NutritionRecord
    ai_summary: str
    ai_foods: list[FoodItem]
    path: AnalysisPath

    def to_response(self) -> dict[str, object]:
        """Flatten into the JSON shape returned to clients."""
        body: dict[str, object] = self.nutrition.model_dump(by_alias=True)
        body["ai_summary"] = self.ai_summary
        body["ai_foods"] = [food.model_dump() for food in self.ai_foods]
        return body
