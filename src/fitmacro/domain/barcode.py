"""Barcode lookup models."""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class ProductSignals:
    """Text and nutrient signals used to judge whether a product is edible."""

    name: str = ""
    brand: str = ""
    categories: str = ""
    categories_tags: list[str] = field(default_factory=list)
    serving_size: str = ""
    nutriments: dict[str, object] | None = None

    @property
    def haystack(self) -> str:
        """Lower-cased text the keyword rules scan."""
        return " ".join(
            [self.name, self.brand, self.categories, self.serving_size]
        ).lower()


@dataclass(frozen=True)
class EdibilityVerdict:
    """Decision from the edibility guard."""

    is_edible: bool
    reason: str


class ProductNutrition(BaseModel):
    """Per-serving nutrition for a scanned product."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = "Unknown"
    brand: str = ""
    source: str = "unknown"
    type: str = "unknown"
    serving_size: str = ""
    base_amount: int = 0
    serving_unit_human: str | None = None
    base_unit: str = "g"
    protein: int = 0
    calories: int = 0
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
    sugar: int = 0


class BarcodeRejection(BaseModel):
    """Non-food or unparsable lookup, still answered with HTTP 200."""

    error: str
    message: str | None = None
    raw: str | None = None
