"""Barcode lookup: OpenFoodFacts first, then an LLM guess, both guarded."""

import logging
import math
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from fitmacro.domain.barcode import (
    BarcodeRejection,
    ProductNutrition,
    ProductSignals,
)
from fitmacro.services.edibility import guard_edible
from fitmacro.services.llm import ChatClient, require_client, system_message
from fitmacro.services.parsing import extract_json, round_half_up, safe_num, to_number
from fitmacro.services.prompts import BARCODE_LOOKUP

_SERVING_METRIC_RE = re.compile(r"([\d.]+)\s*(ml|g)\b", re.IGNORECASE)
_HUMAN_UNIT_RE = re.compile(r"(\d+)\s*([a-zA-Z]+)")
_PARENTHESIZED_METRIC_RE = re.compile(r"\((\d+)\s*(g|ml)\)", re.IGNORECASE)
_METRIC_UNITS = {"g", "gram", "grams", "ml", "l"}
_BASE_UNITS = {"ml", "g", "portion"}

_logger = logging.getLogger(__name__)


class ProductCatalog(Protocol):
    """Interface for a packaged-food product database."""

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Return the raw product record, or None when unknown."""


def scale_per_serving(value_per_100: object, serving_size: str | None) -> int:
    """Scale a per-100 g/ml value to the serving size when it states one."""
    number = to_number(value_per_100, math.nan)
    if math.isnan(number) or not serving_size:
        return safe_num(value_per_100)
    match = _SERVING_METRIC_RE.search(serving_size)
    if not match:
        return safe_num(value_per_100)
    amount = to_number(match.group(1), math.nan)
    if math.isnan(amount) or amount <= 0:
        return safe_num(value_per_100)
    return round_half_up(number * amount / 100)


def extract_human_unit(serving_size: str | None) -> str | None:
    """Return a count unit like "chips" from "25 chips (50 g)"."""
    if not serving_size:
        return None
    match = _HUMAN_UNIT_RE.search(serving_size)
    if not match:
        return None
    unit = match.group(2).lower()
    return None if unit in _METRIC_UNITS else unit


@dataclass
class BarcodeService:
    """Resolve a barcode to per-serving nutrition or a rejection."""

    catalog: ProductCatalog
    client: ChatClient | None
    model: str

    async def lookup(self, barcode: str) -> ProductNutrition | BarcodeRejection:
        """Look the barcode up in the catalog, falling back to the LLM."""
        product = await self._fetch_product(barcode)
        if product is not None:
            return _from_catalog(product)
        return await self._from_llm(barcode)

    async def _fetch_product(self, barcode: str) -> dict[str, object] | None:
        try:
            return await self.catalog.get_product(barcode)
        except httpx.HTTPError as exc:
            _logger.warning("OpenFoodFacts lookup failed for %s: %s", barcode, exc)
            return None

    async def _from_llm(self, barcode: str) -> ProductNutrition | BarcodeRejection:
        client = require_client(self.client)
        content = await client.complete(
            model=self.model,
            messages=[
                system_message(BARCODE_LOOKUP.render()),
                {"role": "user", "content": f"Barcode: {barcode}"},
            ],
            temperature=0.2,
            max_tokens=400,
        )
        parsed = extract_json(content)
        if parsed is None:
            _logger.warning("Barcode %s: unparsable model output", barcode)
            return BarcodeRejection(error="parse_error", raw=content or "")
        if parsed.get("error") == "non_food":
            message = parsed.get("message")
            return BarcodeRejection(
                error="non_food",
                message=message if isinstance(message, str) else None,
            )

        verdict = guard_edible(
            ProductSignals(
                name=_text(parsed.get("name")),
                brand=_text(parsed.get("brand")),
                serving_size=_text(parsed.get("servingSize")),
                nutriments={
                    "energy-kcal_100g": parsed.get("calories"),
                    "proteins_100g": parsed.get("protein"),
                    "carbohydrates_100g": parsed.get("carbs"),
                    "fat_100g": parsed.get("fat"),
                },
            )
        )
        if not verdict.is_edible:
            _logger.info("Barcode %s rejected: %s", barcode, verdict.reason)
            return BarcodeRejection(error="non_food", message=verdict.reason)

        return ProductNutrition(
            name=_text(parsed.get("name")) or "Unknown",
            brand=_text(parsed.get("brand")),
            source="GPT-4o",
            type=_text(parsed.get("type")) or "unknown",
            serving_size=_text(parsed.get("servingSize")),
            base_amount=safe_num(parsed.get("baseAmount")) or 100,
            base_unit=_base_unit(_text(parsed.get("baseUnit"))),
            calories=safe_num(parsed.get("calories")),
            protein=safe_num(parsed.get("protein")),
            carbs=safe_num(parsed.get("carbs", parsed.get("carbohydrates"))),
            fat=safe_num(parsed.get("fat")),
            fiber=safe_num(parsed.get("fiber")),
            sugar=safe_num(parsed.get("sugar")),
            sodium=safe_num(parsed.get("sodium")),
        )


def _from_catalog(product: dict[str, object]) -> ProductNutrition | BarcodeRejection:
    name = _text(product.get("product_name")) or _text(product.get("generic_name"))
    brand = _text(product.get("brands"))
    serving_raw = _text(product.get("serving_size"))
    categories_tags = _text_list(product.get("categories_tags"))
    labels = ", ".join(_text_list(product.get("labels_tags")))
    ingredients = _text(product.get("ingredients_text"))
    raw_nutriments = product.get("nutriments")
    nutriments = raw_nutriments if isinstance(raw_nutriments, dict) else {}

    verdict = guard_edible(
        ProductSignals(
            name=name,
            brand=brand,
            categories=f"{', '.join(categories_tags)} {ingredients} {labels}",
            categories_tags=categories_tags,
            serving_size=serving_raw,
            nutriments=nutriments,
        )
    )
    if not verdict.is_edible:
        _logger.info("Catalog product %r rejected: %s", name, verdict.reason)
        return BarcodeRejection(error="non_food", message=verdict.reason)

    serving = serving_raw or "100 g"
    human_unit = extract_human_unit(serving)
    human_match = _HUMAN_UNIT_RE.search(serving)
    metric_match = _PARENTHESIZED_METRIC_RE.search(serving)
    metric_unit = metric_match.group(2).lower() if metric_match else None
    base_unit = human_unit or metric_unit or "g"
    if human_unit and human_match:
        base_amount = safe_num(human_match.group(1))
    elif metric_match:
        base_amount = safe_num(metric_match.group(1))
    else:
        base_amount = 100

    sodium = to_number(nutriments.get("sodium_100g"), math.nan)
    sodium_mg = None if math.isnan(sodium) else sodium * 1000

    return ProductNutrition(
        name=name or "Unknown",
        brand=brand,
        source="OpenFoodFacts",
        type="liquid" if base_unit == "ml" else "solid",
        serving_size=serving,
        base_amount=base_amount,
        serving_unit_human=human_unit,
        base_unit=_base_unit(base_unit),
        calories=scale_per_serving(nutriments.get("energy-kcal_100g"), serving),
        protein=scale_per_serving(nutriments.get("proteins_100g"), serving),
        carbs=scale_per_serving(nutriments.get("carbohydrates_100g"), serving),
        fat=scale_per_serving(nutriments.get("fat_100g"), serving),
        fiber=scale_per_serving(nutriments.get("fiber_100g"), serving),
        sugar=scale_per_serving(nutriments.get("sugars_100g"), serving),
        sodium=scale_per_serving(sodium_mg, serving),
    )


def _base_unit(unit: str) -> str:
    return unit if unit in _BASE_UNITS else "g"


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _text_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]
