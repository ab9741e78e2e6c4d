"""Tests for barcode lookup."""

import asyncio

import httpx
import pytest

from fitmacro.domain.barcode import BarcodeRejection, ProductNutrition
from fitmacro.domain.errors import LlmUnavailableError
from fitmacro.services.barcode import (
    BarcodeService,
    extract_human_unit,
    scale_per_serving,
)
from tests.conftest import FakeCatalog, FakeChatClient

PROTEIN_BAR_PRODUCT = {
    "product_name": "Premier Protein Bar",
    "brands": "Premier Protein",
    "serving_size": "1 bar (40 g)",
    "categories_tags": ["en:snacks", "en:protein-bars"],
    "nutriments": {
        "energy-kcal_100g": 400,
        "proteins_100g": 50,
        "carbohydrates_100g": 30,
        "fat_100g": 10,
        "fiber_100g": 5,
        "sugars_100g": 2.5,
        "sodium_100g": 0.5,
    },
}


def _service(
    catalog: FakeCatalog, client: FakeChatClient | None = None
) -> BarcodeService:
    return BarcodeService(catalog=catalog, client=client, model="fast")


def test_scale_per_serving() -> None:
    assert scale_per_serving(400, "1 bar (40 g)") == 160
    assert scale_per_serving(12.4, None) == 12
    assert scale_per_serving(50, "1 cup") == 50
    assert scale_per_serving("abc", "40 g") == 0


def test_extract_human_unit() -> None:
    assert extract_human_unit("25 chips (50 g)") == "chips"
    assert extract_human_unit("100 g") is None
    assert extract_human_unit("2 grams") is None
    assert extract_human_unit(None) is None


def test_catalog_product_is_scaled_per_serving() -> None:
    catalog = FakeCatalog(products={"0123": PROTEIN_BAR_PRODUCT})
    client = FakeChatClient()

    result = asyncio.run(_service(catalog, client).lookup("0123"))

    assert isinstance(result, ProductNutrition)
    assert result.source == "OpenFoodFacts"
    assert result.name == "Premier Protein Bar"
    assert result.type == "solid"
    assert result.serving_size == "1 bar (40 g)"
    assert result.serving_unit_human == "bar"
    assert result.base_amount == 1
    assert result.calories == 160
    assert result.protein == 20
    assert result.carbs == 12
    assert result.fat == 4
    assert result.fiber == 2
    assert result.sugar == 1
    assert result.sodium == 200
    assert client.calls == []


def test_catalog_non_food_is_rejected_without_llm() -> None:
    catalog = FakeCatalog(
        products={
            "999": {
                "product_name": "SPF 50 Sunscreen",
                "brands": "SunCo",
                "categories_tags": ["en:sun-care"],
                "nutriments": {},
            }
        }
    )
    client = FakeChatClient()

    result = asyncio.run(_service(catalog, client).lookup("999"))

    assert result == BarcodeRejection(
        error="non_food", message="cosmetic/chemical/household product"
    )
    assert client.calls == []


def test_catalog_miss_falls_back_to_llm() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "name": "Quest Protein Bar",
            "brand": "Quest",
            "servingSize": "60 g",
            "type": "solid",
            "calories": 190.4,
            "protein": 21,
            "carbs": 22,
            "fat": 8,
            "fiber": 14,
            "sugar": 1,
            "sodium": 220,
        }
    )

    result = asyncio.run(_service(FakeCatalog(), client).lookup("888"))

    assert isinstance(result, ProductNutrition)
    assert result.source == "GPT-4o"
    assert result.calories == 190
    assert result.base_amount == 100
    assert result.base_unit == "g"
    call = client.calls[0]
    assert call["model"] == "fast"
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 400
    assert call["messages"][-1]["content"] == "Barcode: 888"


def test_catalog_error_falls_back_to_llm() -> None:
    catalog = FakeCatalog(products={"777": httpx.ConnectError("offline")})
    client = FakeChatClient()
    client.queue({"error": "non_food", "message": "Unknown or invalid barcode"})

    result = asyncio.run(_service(catalog, client).lookup("777"))

    assert result == BarcodeRejection(
        error="non_food", message="Unknown or invalid barcode"
    )


def test_llm_answer_is_guarded() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "name": "Hydrating Face Serum",
            "brand": "Glow",
            "servingSize": "30 ml",
            "calories": 0,
        }
    )

    result = asyncio.run(_service(FakeCatalog(), client).lookup("555"))

    assert isinstance(result, BarcodeRejection)
    assert result.error == "non_food"
    assert result.message == "insufficient edible evidence"


def test_unparsable_llm_answer_is_reported() -> None:
    client = FakeChatClient()
    client.queue("I am not sure what this is")

    result = asyncio.run(_service(FakeCatalog(), client).lookup("444"))

    assert result == BarcodeRejection(
        error="parse_error", raw="I am not sure what this is"
    )


def test_llm_needed_without_client_raises() -> None:
    with pytest.raises(LlmUnavailableError):
        asyncio.run(_service(FakeCatalog()).lookup("333"))
