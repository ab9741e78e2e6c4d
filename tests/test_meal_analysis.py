"""Tests for the meal analysis pipeline."""

import asyncio

import pytest

from fitmacro.domain.errors import LlmUnavailableError, NutritionParseError
from fitmacro.domain.nutrition import MealRequest
from fitmacro.services.meals import MealAnalysisService
from tests.conftest import FakeChatClient

IDENTIFIED_CHICKEN_RICE = {
    "foods": [
        {
            "name": "chicken",
            "unit": "gram",
            "weight_g": 150,
            "confidence": 0.8,
            "cook_state": "cooked",
            "cook_method": "grilled",
        },
        {"name": "white rice", "unit": "gram", "weight_g": 200, "cook_state": "raw"},
    ],
    "summary": "The image shows grilled chicken with rice",
}


def _service(client: FakeChatClient | None) -> MealAnalysisService:
    return MealAnalysisService(client=client, model="main", fast_model="fast")


def test_single_food_takes_the_bypass() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "kind": "single_food",
            "normalized_name": "eggs",
            "quantity_description": "2 large",
        },
        {
            "calories": 143,
            "protein": 12.6,
            "carbs": 0.7,
            "fat": 9.5,
            "ai_summary": "Two large eggs",
            "ai_foods": [{"name": "egg", "weight_g": None, "confidence": 0.95}],
        },
    )

    analysis = asyncio.run(_service(client).analyze(MealRequest(description="2 eggs")))

    assert analysis.path == "bypass"
    assert analysis.nutrition.macros() == {
        "protein": 13,
        "calories": 143,
        "carbs": 1,
        "fat": 10,
    }
    assert analysis.ai_summary == "Two large eggs"
    assert [food.name for food in analysis.ai_foods] == ["2 large"]
    assert len(client.calls) == 2
    assert client.calls[0]["model"] == "fast"
    assert client.calls[1]["model"] == "main"
    assert client.calls[1]["messages"][-1]["content"] == (
        "Food to analyze: 2 large eggs"
    )


def test_bypass_summary_defaults_to_logged_name() -> None:
    client = FakeChatClient()
    client.queue(
        {"kind": "branded", "normalized_name": "Premier Protein shake"},
        {"calories": 160, "protein": 30},
    )

    analysis = asyncio.run(
        _service(client).analyze(MealRequest(description="premier protein shake"))
    )

    assert analysis.ai_summary == "Logged: Premier Protein shake"
    assert analysis.ai_foods[0].name == "Premier Protein shake"


def test_bypass_parse_failure_is_fatal() -> None:
    client = FakeChatClient()
    client.queue({"kind": "branded", "normalized_name": "Muscle Milk"}, "sorry")

    with pytest.raises(NutritionParseError, match="simple food JSON"):
        asyncio.run(_service(client).analyze(MealRequest(description="Muscle Milk")))


def test_mixed_meal_runs_every_stage() -> None:
    client = FakeChatClient()
    client.queue(
        {"kind": "mixed_meal", "normalized_name": "chicken and rice"},
        IDENTIFIED_CHICKEN_RICE,
        {"calories": 610, "protein": 52, "carbs": 62, "fat": 14, "fiber": 1},
        '"Grilled chicken breast with a side of white rice."',
    )

    analysis = asyncio.run(
        _service(client).analyze(MealRequest(description="chicken and rice"))
    )

    assert analysis.path == "multi_stage"
    assert analysis.nutrition.calories == 610
    assert analysis.nutrition.fiber == 1
    assert analysis.ai_summary == "Grilled chicken breast with a side of white rice."
    assert [food.name for food in analysis.ai_foods] == ["chicken breast", "white rice"]
    assert len(client.calls) == 4

    aggregate_prompt = client.system_prompt(2)
    assert "200g chicken breast (raw-equivalent; 150g grilled as served)" in (
        aggregate_prompt
    )
    assert "200g white rice" in aggregate_prompt
    assert "Estimated total raw-equivalent weight: 400 g" in aggregate_prompt
    assert client.calls[2]["max_tokens"] == 800
    assert client.calls[3]["model"] == "fast"
    assert client.calls[3]["temperature"] == 0.3


def test_aggregate_failure_is_fatal() -> None:
    client = FakeChatClient()
    client.queue(IDENTIFIED_CHICKEN_RICE, "no json at all")

    with pytest.raises(NutritionParseError, match="nutrition JSON"):
        asyncio.run(
            _service(client).analyze(
                MealRequest(description="chicken and rice"), classify=False
            )
        )


def test_identify_failure_still_aggregates_from_description() -> None:
    client = FakeChatClient()
    client.queue(RuntimeError("vision down"), {"calories": 420, "protein": 25})

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="beef burrito"), classify=False
        )
    )

    assert analysis.path == "multi_stage"
    assert analysis.nutrition.calories == 420
    assert analysis.ai_summary == ""
    assert [food.name for food in analysis.ai_foods] == ["beef burrito"]
    assert "beef burrito" in client.system_prompt(1)
    assert len(client.calls) == 2


def test_rewrite_failure_keeps_original_summary() -> None:
    client = FakeChatClient()
    client.queue(
        IDENTIFIED_CHICKEN_RICE,
        {"calories": 610},
        RuntimeError("rate limited"),
    )

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="chicken and rice"), classify=False
        )
    )

    assert analysis.ai_summary == "The image shows grilled chicken with rice"


def test_photo_with_single_item_takes_the_shortcut() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "foods": [{"name": "Muscle Milk", "unit": "gram", "weight_g": 340}],
            "summary": "A bottle of Muscle Milk, 330 ml",
        },
        {"calories": 160, "protein": 20, "carbs": 9, "fat": 4.5},
    )

    analysis = asyncio.run(
        _service(client).analyze(MealRequest(photo_url="https://img.example/a.jpg"))
    )

    assert analysis.path == "image_shortcut"
    assert analysis.nutrition.fat == 5
    assert analysis.ai_summary == "A bottle of Muscle Milk, 330 ml"
    assert analysis.ai_foods[0].name == "330 ml Muscle Milk"
    assert len(client.calls) == 2
    identify_user_turn = client.calls[0]["messages"][-1]["content"]
    assert identify_user_turn[1]["image_url"]["url"] == "https://img.example/a.jpg"
    assert client.calls[1]["messages"][-1]["content"] == (
        "Food to analyze: 330 ml Muscle Milk"
    )


def test_pizza_is_estimated_per_slice() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "foods": [{"name": "pizza", "unit": "piece", "quantity": 2}],
            "summary": "Two slices of cheese pizza",
        },
        {
            "type": "cheese pizza",
            "slices": 2,
            "weight_per_slice_g": 107,
            "calories_per_slice": 272,
            "protein_per_slice": 12,
            "carbs_per_slice": 34,
            "fat_per_slice": 10,
            "summary": "Two slices of cheese pizza",
        },
    )

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="two slices of pizza"), classify=False
        )
    )

    assert analysis.path == "pizza"
    assert analysis.nutrition.calories == 544
    assert analysis.ai_foods[0].weight_g == 214
    assert len(client.calls) == 2


def test_pizza_failure_falls_back_to_aggregate() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "foods": [{"name": "pizza", "unit": "piece", "quantity": 2}],
            "summary": "Two slices of pizza",
        },
        "cannot tell",
        {"calories": 560, "protein": 24},
        "Two slices of pizza.",
    )

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="pizza night"), classify=False
        )
    )

    assert analysis.path == "multi_stage"
    assert analysis.nutrition.calories == 560
    assert "2 x pizza" in client.system_prompt(2)


def test_non_english_language_reaches_prompts() -> None:
    client = FakeChatClient()
    client.queue(IDENTIFIED_CHICKEN_RICE, {"calories": 610}, "Pollo con arroz.")

    asyncio.run(
        _service(client).analyze(
            MealRequest(description="pollo con arroz", language="es"), classify=False
        )
    )

    assert "MUST be written in es" in client.system_prompt(0)
    assert "MUST be written in es" in client.system_prompt(2)


def test_missing_client_is_reported() -> None:
    with pytest.raises(LlmUnavailableError):
        asyncio.run(_service(None).analyze(MealRequest(description="apple")))


def test_aggregate_with_huge_number_is_zeroed() -> None:
    client = FakeChatClient()
    client.queue(
        IDENTIFIED_CHICKEN_RICE,
        '{"calories": 1' + "0" * 400 + ', "protein": 52}',
        "Chicken and rice.",
    )

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="chicken and rice"), classify=False
        )
    )

    assert analysis.nutrition.calories == 0
    assert analysis.nutrition.protein == 52


def test_bone_in_description_keeps_chicken_name() -> None:
    client = FakeChatClient()
    client.queue(
        {
            "foods": [
                {
                    "name": "roast chicken",
                    "unit": "gram",
                    "weight_g": 300,
                    "cook_state": "cooked",
                    "cook_method": "roasted",
                }
            ],
            "summary": "A roast chicken portion",
        },
        {"calories": 690, "protein": 60, "fat": 48},
        "Roast chicken.",
    )

    analysis = asyncio.run(
        _service(client).analyze(
            MealRequest(description="bone-in skin-on roast chicken"), classify=False
        )
    )

    assert analysis.ai_foods[0].name == "roast chicken"
    assert "roast chicken (raw-equivalent" in client.system_prompt(1)
