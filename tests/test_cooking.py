"""Tests for cooked-to-raw conversion and naming defaults."""

import pytest

from fitmacro.domain.nutrition import FoodItem
from fitmacro.services.cooking import (
    apply_chicken_breast_default,
    describe_food,
    raw_equivalent_grams,
    total_raw_weight,
)


def test_raw_equivalent_grams_uses_yield_factor() -> None:
    grilled = FoodItem(
        name="chicken breast", weight_g=150, cook_state="cooked", cook_method="grilled"
    )
    assert raw_equivalent_grams(grilled) == 200


def test_raw_equivalent_grams_keeps_raw_and_unknown_methods() -> None:
    raw = FoodItem(name="spinach", weight_g=50, cook_state="raw", cook_method="raw")
    cooked_no_method = FoodItem(name="rice", weight_g=180, cook_state="cooked")

    assert raw_equivalent_grams(raw) == 50
    assert raw_equivalent_grams(cooked_no_method) == 180


def test_raw_equivalent_grams_is_none_for_pieces() -> None:
    eggs = FoodItem(name="egg", unit="piece", quantity=2)
    assert raw_equivalent_grams(eggs) is None


def test_describe_food_variants() -> None:
    eggs = FoodItem(name="egg", unit="piece", quantity=2)
    fried = FoodItem(
        name="potato", weight_g=140, cook_state="cooked", cook_method="fried"
    )
    plain = FoodItem(name="apple", weight_g=180)

    assert describe_food(eggs) == "2 x egg"
    assert describe_food(fried) == (
        "200g potato (raw-equivalent; 140g fried as served)"
    )
    assert describe_food(plain) == "180g apple"


def test_total_raw_weight_skips_pieces() -> None:
    foods = [
        FoodItem(name="salmon", weight_g=85, cook_state="cooked", cook_method="baked"),
        FoodItem(name="egg", unit="piece", quantity=3),
        FoodItem(name="broccoli", weight_g=100),
    ]
    assert total_raw_weight(foods) == 209


def test_chicken_defaults_to_breast() -> None:
    food = FoodItem(name="Grilled chicken", weight_g=150, confidence=0.7)

    renamed = apply_chicken_breast_default(food)

    assert renamed.name == "chicken breast"
    assert renamed.confidence == pytest.approx(0.8)
    assert renamed.weight_g == 150


def test_chicken_default_skips_explicit_cuts() -> None:
    for name in ("chicken breast", "bone-in chicken thigh", "skin on chicken"):
        food = FoodItem(name=name, weight_g=100, confidence=0.95)
        assert apply_chicken_breast_default(food).name == name


def test_chicken_default_caps_confidence() -> None:
    food = FoodItem(name="chicken", weight_g=100, confidence=0.95)
    assert apply_chicken_breast_default(food).confidence == 1.0


def test_chicken_default_only_renames_plain_chicken() -> None:
    for name in ("chicken nuggets", "chicken curry", "fried chicken wings"):
        food = FoodItem(name=name, weight_g=120)
        assert apply_chicken_breast_default(food).name == name
    for name in ("chicken", "Roast chicken", "pan-fried chicken"):
        food = FoodItem(name=name, weight_g=120)
        assert apply_chicken_breast_default(food).name == "chicken breast"


def test_chicken_default_reads_description_and_summary() -> None:
    food = FoodItem(name="roasted chicken", weight_g=250)

    from_description = apply_chicken_breast_default(
        food, "bone-in skin-on roast chicken", ""
    )
    from_summary = apply_chicken_breast_default(
        food, "dinner", "A skin on chicken leg quarter"
    )

    assert from_description.name == "roasted chicken"
    assert from_summary.name == "roasted chicken"
    assert apply_chicken_breast_default(food, "dinner", "").name == "chicken breast"
