"""Tests for meal classification."""

import asyncio

from fitmacro.services.classifier import MealClassifier
from tests.conftest import FakeChatClient


def test_classifies_branded_product() -> None:
    client = FakeChatClient()
    client.queue(
        '```json\n{"kind": "branded", "normalized_name": "Muscle Milk", '
        '"quantity_description": "330 ml"}\n```'
    )

    result = asyncio.run(
        MealClassifier(client=client, model="fast").classify("Muscle Milk 330ml")
    )

    assert result.kind == "branded"
    assert result.normalized_name == "Muscle Milk"
    assert result.quantity_description == "330 ml"
    assert client.calls[0]["model"] == "fast"
    assert client.calls[0]["temperature"] == 0
    assert client.calls[0]["messages"][-1]["content"] == "Muscle Milk 330ml"


def test_unknown_kind_falls_back_to_mixed_meal() -> None:
    client = FakeChatClient()
    client.queue({"kind": "dessert", "normalized_name": "cake"})

    result = asyncio.run(
        MealClassifier(client=client, model="fast").classify("cake and coffee")
    )

    assert result.kind == "mixed_meal"
    assert result.normalized_name == "cake and coffee"


def test_upstream_error_falls_back_to_mixed_meal() -> None:
    client = FakeChatClient()
    client.queue(RuntimeError("timeout"))

    result = asyncio.run(
        MealClassifier(client=client, model="fast").classify("2 eggs")
    )

    assert result.kind == "mixed_meal"
    assert result.quantity_description == "2 eggs"


def test_blank_description_skips_the_model() -> None:
    client = FakeChatClient()

    result = asyncio.run(MealClassifier(client=client, model="fast").classify("  "))

    assert result.kind == "mixed_meal"
    assert client.calls == []
