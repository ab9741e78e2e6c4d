"""Tests for HTTP-based adapters."""

import asyncio

import httpx
import pytest

from fitmacro.adapters.openai_chat_client import OpenAIChatClient
from fitmacro.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient


class _FakeCompletions:
    def __init__(self, content: str | None) -> None:
        self.content = content
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        message = type("Message", (), {"content": self.content})()
        choice = type("Choice", (), {"message": message})()
        return type("Resp", (), {"choices": [choice]})()


class _FakeOpenAI:
    def __init__(self, content: str | None) -> None:
        completions = _FakeCompletions(content)
        self.chat = type("Chat", (), {"completions": completions})()


def test_openai_chat_client_returns_first_choice() -> None:
    fake = _FakeOpenAI('{"calories": 100}')
    client = OpenAIChatClient(client=fake)

    result = asyncio.run(
        client.complete(
            model="gpt-4o",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0,
            max_tokens=800,
        )
    )

    assert result == '{"calories": 100}'
    payload = fake.chat.completions.last_payload
    assert payload["model"] == "gpt-4o"
    assert payload["max_tokens"] == 800


def test_openai_chat_client_omits_unset_max_tokens() -> None:
    fake = _FakeOpenAI(None)
    client = OpenAIChatClient(client=fake)

    result = asyncio.run(
        client.complete(model="gpt-4o-mini", messages=[], temperature=0.3)
    )

    assert result == ""
    assert "max_tokens" not in fake.chat.completions.last_payload


def test_openfoodfacts_client_returns_product() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v2/product/0123.json"
        return httpx.Response(
            200, json={"status": 1, "product": {"product_name": "Oats"}}
        )

    transport = httpx.MockTransport(handler)
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.example/api/v2",
        http_client=httpx.AsyncClient(transport=transport),
    )

    product = asyncio.run(client.get_product("0123"))

    assert product == {"product_name": "Oats"}


def test_openfoodfacts_client_unknown_barcode() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/404.json"):
            return httpx.Response(404, json={"status": 0})
        return httpx.Response(200, json={"status": 0, "status_verbose": "not found"})

    transport = httpx.MockTransport(handler)
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.example/api/v2",
        http_client=httpx.AsyncClient(transport=transport),
    )

    assert asyncio.run(client.get_product("404")) is None
    assert asyncio.run(client.get_product("111")) is None


def test_openfoodfacts_client_raises_on_server_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.example/api/v2",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_product("0123"))
