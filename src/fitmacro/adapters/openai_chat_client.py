"""OpenAI Chat Completions client."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from fitmacro.services.llm import ChatClient, ChatMessage


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by the OpenAI Chat Completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIChatClient":
        """Create an OpenAI chat client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def complete(
        self,
        *,
        model: str,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        """Return the first choice's text, empty when the model sent none."""
        request_payload: dict[str, object] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            request_payload["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(**request_payload)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
