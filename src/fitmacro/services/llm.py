"""Chat-completion interface shared by every LLM-backed service."""

from typing import Protocol

from fitmacro.domain.errors import LlmUnavailableError

ChatMessage = dict[str, object]


class ChatClient(Protocol):
    """Interface for chat-completion calls."""

    async def complete(
        self,
        *,
        model: str,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int | None = None,
    ) -> str:
        """Return the text content of the first choice."""


def require_client(client: ChatClient | None) -> ChatClient:
    """Return the client or fail when no API key was configured."""
    if client is None:
        raise LlmUnavailableError("Missing OpenAI key")
    return client


def system_message(content: str) -> ChatMessage:
    """Build a system-role message."""
    return {"role": "system", "content": content}


def image_message(text: str, image_url: str) -> ChatMessage:
    """Build a multi-part user message with one high-detail image."""
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
        ],
    }
