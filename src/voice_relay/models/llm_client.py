"""
LLM client abstraction.

Talks to the DeepSeek chat completions API (OpenAI-compatible) over httpx.
`complete` is the pipeline-facing call: it never raises for remote failures
and always returns some text, falling back to a fixed apology.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import BaseModel, Field

from voice_relay.config import get_settings
from voice_relay.errors import CompletionError
from voice_relay.memory import Turn

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "deepseek-chat"
DEFAULT_MAX_TOKENS = 200
MAX_REPLY_WORDS = 50

DEFAULT_SYSTEM_PROMPT = (
    "Ты полезный голосовой ассистент умных очков. "
    f"Отвечай кратко, не более {MAX_REPLY_WORDS} слов, простым разговорным языком. "
    "Всегда отвечай на русском языке. Не используй markdown, списки и эмодзи."
)

COMPLETION_FALLBACK_TEXT = "Извините, сейчас я не могу ответить. Попробуйте ещё раз чуть позже."


class LLMResponse(BaseModel):
    """Response from an LLM."""

    content: str = Field(..., description="Generated text content")
    finish_reason: str = Field(default="stop", description="Reason for completion")
    usage: dict[str, int] = Field(
        default_factory=dict,
        description="Token usage information",
    )
    model: str = Field(default="", description="Model used for generation")


class LLMClientBase(ABC):
    """Abstract base class for completion clients."""

    @abstractmethod
    async def complete(
        self,
        history: Sequence[Turn],
        new_message: str,
        system_prompt: str | None = None,
    ) -> str:
        """
        Generate the assistant reply for a new user message.

        Args:
            history: Prior turns, oldest first.
            new_message: The user's new message.
            system_prompt: Optional replacement for the default instruction.

        Returns:
            Reply text, never empty.
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""


class LLMClient(LLMClientBase):
    """
    DeepSeek chat client.

    A single attempt is made per call; there are no retries.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Completion API key (uses config if not provided).
            base_url: API base URL (uses config if not provided).
            model: Model name (defaults to deepseek-chat).
            max_tokens: Maximum tokens per reply.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.deepseek_api_key
        self._base_url = base_url or settings.deepseek_base_url
        self._model = model or settings.llm_model_name or DEFAULT_MODEL
        self._max_tokens = max_tokens or settings.llm_max_tokens or DEFAULT_MAX_TOKENS
        self._timeout = timeout or settings.llm_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self._api_key:
            logger.warning("Completion API key not configured; replies will fall back to apology text")

        logger.info(f"Initialized completion client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_messages(
        self,
        history: Sequence[Turn],
        new_message: str,
        system_prompt: str | None = None,
    ) -> list[Turn]:
        """Assemble system instruction, history and the new user turn."""
        messages = [Turn.system(system_prompt or DEFAULT_SYSTEM_PROMPT)]
        messages.extend(history)
        messages.append(Turn.user(new_message))
        return messages

    async def chat(self, messages: Sequence[Turn]) -> LLMResponse:
        """
        Run one chat completion request.

        Args:
            messages: Full message list, system instruction included.

        Returns:
            Generated response.

        Raises:
            CompletionError: On transport failure, error status or an empty or
                malformed reply.
        """
        if not self._api_key:
            raise CompletionError("Completion API key not configured", reason="missing_api_key")

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [m.to_payload() for m in messages],
            "max_tokens": self._max_tokens,
            "stream": False,
        }

        client = await self._get_client()
        try:
            response = await client.post("/chat/completions", json=payload)
        except httpx.HTTPError as e:
            raise CompletionError(f"Completion request failed: {e}", reason="transport_error") from e

        if response.status_code != 200:
            raise CompletionError(
                f"Completion API error: {response.status_code} - {response.text[:200]}",
                reason=f"http_{response.status_code}",
            )

        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError(f"Malformed completion response: {e}", reason="malformed_response") from e

        if not isinstance(content, str) or not content.strip():
            raise CompletionError("Completion response was empty", reason="empty_response")

        usage = data.get("usage") or {}
        return LLMResponse(
            content=content.strip(),
            finish_reason=choice.get("finish_reason") or "stop",
            usage={k: v for k, v in usage.items() if isinstance(v, int)},
            model=data.get("model") or self._model,
        )

    async def complete(
        self,
        history: Sequence[Turn],
        new_message: str,
        system_prompt: str | None = None,
    ) -> str:
        messages = self.build_messages(history, new_message, system_prompt)
        try:
            response = await self.chat(messages)
        except CompletionError as e:
            logger.error(f"Completion failed ({e.reason}): {e}")
            return COMPLETION_FALLBACK_TEXT

        logger.debug(f"Completion response length: {len(response.content)} chars")
        return response.content
