"""
Models module for the completion client.

Provides a narrow interface over the DeepSeek chat API.
"""

from voice_relay.models.llm_client import (
    COMPLETION_FALLBACK_TEXT,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    LLMClient,
    LLMClientBase,
    LLMResponse,
)

__all__ = [
    "COMPLETION_FALLBACK_TEXT",
    "DEFAULT_MODEL",
    "DEFAULT_SYSTEM_PROMPT",
    "LLMClient",
    "LLMClientBase",
    "LLMResponse",
]
