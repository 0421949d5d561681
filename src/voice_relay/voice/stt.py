"""Speech-to-text.

Default implementation calls the OpenAI Whisper transcription API.
Failures never propagate: the caller gets an unavailable result and decides
what to say instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from voice_relay.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class STTConfig:
    model: str = "whisper-1"
    # Fixed spoken-language hint.
    language: str = "ru"
    timeout_s: float = 60.0


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    unavailable_reason: str | None = None

    @property
    def available(self) -> bool:
        return self.unavailable_reason is None

    @classmethod
    def unavailable(cls, reason: str) -> TranscriptionResult:
        return cls(text="", unavailable_reason=reason)


class STTProvider:
    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> TranscriptionResult:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class WhisperSTT(STTProvider):
    """OpenAI Whisper wrapper. Single attempt, no retries."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        config: STTConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._base_url = base_url or settings.stt_base_url
        self._config = config or STTConfig(model=settings.stt_model, timeout_s=settings.stt_timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self._api_key:
            logger.warning("Transcription API key not configured; voice input is disabled")

    @property
    def config(self) -> STTConfig:
        return self._config

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=httpx.Timeout(self._config.timeout_s),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> TranscriptionResult:
        if not self._api_key:
            return TranscriptionResult.unavailable("missing_api_key")
        if not audio:
            return TranscriptionResult.unavailable("empty_audio")

        files = {"file": (filename, audio, "application/octet-stream")}
        data = {"model": self._config.model, "language": self._config.language}

        client = await self._get_client()
        try:
            response = await client.post("/audio/transcriptions", files=files, data=data)
        except httpx.HTTPError as e:
            logger.warning(f"Transcription request failed: {e}")
            return TranscriptionResult.unavailable("transport_error")

        if response.status_code != 200:
            logger.warning(f"Transcription API error: {response.status_code} - {response.text[:200]}")
            return TranscriptionResult.unavailable(f"http_{response.status_code}")

        try:
            text = response.json().get("text")
        except (ValueError, AttributeError) as e:
            logger.warning(f"Malformed transcription response: {e}")
            return TranscriptionResult.unavailable("malformed_response")

        if not isinstance(text, str):
            return TranscriptionResult.unavailable("malformed_response")

        return TranscriptionResult(text=text.strip())
