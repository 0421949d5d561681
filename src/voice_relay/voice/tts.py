"""Text-to-speech.

Default implementation uses Google Cloud Text-to-Speech. Unlike transcription
and completion there is no fallback here: without audio there is nothing to
send back, so every failure is raised as SynthesisError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from google.cloud import texttospeech

from voice_relay.config import get_settings
from voice_relay.errors import SynthesisError
from voice_relay.voice.audio_stream import AudioStream
from voice_relay.voice.speakable import to_speakable

logger = logging.getLogger(__name__)

DEFAULT_VOICE_ID = "ru-RU-Wavenet-D"


@dataclass(frozen=True)
class TTSConfig:
    voice_id: str = DEFAULT_VOICE_ID
    language_code: str = "ru-RU"
    sample_rate_hertz: int = 24000
    max_chars: int = 1000
    credentials_file: str | None = None


class TTSProvider:
    async def synthesize(self, text: str) -> AudioStream:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class GoogleTTS(TTSProvider):
    """Google Cloud TTS wrapper producing MP3."""

    def __init__(self, config: TTSConfig | None = None, client: Any | None = None) -> None:
        if config is None:
            settings = get_settings()
            config = TTSConfig(
                voice_id=settings.tts_voice_id or DEFAULT_VOICE_ID,
                credentials_file=settings.google_application_credentials,
            )
        self._config = config
        self._client = client

    @property
    def config(self) -> TTSConfig:
        return self._config

    def _load_client(self) -> Any:
        if self._client is not None:
            return self._client

        if self._config.credentials_file:
            self._client = texttospeech.TextToSpeechAsyncClient.from_service_account_file(
                self._config.credentials_file
            )
        else:
            # Application-default credentials.
            self._client = texttospeech.TextToSpeechAsyncClient()
        return self._client

    async def synthesize(self, text: str) -> AudioStream:
        speak, debug = to_speakable(text, max_chars=self._config.max_chars)
        if not speak:
            raise SynthesisError("Nothing to synthesize after text clean-up", reason="empty_text")
        if debug["truncated"]:
            logger.info(f"TTS text truncated from {debug['input_chars']} to {debug['output_chars']} chars")

        synthesis_input = texttospeech.SynthesisInput(text=speak)
        voice = texttospeech.VoiceSelectionParams(
            language_code=self._config.language_code,
            name=self._config.voice_id,
        )
        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.MP3,
            sample_rate_hertz=self._config.sample_rate_hertz,
        )

        try:
            client = self._load_client()
            response = await client.synthesize_speech(
                input=synthesis_input,
                voice=voice,
                audio_config=audio_config,
            )
        except Exception as e:
            logger.error(f"Google TTS call failed: {e}")
            raise SynthesisError(f"Speech synthesis failed: {e}", reason=str(e)) from e

        audio = getattr(response, "audio_content", None)
        if not audio:
            raise SynthesisError("Speech synthesis returned no audio", reason="empty_audio")

        logger.debug(f"Synthesized {len(audio)} bytes of MP3 for {len(speak)} chars")
        return AudioStream(data=bytes(audio))

    async def close(self) -> None:
        transport = getattr(self._client, "transport", None)
        if transport is not None and hasattr(transport, "close"):
            await transport.close()
        self._client = None
