from collections.abc import Sequence

import pytest

from voice_relay.errors import SynthesisError
from voice_relay.memory import Turn
from voice_relay.models.llm_client import LLMClientBase
from voice_relay.voice.audio_stream import AudioStream
from voice_relay.voice.stt import STTProvider, TranscriptionResult
from voice_relay.voice.tts import TTSProvider


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSTT(STTProvider):
    def __init__(self, text: str = "", unavailable_reason: str | None = None) -> None:
        self._text = text
        self._reason = unavailable_reason
        self.calls: list[tuple[bytes, str]] = []
        self.closed = False

    async def transcribe(self, audio: bytes, filename: str = "audio.wav") -> TranscriptionResult:
        self.calls.append((audio, filename))
        if self._reason:
            return TranscriptionResult.unavailable(self._reason)
        return TranscriptionResult(text=self._text)

    async def close(self) -> None:
        self.closed = True


class FakeLLM(LLMClientBase):
    def __init__(self, reply: str | None = None) -> None:
        self._reply = reply
        self.calls: list[tuple[tuple[Turn, ...], str]] = []

    async def complete(
        self,
        history: Sequence[Turn],
        new_message: str,
        system_prompt: str | None = None,
    ) -> str:
        self.calls.append((tuple(history), new_message))
        return self._reply or f"Ответ на: {new_message}"


class FakeTTS(TTSProvider):
    def __init__(self, fail: bool = False) -> None:
        self._fail = fail
        self.spoken: list[str] = []

    async def synthesize(self, text: str) -> AudioStream:
        if self._fail:
            raise SynthesisError("Speech synthesis failed: quota exceeded", reason="quota exceeded")
        self.spoken.append(text)
        return AudioStream(data=b"ID3" + text.encode("utf-8"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
