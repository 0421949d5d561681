"""
Smoke tests for the relay orchestrator.

The remote services are replaced by fakes so every path through the request
state machine can be checked without network access.
"""

from pathlib import Path

import httpx
import pytest

from conftest import FakeLLM, FakeSTT, FakeTTS
from voice_relay.cache import ResponseCache
from voice_relay.memory import ConversationMemory, Turn
from voice_relay.models.llm_client import COMPLETION_FALLBACK_TEXT, LLMClient
from voice_relay.orchestrator import (
    HEARING_FALLBACK_TEXT,
    RelayOrchestrator,
    RequestState,
    transient_artifact,
)


def _orchestrator(
    *,
    stt: FakeSTT | None = None,
    llm: FakeLLM | None = None,
    tts: FakeTTS | None = None,
    cache: ResponseCache | None = None,
    max_pairs: int = 10,
) -> RelayOrchestrator:
    return RelayOrchestrator(
        stt=stt or FakeSTT(),
        llm_client=llm or FakeLLM(),
        tts=tts or FakeTTS(),
        memory=ConversationMemory(max_pairs=max_pairs),
        cache=cache,
    )


def _upload(tmp_path: Path, data: bytes = b"RIFF-fake-wav") -> Path:
    path = tmp_path / "relay_upload_test.wav"
    path.write_bytes(data)
    return path


class TestTextRequests:
    """Text prompts: cache check, completion, memory update, synthesis."""

    @pytest.mark.asyncio
    async def test_first_prompt_completes_caches_and_remembers(self) -> None:
        llm = FakeLLM(reply="Здравствуйте! Чем могу помочь?")
        tts = FakeTTS()
        orchestrator = _orchestrator(llm=llm, tts=tts)

        result = await orchestrator.handle_text("Привет")

        assert result.ok
        assert result.audio is not None and result.audio.content_type == "audio/mpeg"
        assert llm.calls == [((), "Привет")]
        assert orchestrator.cache.lookup("Привет") == "Здравствуйте! Чем могу помочь?"
        assert orchestrator.memory.snapshot() == (
            Turn.user("Привет"),
            Turn.assistant("Здравствуйте! Чем могу помочь?"),
        )
        assert tts.spoken == ["Здравствуйте! Чем могу помочь?"]
        assert result.context.transitions == [
            RequestState.RECEIVED,
            RequestState.CACHE_CHECK,
            RequestState.COMPLETING,
            RequestState.MEMORY_UPDATE,
            RequestState.SYNTHESIZING,
            RequestState.STREAMING,
            RequestState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_repeat_within_ttl_is_served_from_cache(self, clock) -> None:
        llm = FakeLLM(reply="Здравствуйте!")
        tts = FakeTTS()
        orchestrator = _orchestrator(llm=llm, tts=tts, cache=ResponseCache(clock=clock))

        await orchestrator.handle_text("Привет")
        clock.advance(1800)
        result = await orchestrator.handle_text("Привет")

        assert result.ok
        assert result.context.cache_hit
        assert len(llm.calls) == 1
        assert len(orchestrator.memory) == 2
        assert tts.spoken == ["Здравствуйте!", "Здравствуйте!"]
        assert RequestState.COMPLETING not in result.context.transitions
        assert RequestState.MEMORY_UPDATE not in result.context.transitions

    @pytest.mark.asyncio
    async def test_expired_entry_completes_again(self, clock) -> None:
        llm = FakeLLM()
        orchestrator = _orchestrator(llm=llm, cache=ResponseCache(clock=clock))

        await orchestrator.handle_text("Привет")
        clock.advance(3601)
        result = await orchestrator.handle_text("Привет")

        assert not result.context.cache_hit
        assert len(llm.calls) == 2
        assert len(orchestrator.memory) == 4

    @pytest.mark.asyncio
    async def test_history_is_passed_to_completion(self) -> None:
        llm = FakeLLM()
        orchestrator = _orchestrator(llm=llm)

        await orchestrator.handle_text("Как тебя зовут?")
        await orchestrator.handle_text("А сколько тебе лет?")

        history, message = llm.calls[1]
        assert message == "А сколько тебе лет?"
        assert [t.content for t in history] == ["Как тебя зовут?", "Ответ на: Как тебя зовут?"]

    @pytest.mark.asyncio
    async def test_memory_bound_holds_across_requests(self) -> None:
        orchestrator = _orchestrator(max_pairs=2)
        for i in range(5):
            await orchestrator.handle_text(f"вопрос {i}")
        assert len(orchestrator.memory) == 4
        assert orchestrator.memory.snapshot()[0].content == "вопрос 3"

    @pytest.mark.asyncio
    async def test_synthesis_failure_fails_without_audio(self) -> None:
        orchestrator = _orchestrator(tts=FakeTTS(fail=True))

        result = await orchestrator.handle_text("Привет")

        assert not result.ok
        assert result.audio is None
        assert "quota exceeded" in (result.error or "")
        assert result.context.state == RequestState.FAILED

    @pytest.mark.asyncio
    async def test_completion_failure_apology_is_cached_and_remembered(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        llm = LLMClient(
            api_key="sk-test",
            base_url="https://api.deepseek.test",
            transport=httpx.MockTransport(handler),
        )
        tts = FakeTTS()
        orchestrator = RelayOrchestrator(stt=FakeSTT(), llm_client=llm, tts=tts)

        first = await orchestrator.handle_text("Привет")
        second = await orchestrator.handle_text("Привет")

        assert first.ok and second.ok
        assert orchestrator.cache.lookup("Привет") == COMPLETION_FALLBACK_TEXT
        assert orchestrator.memory.snapshot() == (
            Turn.user("Привет"),
            Turn.assistant(COMPLETION_FALLBACK_TEXT),
        )
        assert second.context.cache_hit
        assert len(calls) == 1
        assert tts.spoken == [COMPLETION_FALLBACK_TEXT, COMPLETION_FALLBACK_TEXT]
        await orchestrator.close()


class TestVoiceRequests:
    """Voice uploads: transcription, hearing fallback, artifact cleanup."""

    @pytest.mark.asyncio
    async def test_transcribed_audio_follows_text_path(self, tmp_path: Path) -> None:
        stt = FakeSTT(text="  Который час?  ")
        llm = FakeLLM()
        orchestrator = _orchestrator(stt=stt, llm=llm)
        path = _upload(tmp_path)

        result = await orchestrator.handle_voice(path, filename="question.wav")

        assert result.ok
        assert stt.calls == [(b"RIFF-fake-wav", "question.wav")]
        assert llm.calls[0][1] == "Который час?"
        assert result.context.transcript == "Который час?"
        assert orchestrator.cache.lookup("Который час?") is not None
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_upload_name_without_extension_is_replaced(self, tmp_path: Path) -> None:
        stt = FakeSTT(text="Привет")
        orchestrator = _orchestrator(stt=stt)
        path = _upload(tmp_path)

        await orchestrator.handle_voice(path, filename="audio")

        assert stt.calls[0][1] == "relay_upload_test.wav"

    @pytest.mark.parametrize(
        "stt",
        [FakeSTT(text=""), FakeSTT(text="   "), FakeSTT(unavailable_reason="missing_api_key")],
    )
    @pytest.mark.asyncio
    async def test_unheard_audio_uses_fallback_and_skips_completion(
        self, tmp_path: Path, stt: FakeSTT
    ) -> None:
        llm = FakeLLM()
        tts = FakeTTS()
        orchestrator = _orchestrator(stt=stt, llm=llm, tts=tts)
        path = _upload(tmp_path)

        result = await orchestrator.handle_voice(path)

        assert result.ok
        assert tts.spoken == [HEARING_FALLBACK_TEXT]
        assert llm.calls == []
        assert len(orchestrator.memory) == 0
        assert len(orchestrator.cache) == 0
        assert RequestState.FALLBACK in result.context.transitions
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_unreadable_upload_sends_empty_audio(self, tmp_path: Path) -> None:
        stt = FakeSTT(unavailable_reason="empty_audio")
        tts = FakeTTS()
        orchestrator = _orchestrator(stt=stt, tts=tts)

        result = await orchestrator.handle_voice(tmp_path / "missing.wav")

        assert stt.calls[0][0] == b""
        assert result.ok
        assert tts.spoken == [HEARING_FALLBACK_TEXT]

    @pytest.mark.asyncio
    async def test_upload_removed_when_synthesis_fails(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(stt=FakeSTT(text="Привет"), tts=FakeTTS(fail=True))
        path = _upload(tmp_path)

        result = await orchestrator.handle_voice(path)

        assert not result.ok
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_upload_removed_when_adapter_raises(self, tmp_path: Path) -> None:
        class ExplodingSTT(FakeSTT):
            async def transcribe(self, audio: bytes, filename: str = "audio.wav"):
                raise RuntimeError("boom")

        orchestrator = _orchestrator(stt=ExplodingSTT())
        path = _upload(tmp_path)

        with pytest.raises(RuntimeError, match="boom"):
            await orchestrator.handle_voice(path)
        assert not path.exists()


def test_transient_artifact_tolerates_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "gone.wav"
    with transient_artifact(path) as p:
        assert p == path
    assert not path.exists()


@pytest.mark.asyncio
async def test_close_closes_adapters() -> None:
    stt = FakeSTT()
    orchestrator = _orchestrator(stt=stt)
    await orchestrator.close()
    assert stt.closed
