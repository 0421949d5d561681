"""
Relay orchestrator.

Runs one request through the pipeline:

    (audio) -> transcription -> cache check -> (completion -> memory update)
            -> synthesis -> audio

The orchestrator owns the conversation memory and the response cache. Both
are shared by every request it handles and neither is locked: concurrent
requests may interleave between a memory snapshot and the following append.
That is acceptable for a single embedded client.
"""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from voice_relay.cache import ResponseCache
from voice_relay.config import Settings, get_settings
from voice_relay.errors import SynthesisError
from voice_relay.memory import ConversationMemory, Turn
from voice_relay.models.llm_client import LLMClient, LLMClientBase
from voice_relay.orchestrator.schemas import RelayResult, RequestContext, RequestState
from voice_relay.voice.stt import STTConfig, STTProvider, WhisperSTT
from voice_relay.voice.tts import GoogleTTS, TTSConfig, TTSProvider

logger = logging.getLogger(__name__)

HEARING_FALLBACK_TEXT = "Извините, я не смог вас услышать. Повторите, пожалуйста."


@contextmanager
def transient_artifact(path: Path) -> Iterator[Path]:
    """Yield `path` and delete the file when the block exits, however it exits."""
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
            logger.debug(f"Removed transient artifact {path}")
        except OSError as e:
            logger.warning(f"Could not remove transient artifact {path}: {e}")


class RelayOrchestrator:
    """
    Sequences the remote services for text and voice requests.

    Failure policy:
    - Transcription failure falls back to a fixed "could not hear you" reply,
      which is neither cached nor remembered.
    - Completion failure is absorbed by the client, which returns an apology;
      the apology is cached and remembered like any other reply.
    - Synthesis failure ends the request in the FAILED state with no audio.
    """

    def __init__(
        self,
        *,
        stt: STTProvider,
        llm_client: LLMClientBase,
        tts: TTSProvider,
        memory: ConversationMemory | None = None,
        cache: ResponseCache | None = None,
        system_prompt: str | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            stt: Transcription adapter.
            llm_client: Completion adapter.
            tts: Synthesis adapter.
            memory: Shared conversation memory (a fresh one if omitted).
            cache: Shared response cache (a fresh one if omitted).
            system_prompt: Optional override of the completion instruction.
        """
        self._stt = stt
        self._llm = llm_client
        self._tts = tts
        self._memory = memory if memory is not None else ConversationMemory()
        self._cache = cache if cache is not None else ResponseCache()
        self._system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RelayOrchestrator":
        """Wire the default adapters from application settings."""
        settings = settings or get_settings()
        return cls(
            stt=WhisperSTT(
                api_key=settings.openai_api_key,
                base_url=settings.stt_base_url,
                config=STTConfig(model=settings.stt_model, timeout_s=settings.stt_timeout),
            ),
            llm_client=LLMClient(
                api_key=settings.deepseek_api_key,
                base_url=settings.deepseek_base_url,
                model=settings.llm_model_name,
                max_tokens=settings.llm_max_tokens,
                timeout=settings.llm_timeout,
            ),
            tts=GoogleTTS(
                TTSConfig(
                    voice_id=settings.tts_voice_id,
                    credentials_file=settings.google_application_credentials,
                )
            ),
            memory=ConversationMemory(max_pairs=settings.memory_max_pairs),
        )

    @property
    def memory(self) -> ConversationMemory:
        return self._memory

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def handle_text(self, prompt: str) -> RelayResult:
        """Answer a text prompt with synthesized audio."""
        context = RequestContext(prompt=prompt)
        logger.info(f"[{context.request_id}] Text request: {prompt!r}")
        return await self._respond(context, prompt)

    async def handle_voice(self, audio_path: str | Path, filename: str | None = None) -> RelayResult:
        """
        Answer a recorded question with synthesized audio.

        The file at `audio_path` belongs to this request and is deleted before
        this method returns or raises.

        Args:
            audio_path: Path of the uploaded audio file.
            filename: Original upload name, forwarded to the transcription API
                so it can infer the encoding. Ignored when it has no extension,
                in which case the spooled file name is sent instead.
        """
        path = Path(audio_path)
        context = RequestContext(audio_path=path)

        with transient_artifact(path):
            context.advance(RequestState.TRANSCRIBING)
            try:
                audio = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                logger.warning(f"[{context.request_id}] Could not read uploaded audio: {e}")
                audio = b""

            # Whisper infers the encoding from the extension.
            upload_name = filename if filename and Path(filename).suffix else path.name
            result = await self._stt.transcribe(audio, filename=upload_name)
            transcript = result.text.strip()

            if not transcript:
                logger.info(
                    f"[{context.request_id}] No transcript ({result.unavailable_reason or 'empty'}); "
                    "answering with fallback"
                )
                context.advance(RequestState.FALLBACK)
                context.response_text = HEARING_FALLBACK_TEXT
                return await self._synthesize(context)

            context.transcript = transcript
            context.prompt = transcript
            context.advance(RequestState.TRANSCRIBED)
            logger.info(f"[{context.request_id}] Transcribed: {transcript!r}")
            return await self._respond(context, transcript)

    async def _respond(self, context: RequestContext, prompt: str) -> RelayResult:
        context.advance(RequestState.CACHE_CHECK)
        cached = self._cache.lookup(prompt)

        if cached is not None:
            logger.info(f"[{context.request_id}] Cache hit")
            context.cache_hit = True
            context.response_text = cached
            return await self._synthesize(context)

        logger.info(f"[{context.request_id}] Cache miss")
        context.advance(RequestState.COMPLETING)
        reply = await self._llm.complete(
            self._memory.snapshot(),
            prompt,
            system_prompt=self._system_prompt,
        )
        logger.info(f"[{context.request_id}] LLM response: {reply!r}")
        context.response_text = reply

        context.advance(RequestState.MEMORY_UPDATE)
        self._cache.store(prompt, reply)
        self._memory.append(Turn.user(prompt), Turn.assistant(reply))

        return await self._synthesize(context)

    async def _synthesize(self, context: RequestContext) -> RelayResult:
        context.advance(RequestState.SYNTHESIZING)
        try:
            audio = await self._tts.synthesize(context.response_text or "")
        except SynthesisError as e:
            logger.error(f"[{context.request_id}] Synthesis failed: {e}")
            context.advance(RequestState.FAILED)
            return RelayResult(context=context, error=str(e))

        # The payload is complete at this point; the transport only chunks it.
        context.advance(RequestState.STREAMING)
        context.advance(RequestState.DONE)
        logger.debug(f"[{context.request_id}] Path: {' -> '.join(s.value for s in context.transitions)}")
        return RelayResult(context=context, audio=audio)

    async def close(self) -> None:
        """Close adapter clients."""
        await self._stt.close()
        await self._llm.close()
        await self._tts.close()
