"""
HTTP interface for the relay.

Exposes the orchestrator to the embedded client:

- POST /api/voice  multipart `audio_file` -> chunked audio/mpeg
- POST /api/text   JSON {"text": ...}     -> audio/mpeg
- GET  /health
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from voice_relay.config import Settings, get_settings
from voice_relay.orchestrator import RelayOrchestrator
from voice_relay.voice.audio_stream import MP3_CONTENT_TYPE

logger = logging.getLogger(__name__)

TEXT_MISSING_MESSAGE = 'Text prompt missing. Expected JSON body: { "text": "..." }'
AUDIO_MISSING_MESSAGE = "Audio file missing. Expected multipart field 'audio_file'."


def _write_spool_file(data: bytes, directory: str, suffix: str) -> Path:
    Path(directory).mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="relay_upload_", suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


async def spool_upload(upload: UploadFile, directory: str) -> Path:
    """Save an uploaded file to a temporary path owned by the caller."""
    data = await upload.read()
    suffix = Path(upload.filename or "").suffix or ".wav"
    return await asyncio.to_thread(_write_spool_file, data, directory, suffix)


def get_orchestrator(request: Request) -> RelayOrchestrator:
    return request.app.state.orchestrator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_app(
    settings: Settings | None = None,
    orchestrator: RelayOrchestrator | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (cached settings if not provided).
        orchestrator: The long-lived orchestrator. Built from settings when
            omitted. Every request shares it, along with its memory and cache.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or get_settings()
    orchestrator = orchestrator or RelayOrchestrator.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"Voice relay ready (memory pairs={orchestrator.memory.max_pairs})")
        yield
        await orchestrator.close()

    app = FastAPI(title="Voice Relay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    @app.post("/api/voice")
    async def voice(
        audio_file: UploadFile | str | None = File(default=None),
        relay: RelayOrchestrator = Depends(get_orchestrator),
        app_settings: Settings = Depends(get_app_settings),
    ) -> Response:
        # A plain form field named audio_file is as missing as no field at all.
        if audio_file is None or isinstance(audio_file, str):
            return JSONResponse(status_code=400, content={"error": AUDIO_MISSING_MESSAGE})

        try:
            path = await spool_upload(audio_file, app_settings.upload_dir)
            result = await relay.handle_voice(path, filename=audio_file.filename)
        except Exception as e:
            logger.exception(f"Voice request failed: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})
        finally:
            await audio_file.close()

        if not result.ok:
            return JSONResponse(
                status_code=500,
                content={"error": result.error or "Speech synthesis failed"},
            )

        return StreamingResponse(
            result.audio.iter_chunks(app_settings.stream_chunk_size),
            media_type=MP3_CONTENT_TYPE,
        )

    @app.post("/api/text")
    async def text(
        request: Request,
        relay: RelayOrchestrator = Depends(get_orchestrator),
    ) -> Response:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        prompt = payload.get("text") if isinstance(payload, dict) else None
        # Whitespace-only text counts as missing: there is nothing to answer.
        if not isinstance(prompt, str) or not prompt.strip():
            return PlainTextResponse(TEXT_MISSING_MESSAGE, status_code=400)

        try:
            result = await relay.handle_text(prompt)
        except Exception as e:
            logger.exception(f"Text request failed: {e}")
            return PlainTextResponse(f"Server error during AI processing: {e}", status_code=500)

        if not result.ok:
            return PlainTextResponse(
                f"Server error during AI processing: {result.error or 'speech synthesis failed'}",
                status_code=500,
            )

        return Response(content=result.audio.data, media_type=MP3_CONTENT_TYPE)

    @app.get("/health")
    async def health(relay: RelayOrchestrator = Depends(get_orchestrator)) -> dict:
        return {
            "status": "ok",
            "memory_turns": len(relay.memory),
            "cache_entries": len(relay.cache),
        }

    return app
