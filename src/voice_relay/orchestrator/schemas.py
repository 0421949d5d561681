"""
Schemas for the orchestrator module.

Defines the per-request state machine and the result handed to the
transport layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from uuid import uuid4

from voice_relay.voice.audio_stream import AudioStream


class RequestState(str, Enum):
    """States a relay request moves through."""

    RECEIVED = "received"
    TRANSCRIBING = "transcribing"
    TRANSCRIBED = "transcribed"
    FALLBACK = "fallback"
    CACHE_CHECK = "cache_check"
    COMPLETING = "completing"
    MEMORY_UPDATE = "memory_update"
    SYNTHESIZING = "synthesizing"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({RequestState.DONE, RequestState.FAILED})


@dataclass
class RequestContext:
    """Transient state for one request. Discarded when the request ends."""

    request_id: str = field(default_factory=lambda: uuid4().hex[:12])
    audio_path: Path | None = None
    transcript: str | None = None
    prompt: str | None = None
    response_text: str | None = None
    cache_hit: bool = False
    state: RequestState = RequestState.RECEIVED
    transitions: list[RequestState] = field(default_factory=lambda: [RequestState.RECEIVED])

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: RequestState) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Request {self.request_id} already finished in state {self.state.value}")
        self.state = state
        self.transitions.append(state)


@dataclass
class RelayResult:
    """Outcome of a request: audio on success, an error reason on failure."""

    context: RequestContext
    audio: AudioStream | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.context.state == RequestState.DONE and self.audio is not None
