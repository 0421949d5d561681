"""Synthesized audio handed from the pipeline to the transport layer."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

MP3_CONTENT_TYPE = "audio/mpeg"
DEFAULT_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class AudioStream:
    """A complete MP3 payload, read out in chunks by the HTTP layer."""

    data: bytes
    content_type: str = MP3_CONTENT_TYPE

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("AudioStream requires a non-empty payload")

    def __len__(self) -> int:
        return len(self.data)

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        view = memoryview(self.data)
        for start in range(0, len(view), chunk_size):
            yield bytes(view[start : start + chunk_size])
