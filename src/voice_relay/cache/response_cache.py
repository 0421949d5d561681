"""
Response cache.

A time-expiring map from the raw prompt text to the assistant reply. Expiry is
checked lazily on lookup; nothing sweeps the map in the background.

Keys are not normalized: "Привет" and "привет " are different entries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# One hour.
DEFAULT_TTL_SECONDS = 3600.0


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class ResponseCache:
    """Lazy-expiry key/value store for completion results."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> str | None:
        """Return the cached reply, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            logger.debug(f"Cache entry expired for key of {len(key)} chars")
            return None
        return entry.value

    def store(self, key: str, value: str) -> CacheEntry:
        """Insert or overwrite an entry with a fresh expiry."""
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + self._ttl)
        self._entries[key] = entry
        return entry
