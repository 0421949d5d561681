"""Response cache keyed by raw prompt text."""

from voice_relay.cache.response_cache import DEFAULT_TTL_SECONDS, CacheEntry, ResponseCache

__all__ = [
    "CacheEntry",
    "DEFAULT_TTL_SECONDS",
    "ResponseCache",
]
