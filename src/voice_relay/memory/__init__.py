"""
Memory module for conversation context.

Holds the shared history of user/assistant turns that is replayed into
every completion request.
"""

from voice_relay.memory.conversation_memory import (
    DEFAULT_MAX_PAIRS,
    ConversationMemory,
    Turn,
    TurnRole,
)

__all__ = [
    "ConversationMemory",
    "DEFAULT_MAX_PAIRS",
    "Turn",
    "TurnRole",
]
