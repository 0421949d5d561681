"""
Conversation memory.

Keeps a bounded, oldest-first log of (user, assistant) turn pairs that is fed
back into every completion call. A single instance is shared by all requests
handled by the orchestrator; there is no per-caller isolation and no locking,
so concurrent requests interleave into one global history.
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAIRS = 10


class TurnRole(str, Enum):
    """Role of the speaker in a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Turn(BaseModel):
    """A single message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: TurnRole = Field(..., description="Role of the speaker")
    content: str = Field(..., description="Message content")

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=TurnRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Turn":
        return cls(role=TurnRole.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> "Turn":
        return cls(role=TurnRole.SYSTEM, content=content)

    def to_payload(self) -> dict[str, str]:
        """Serialize to the chat API message shape."""
        return {"role": self.role.value, "content": self.content}


class ConversationMemory:
    """
    Bounded conversation history.

    `append` is the only mutator. Once the stored length exceeds
    ``2 * max_pairs`` the oldest pairs are dropped, so user/assistant turns
    always stay paired.
    """

    def __init__(self, max_pairs: int = DEFAULT_MAX_PAIRS) -> None:
        """
        Initialize the memory.

        Args:
            max_pairs: Maximum number of (user, assistant) pairs to keep.
        """
        if max_pairs < 1:
            raise ValueError(f"max_pairs must be >= 1, got {max_pairs}")
        self._max_pairs = max_pairs
        self._turns: list[Turn] = []

    @property
    def max_pairs(self) -> int:
        return self._max_pairs

    @property
    def max_turns(self) -> int:
        return self._max_pairs * 2

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, user_turn: Turn, assistant_turn: Turn) -> None:
        """
        Record one exchange and evict the oldest pairs past the bound.

        Args:
            user_turn: The user's message.
            assistant_turn: The assistant's reply.

        Raises:
            ValueError: If the turns do not have the user and assistant roles.
        """
        if user_turn.role != TurnRole.USER:
            raise ValueError(f"Expected a user turn, got {user_turn.role.value}")
        if assistant_turn.role != TurnRole.ASSISTANT:
            raise ValueError(f"Expected an assistant turn, got {assistant_turn.role.value}")

        self._turns.append(user_turn)
        self._turns.append(assistant_turn)

        evicted = 0
        while len(self._turns) > self.max_turns:
            del self._turns[:2]
            evicted += 1

        if evicted:
            logger.debug(f"Evicted {evicted} oldest pair(s) from conversation memory")

    def snapshot(self) -> tuple[Turn, ...]:
        """Return the current history, oldest first."""
        return tuple(self._turns)

    def clear(self) -> None:
        self._turns.clear()
