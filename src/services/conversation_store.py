"""In-memory conversation history store.

For multiple instances, consider using Redis or a database.
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]


class Turn(BaseModel):
    """One message in a conversation, tagged with its originator role."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ConversationStore:
    """Per-process mapping from a client identifier to its ordered turns.

    Both limits are optional. With neither set the store grows without bound.

    Args:
        max_turns: Keep only the newest N turns for each identifier
        ttl_seconds: Drop a conversation that has been idle longer than this
        clock: Monotonic time source, replaceable in tests
    """

    def __init__(
        self,
        max_turns: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_turns is not None and max_turns < 1:
            raise ValueError(f"max_turns must be at least 1, got {max_turns}")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.max_turns = max_turns
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._conversations: dict[str, list[Turn]] = {}
        self._last_access: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def _sweep(self) -> None:
        """Drop every conversation idle longer than the TTL."""
        if self.ttl_seconds is None:
            return
        now = self._clock()
        expired = [uid for uid, seen in self._last_access.items() if now - seen > self.ttl_seconds]
        for user_id in expired:
            logger.info(f"Conversation for {user_id} expired after {self.ttl_seconds}s idle")
            self.clear_conversation(user_id)

    def _touch(self, user_id: str) -> None:
        self._last_access[user_id] = self._clock()

    def get_or_create(self, user_id: str) -> list[Turn]:
        """Return the live turn list for a user, creating it on first use."""
        self._sweep()
        self._touch(user_id)
        return self._conversations.setdefault(user_id, [])

    def append(self, user_id: str, turn: Turn) -> None:
        """Add a turn to the conversation history."""
        conversation = self.get_or_create(user_id)
        conversation.append(turn)
        if self.max_turns is not None and len(conversation) > self.max_turns:
            del conversation[: len(conversation) - self.max_turns]

    def discard_last(self, user_id: str) -> Turn | None:
        """Remove and return the newest turn, if any."""
        conversation = self._conversations.get(user_id)
        if not conversation:
            return None
        return conversation.pop()

    def get_conversation(self, user_id: str) -> list[Turn]:
        """Get conversation history for a user."""
        self._sweep()
        return list(self._conversations.get(user_id, []))

    def clear_conversation(self, user_id: str) -> None:
        """Clear conversation history for a user."""
        self._conversations.pop(user_id, None)
        self._last_access.pop(user_id, None)
        lock = self._locks.get(user_id)
        if lock is not None and not lock.locked():
            del self._locks[user_id]

    def lock(self, user_id: str) -> asyncio.Lock:
        """Lock serializing requests for one identifier."""
        return self._locks[user_id]
