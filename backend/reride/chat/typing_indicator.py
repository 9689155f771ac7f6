"""
Typing indicator.

WHAT: Process-wide "who is typing where" value
WHY: Ephemeral UI hint; never persisted or notified
HOW: Single slot that expires after TYPING_INDICATOR_TIMEOUT_SECONDS
"""

import time
from dataclasses import dataclass
from typing import Callable

from ..core.config import settings
from ..models.message import Role


@dataclass
class TypingStatus:
    """Current typing indicator."""
    conversation_id: str
    user_role: Role
    started_at: float  # monotonic seconds


class TypingIndicator:
    """At most one conversation's typing state at a time."""

    def __init__(
        self,
        timeout_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic
    ):
        self._timeout = (
            settings.TYPING_INDICATOR_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._monotonic = monotonic
        self._status: TypingStatus | None = None

    def set(self, conversation_id: str, role: Role, is_typing: bool) -> None:
        """Start typing (replacing any other indicator) or stop it."""
        if is_typing:
            self._status = TypingStatus(conversation_id, role, self._monotonic())
            return

        current = self._status
        if current and current.conversation_id == conversation_id and current.user_role == role:
            self._status = None

    def current(self) -> TypingStatus | None:
        """The live indicator, or None once it has expired."""
        if self._status and self._monotonic() - self._status.started_at >= self._timeout:
            self._status = None
        return self._status

    def clear(self) -> None:
        self._status = None
