"""Data models for a chat session.

Hides the internal representation of messages and turns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from .cancellation import CancellationToken

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    """A message in the conversation.

    Frozen: the log swaps in a new instance when the streaming message changes,
    so snapshots handed out earlier never move under the caller.
    """

    role: Role
    content: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    streaming: bool = False
    failed: bool = False  # the turn ended in an error


@dataclass
class Turn:
    """One user submission in flight. Never persisted."""

    text: str
    message_id: str  # id of the assistant message the turn writes to
    token: CancellationToken = field(default_factory=CancellationToken)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled


class TurnOutcome(str, Enum):
    """How a submission ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    REJECTED = "rejected"
    UNAUTHENTICATED = "unauthenticated"


class SessionState(str, Enum):
    """Session controller states."""

    UNAUTHENTICATED = "unauthenticated"
    READY = "ready"
    SYNCING = "syncing"
    SENDING = "sending"
    STREAMING = "streaming"
