"""Chat session module for mcpmail.

Module structure (each module hides a design decision):
- models.py: Message, turn and state representation
- cancellation.py: How a turn is cancelled or timed out
- message_log.py: Ordering and mutation rules of the conversation
- executor.py: How one turn talks to the backend and the model
- controller.py: When turns may start, stop or fail
"""

from .cancellation import CancellationToken
from .controller import ERROR_PREFIX, SessionController
from .executor import TurnExecutor
from .message_log import MessageLog
from .models import Message, SessionState, Turn, TurnOutcome

__all__ = [
    "ERROR_PREFIX",
    "CancellationToken",
    "Message",
    "MessageLog",
    "SessionController",
    "SessionState",
    "Turn",
    "TurnExecutor",
    "TurnOutcome",
]
