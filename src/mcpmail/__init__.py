"""
MCPMail: A terminal chat client for an assistant that works on your mailbox.

The model reaches the mailbox through a remote MCP tool; this package keeps
the credential, the synchronized mail context and the conversation.
Each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .auth import Credential, CredentialStore, create_credential_store
from .chat import Message, MessageLog, SessionController, SessionState, TurnExecutor, TurnOutcome
from .exceptions import MCPMailError

__all__ = [
    "Credential",
    "CredentialStore",
    "MCPMailError",
    "Message",
    "MessageLog",
    "SessionController",
    "SessionState",
    "TurnExecutor",
    "TurnOutcome",
    "create_credential_store",
]
