"""Terminal UI module for mcpmail.

Provides a Textual-based TUI hosting a chat session.

Module structure (each module hides a design decision):
- widgets.py: Custom widgets (message rendering, status line, input bar)
- styles.py: CSS styling (layout decisions)
- app.py: Application orchestration (user interaction flow)
"""

from .app import MailChatApp, run_chat_tui
from .widgets import ChatHistoryWidget, ChatInputBar, InputHistory, MessageView, StatusLine

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "InputHistory",
    "MailChatApp",
    "MessageView",
    "StatusLine",
    "run_chat_tui",
]
