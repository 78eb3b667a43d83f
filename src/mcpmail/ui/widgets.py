"""Textual widgets for the chat screen.

Messages are rendered once and updated in place by id while they stream.
"""

from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click, Key
from textual.message import Message as TextualMessage
from textual.widgets import Button, Markdown, Static, TextArea

from ..chat import Message, SessionState

STATUS_TEXT = {
    SessionState.UNAUTHENTICATED: "Not signed in",
    SessionState.READY: "Ready",
    SessionState.SYNCING: "Syncing your emails…",
    SessionState.SENDING: "Processing your request…",
    SessionState.STREAMING: "Receiving response… (Esc to stop)",
}


class MessageView(Vertical):
    """One chat message. Clicking copies its content to the clipboard."""

    def __init__(self, message: Message, *args, **kwargs) -> None:
        role_class = "user-message" if message.role == "user" else "assistant-message"
        super().__init__(*args, classes=f"chat-message {role_class}", **kwargs)
        self._message = message
        self.set_class(message.streaming, "-streaming")
        self.set_class(message.failed, "-error")

    def compose(self):
        yield Static(self._header_text(), classes="message-header")
        if self._message.role == "assistant":
            yield Markdown(self._body_text(), classes="message-content")
        else:
            yield Static(self._message.content, classes="message-content", markup=False)

    def _header_text(self) -> str:
        prefix = "> You" if self._message.role == "user" else "< Assistant"
        return f"{prefix} [{self._message.timestamp.strftime('%H:%M:%S')}]"

    def _body_text(self) -> str:
        if self._message.streaming and not self._message.content:
            return "…"
        return self._message.content

    def update_message(self, message: Message) -> None:
        """Show the latest version of the message."""
        self._message = message
        self.set_class(message.streaming, "-streaming")
        self.set_class(message.failed, "-error")
        # Before compose runs there is nothing to update; compose reads _message
        for markdown in self.query(Markdown):
            markdown.update(self._body_text())

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self._message.content)
        self.app.notify("Copied to clipboard", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history mirroring the session's message log."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._views: dict[str, MessageView] = {}

    def render_message(self, message: Message) -> None:
        """Add the message, or update it in place if already shown."""
        view = self._views.get(message.id)
        if view is None:
            view = MessageView(message)
            self._views[message.id] = view
            self.mount(view)
            self.border_subtitle = f"{len(self._views)} messages"
        else:
            view.update_message(message)
        self.scroll_end(animate=False)

    def show_notice(self, text: str) -> None:
        """Show a system notice that is not part of the conversation."""
        self.mount(Static(text, classes="chat-message message-header", markup=False))

    def clear_history(self) -> None:
        self._views.clear()
        self.remove_children()
        self.border_subtitle = "Conversation"


class StatusLine(Static):
    """One-line session status."""

    def show_state(self, state: SessionState, email: str | None = None) -> None:
        text = STATUS_TEXT[state]
        if email and state == SessionState.READY:
            text = f"{text} · {email}"
        self.set_class(state in (SessionState.SYNCING, SessionState.SENDING, SessionState.STREAMING), "-busy")
        self.set_class(state == SessionState.UNAUTHENTICATED, "-signed-out")
        self.update(text)


class InputHistory:
    """Previously submitted inputs, browsed newest first.

    The cursor sits past the newest entry until the user starts browsing.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._cursor = 0

    def record(self, value: str) -> None:
        if not self._entries or self._entries[-1] != value:
            self._entries.append(value)
        self._cursor = len(self._entries)

    def older(self) -> str | None:
        if not self._entries:
            return None
        self._cursor = max(0, self._cursor - 1)
        return self._entries[self._cursor]

    def newer(self) -> str | None:
        """Next entry, or "" once past the newest."""
        if not self._entries:
            return None
        self._cursor = min(len(self._entries), self._cursor + 1)
        if self._cursor == len(self._entries):
            return ""
        return self._entries[self._cursor]


class ChatInputBar(Horizontal):
    """Multi-line input with a Send button and input history.

    ctrl+j submits; terminals do not report modifiers on Enter.
    up/down browse history when the cursor is at the start/end of the text.
    """

    class Submitted(TextualMessage):
        """Posted with the stripped input text."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.history = InputHistory()

    @property
    def text_area(self) -> TextArea:
        return self.query_one("#chat-input", TextArea)

    def compose(self):
        area = TextArea(id="chat-input", show_line_numbers=False)
        area.cursor_blink = False
        area.highlight_cursor_line = False
        yield area
        yield Button("Send", id="send-btn", variant="success").with_tooltip("Send (Ctrl+J)")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self.submit()

    def on_key(self, event: Key) -> None:
        area = self.text_area
        if event.key == "ctrl+j":
            self.submit()
        elif event.key == "up" and area.cursor_location == (0, 0):
            self._show(self.history.older())
        elif event.key == "down" and area.cursor_location == area.document.end:
            self._show(self.history.newer())
        else:
            return
        event.prevent_default()
        event.stop()

    def _show(self, value: str | None) -> None:
        if value is not None:
            self.text_area.text = value

    def submit(self) -> None:
        area = self.text_area
        value = area.text.strip()
        if not value or area.disabled:
            return
        self.history.record(value)
        area.text = ""
        self.post_message(self.Submitted(value))

    def restore(self, value: str) -> None:
        """Put back text that could not be sent, unless the user typed something new."""
        if not self.text_area.text:
            self.text_area.text = value

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable input while the session is busy."""
        self.text_area.disabled = not enabled
        self.query_one("#send-btn", Button).disabled = not enabled
        if enabled:
            self.text_area.focus()
