"""Main Textual TUI application.

Hosts a SessionController: mirrors its message log and state, forwards
submissions, cancellation and logout.
"""

import asyncio

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from ..chat import Message, SessionController, SessionState, TurnOutcome
from .styles import APP_CSS
from .widgets import ChatHistoryWidget, ChatInputBar, StatusLine


class MailChatApp(App):
    """Textual TUI for chatting with the mailbox assistant."""

    CSS = APP_CSS
    TITLE = "MCP Mail"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "cancel_turn", "Stop"),
        Binding("ctrl+l", "logout", "Logout"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
    ]

    def __init__(self, controller: SessionController, authorization_url: str | None = None) -> None:
        super().__init__()
        self._controller = controller
        self._authorization_url = authorization_url
        self._closing = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield StatusLine(id="status-line")
        yield ChatHistoryWidget(id="chat-history")
        yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self._controller.log.add_listener(self._on_log_changed)
        self._controller.add_listener(self._on_state_changed)
        self._show_state(self._controller.state)
        self._start_session()

    @work(exclusive=True, group="session")
    async def _start_session(self) -> None:
        if not await self._controller.mount():
            self._show_sign_in()
        elif self._controller.credential is not None:
            self.sub_title = self._controller.credential.email

    def _on_log_changed(self, message: Message | None) -> None:
        if self._closing:
            return
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        if message is None:
            chat.clear_history()
        else:
            chat.render_message(message)

    def _on_state_changed(self, old: SessionState, new: SessionState) -> None:
        if self._closing:
            return
        self._show_state(new)
        if new == SessionState.UNAUTHENTICATED:
            self.sub_title = "signed out"
            self._show_sign_in()

    def _show_state(self, state: SessionState) -> None:
        credential = self._controller.credential
        self.query_one("#status-line", StatusLine).show_state(
            state, credential.email if credential else None
        )
        self.query_one("#chat-input-bar", ChatInputBar).set_enabled(state == SessionState.READY)

    def _show_sign_in(self) -> None:
        lines = ["You are not signed in."]
        if self._authorization_url:
            lines.append(f"Authorize mailbox access at: {self._authorization_url}")
        lines.append("Then run `mcpmail login <callback-url>` and restart the chat.")
        self.query_one("#chat-history", ChatHistoryWidget).show_notice("\n".join(lines))

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        if not self._controller.accepts_input:
            self.notify("Please wait for the current request", severity="warning", timeout=2)
            return
        self._run_turn(event.value)

    @work(group="turn")
    async def _run_turn(self, text: str) -> None:
        """Run one turn as a background async worker."""
        try:
            outcome = await self._controller.submit(text)
        except asyncio.CancelledError:
            return

        if outcome == TurnOutcome.REJECTED:
            self.query_one("#chat-input-bar", ChatInputBar).restore(text)
            self.notify("Please wait for the current request", severity="warning", timeout=2)
        elif outcome == TurnOutcome.FAILED:
            self.notify("Request failed", severity="error", timeout=4)
        elif outcome == TurnOutcome.CANCELLED:
            self.notify("Stopped", severity="warning", timeout=2)
        elif outcome == TurnOutcome.UNAUTHENTICATED:
            self.notify("Session expired, please sign in again", severity="error", timeout=5)

    def action_cancel_turn(self) -> None:
        """Stop the in-flight turn, keeping the partial answer."""
        if not self._controller.cancel():
            self.notify("Nothing to stop", timeout=2)

    def action_logout(self) -> None:
        self._controller.logout()
        self.notify("Logged out", timeout=2)

    def action_copy_last_response(self) -> None:
        """Copy last assistant response to clipboard."""
        response = self._controller.log.last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")

    async def on_unmount(self) -> None:
        """End the session when the app exits."""
        self._closing = True
        await self._controller.close()


async def run_chat_tui(controller: SessionController, authorization_url: str | None = None) -> None:
    """Run the Textual TUI.

    Args:
        controller: Session controller to host
        authorization_url: Where to send the user when no credential is stored
    """
    app = MailChatApp(controller, authorization_url=authorization_url)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
