"""Ordered message log for the current session.

Messages are appended in pairs (user + assistant) and never reordered or
removed, except by clearing the whole log. Only the single streaming
assistant message can change, and only through whole-value replacement.
"""

import dataclasses
from collections.abc import Callable

from ..exceptions import InvalidMutationError
from .models import Message

LogListener = Callable[[Message | None], None]


class MessageLog:
    """Append-only message log with one mutable streaming entry."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._index: dict[str, int] = {}
        self._streaming_id: str | None = None
        self._listeners: list[LogListener] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the log in display order."""
        return tuple(self._messages)

    @property
    def streaming_message(self) -> Message | None:
        if self._streaming_id is None:
            return None
        return self._messages[self._index[self._streaming_id]]

    def get(self, message_id: str) -> Message | None:
        position = self._index.get(message_id)
        return self._messages[position] if position is not None else None

    def last_response(self) -> str | None:
        """Content of the most recent assistant message."""
        for message in reversed(self._messages):
            if message.role == "assistant":
                return message.content
        return None

    def add_listener(self, listener: LogListener) -> None:
        """Register a callback for changed messages (None means cleared)."""
        self._listeners.append(listener)

    def _notify(self, message: Message | None) -> None:
        for listener in self._listeners:
            listener(message)

    def _append(self, message: Message) -> None:
        self._index[message.id] = len(self._messages)
        self._messages.append(message)

    def _replace(self, message: Message) -> None:
        self._messages[self._index[message.id]] = message
        self._notify(message)

    def _require_streaming(self, message_id: str) -> Message:
        if self._streaming_id is None or self._streaming_id != message_id:
            raise InvalidMutationError(
                f"Message {message_id} is not the streaming message",
                message_id=message_id,
                streaming_id=self._streaming_id,
            )
        return self._messages[self._index[message_id]]

    def append_turn(self, user_text: str) -> str:
        """Append a user message and its empty streaming assistant reply.

        Returns:
            The assistant message id, used to correlate stream updates

        Raises:
            InvalidMutationError: If another message is still streaming
        """
        if self._streaming_id is not None:
            raise InvalidMutationError(
                "Cannot start a turn while another message is streaming",
                streaming_id=self._streaming_id,
            )

        user_message = Message(role="user", content=user_text)
        assistant_message = Message(role="assistant", content="", streaming=True)
        self._append(user_message)
        self._append(assistant_message)
        self._streaming_id = assistant_message.id

        self._notify(user_message)
        self._notify(assistant_message)
        return assistant_message.id

    def replace_streaming_content(self, message_id: str, full_text: str) -> None:
        """Replace the streaming message's content with the full text so far."""
        message = self._require_streaming(message_id)
        if message.content != full_text:
            self._replace(dataclasses.replace(message, content=full_text))

    def finalize(self, message_id: str, full_text: str, failed: bool = False) -> None:
        """Set the final content and stop streaming."""
        message = self._require_streaming(message_id)
        self._streaming_id = None
        self._replace(dataclasses.replace(message, content=full_text, streaming=False, failed=failed))

    def cancel_streaming(self) -> str | None:
        """Stop streaming, keeping whatever content has arrived.

        Returns:
            The id of the message that was streaming, or None
        """
        message = self.streaming_message
        if message is None:
            return None
        self._streaming_id = None
        self._replace(dataclasses.replace(message, streaming=False))
        return message.id

    def clear(self) -> None:
        """Drop every message. Used at session end."""
        self._messages.clear()
        self._index.clear()
        self._streaming_id = None
        self._notify(None)
