"""Turn execution: context fetch, streaming request, delta delivery.

Callbacks always receive the assistant message id and the full text
produced so far, never a bare fragment, so applying an update twice or late
cannot corrupt the message.
"""

import asyncio
import logging
from collections.abc import Callable

from ..auth import Credential
from ..backend import MailBackendClient, normalize_context
from ..exceptions import TurnError, TurnTimeoutError
from ..llm import ChatMessage, LLMProvider, McpTool, StreamEvent, StreamEventType, StreamingResponse
from .models import Turn, TurnOutcome

logger = logging.getLogger(__name__)

TextCallback = Callable[[str, str], None]
OpenCallback = Callable[[str], None]

MCP_SERVER_LABEL = "mail-agent"


class TurnExecutor:
    """Runs one user turn against the model with mailbox tool access.

    Hidden design decisions:
    - How prior context is fetched and normalized
    - How the mailbox tool grant is attached to the request
    - Which stream events matter and how they are accumulated
    """

    def __init__(
        self,
        backend: MailBackendClient,
        llm: LLMProvider,
        model: str | None = None,
        mcp_server_url: str | None = None,
    ) -> None:
        self._backend = backend
        self._llm = llm
        self._model = model
        self._mcp_server_url = mcp_server_url or backend.mcp_url

    @property
    def model(self) -> str:
        return self._model or self._llm.model

    def mail_tool(self, credential: Credential) -> McpTool:
        """Tool grant for the mail backend, scoped by the user's access token."""
        return McpTool(
            server_label=MCP_SERVER_LABEL,
            server_url=self._mcp_server_url,
            require_approval="never",
            authorization=credential.access_token,
        )

    async def build_messages(self, credential: Credential, user_text: str) -> list[ChatMessage]:
        """Prior context followed by the new user utterance."""
        entries = await self._backend.fetch_context(credential.access_token)
        return [*normalize_context(entries), ChatMessage(role="user", content=user_text)]

    async def execute(
        self,
        credential: Credential,
        turn: Turn,
        on_delta: TextCallback,
        on_done: TextCallback,
        on_error: TextCallback,
        on_open: OpenCallback | None = None,
    ) -> TurnOutcome:
        """Execute a turn.

        Args:
            credential: Valid credential authorizing context fetch and tools
            turn: Turn carrying the text, correlation id and cancellation token
            on_delta: Called with (message_id, accumulated_text) per text delta
            on_done: Called with (message_id, final_text) on completion
            on_error: Called with (message_id, reason) when the turn fails
            on_open: Called with (message_id) once the response stream is open

        Returns:
            COMPLETED, CANCELLED or FAILED. No callback runs after cancellation.

        Exceptions raised by the callbacks propagate unchanged.
        """
        message_id = turn.message_id
        token = turn.token

        try:
            messages = await self.build_messages(credential, turn.text)
            if token.cancelled:
                return TurnOutcome.CANCELLED
            stream = await self._llm.stream_response(
                messages,
                tools=[self.mail_tool(credential)],
                model=self._model,
            )
        except Exception as e:
            return self._fail(turn, e, on_error)

        logger.debug("Stream opened for turn %s (%d input messages)", message_id, len(messages))
        if on_open is not None:
            on_open(message_id)

        accumulated = ""
        try:
            while True:
                try:
                    event = await self._next_event(stream, turn)
                except StopAsyncIteration:
                    return self._fail(turn, TurnError("Response stream ended unexpectedly"), on_error)
                except Exception as e:
                    return self._fail(turn, e, on_error)

                if token.cancelled:
                    logger.info("Turn %s cancelled after %d characters", message_id, len(accumulated))
                    return TurnOutcome.CANCELLED

                if event.type == StreamEventType.TEXT_DELTA:
                    if event.delta:
                        accumulated += event.delta
                        on_delta(message_id, accumulated)
                elif event.type == StreamEventType.COMPLETED:
                    final_text = event.text if event.text is not None else accumulated
                    logger.info("Turn %s completed (usage: %s)", message_id, stream.usage)
                    on_done(message_id, final_text)
                    return TurnOutcome.COMPLETED
                elif event.type == StreamEventType.ERROR:
                    return self._fail(turn, TurnError(event.message or "Stream error"), on_error)
        finally:
            await stream.aclose()

    async def _next_event(self, stream: StreamingResponse, turn: Turn) -> StreamEvent:
        remaining = turn.token.remaining()
        if remaining is None:
            return await stream.__anext__()
        try:
            return await asyncio.wait_for(stream.__anext__(), timeout=remaining)
        except asyncio.TimeoutError:
            raise TurnTimeoutError(f"Response timed out after {turn.token.timeout:g}s") from None

    def _fail(self, turn: Turn, error: Exception, on_error: TextCallback) -> TurnOutcome:
        if turn.token.cancelled:
            return TurnOutcome.CANCELLED
        reason = str(error) or type(error).__name__
        logger.warning("Turn %s failed: %s", turn.message_id, reason)
        on_error(turn.message_id, reason)
        return TurnOutcome.FAILED
