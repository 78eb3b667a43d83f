from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StreamEventType(str, Enum):
    """Kinds of events a streaming response can produce."""

    TEXT_DELTA = "text_delta"
    COMPLETED = "completed"
    ERROR = "error"
    OTHER = "other"


class StreamEvent(BaseModel):
    """Provider-neutral streaming event."""

    model_config = ConfigDict(frozen=True)

    type: StreamEventType = Field(description="Event kind")
    delta: str = Field(default="", description="Text fragment of a text_delta event")
    text: str | None = Field(default=None, description="Final output text of a completed event, if known")
    message: str | None = Field(default=None, description="Reason carried by an error event")
    usage: dict[str, int] | None = Field(default=None, description="Token usage reported on completion")
    raw_type: str | None = Field(default=None, description="Provider's own event type")


class StreamingResponse:
    """Wrapper for streaming LLM responses that captures usage info.

    Acts as an async iterator of StreamEvent while storing token usage
    carried by the completion event.

    Usage:
        stream = await provider.stream_response(messages, tools=[tool])
        async for event in stream:
            ...
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(self, async_iter: AsyncIterator[StreamEvent]):
        """Initialize with an async iterator of events.

        Args:
            async_iter: Async iterator yielding stream events
        """
        self._iter = async_iter
        self._usage: dict[str, int] | None = None

    @property
    def usage(self) -> dict[str, int] | None:
        """Get token usage info (available once the completion event was read)."""
        return self._usage

    def __aiter__(self) -> "StreamingResponse":
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> StreamEvent:
        """Get next event from the underlying iterator."""
        event = await self._iter.__anext__()
        if event.usage is not None:
            self._usage = event.usage
        return event

    async def aclose(self) -> None:
        """Stop the underlying iterator, releasing the connection."""
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()


class ChatMessage(BaseModel):
    """Represents a chat message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class McpTool(BaseModel):
    """Remote MCP server the model may call during a response."""

    model_config = ConfigDict(frozen=True)

    server_label: str = Field(description="Label identifying the server in tool calls")
    server_url: str = Field(description="URL of the MCP server")
    require_approval: Literal["never", "always"] = Field(
        default="never",
        description="Tool-call approval policy; 'never' runs calls without a human gate"
    )
    authorization: str | None = Field(default=None, repr=False, description="Bearer token for the server")

    def to_param(self) -> dict[str, Any]:
        """Render as a Responses API tool parameter."""
        param: dict[str, Any] = {
            "type": "mcp",
            "server_label": self.server_label,
            "server_url": self.server_url,
            "require_approval": self.require_approval,
        }
        if self.authorization is not None:
            param["authorization"] = self.authorization
        return param
