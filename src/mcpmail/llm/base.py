from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, McpTool, StreamingResponse


class LLMProvider(ABC):
    """Streaming completion endpoint with remote tool support.

    Hides which SDK talks to the endpoint, how chat messages and tool grants
    are encoded, and how the endpoint's own events map onto StreamEvent.

    Providers own network resources; use them as async context managers or
    call close() when done:
        async with provider:
            stream = await provider.stream_response(messages, tools=[tool])
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Model used when a request does not name one."""

    @abstractmethod
    async def stream_response(
        self,
        messages: list[ChatMessage],
        tools: list[McpTool] | None = None,
        model: str | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Open a streaming response.

        Args:
            messages: Prior context followed by the new user message
            tools: MCP servers the model may call while answering
            model: Overrides the provider's model for this request
            **kwargs: Extra request parameters passed through unchanged

        Returns:
            Events in arrival order. Usage is available on the returned object
            once the completion event has been read.

        Raises:
            Exception: Whatever the SDK raises when the request cannot be opened
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP client."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # httpx may report a closed loop when the provider outlives asyncio.run
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
