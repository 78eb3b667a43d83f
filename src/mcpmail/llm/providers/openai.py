from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, McpTool, StreamEvent, StreamEventType, StreamingResponse

DEFAULT_MODEL = "gpt-4o"


def _messages_to_responses_format(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Convert chat messages to Responses API input format.

    The Responses API takes an array of messages with roles:
    - 'developer' (same as 'system') for instructions
    - 'user' for user messages
    - 'assistant' for previous model responses

    Returns:
        List of message dicts with 'role' and 'content' keys
    """
    responses_messages = []

    for msg in messages:
        if msg.role == "system":
            # System messages become developer messages in Responses API
            role = "developer"
        elif msg.role in ("user", "assistant", "developer"):
            role = msg.role
        else:
            # Default to user role for unknown roles
            role = "user"
        responses_messages.append({"role": role, "content": msg.content})

    return responses_messages


def _usage_to_dict(usage: Any) -> dict[str, int] | None:
    if usage is None:
        return None
    return {
        "prompt_tokens": getattr(usage, "input_tokens", 0) or 0,
        "completion_tokens": getattr(usage, "output_tokens", 0) or 0,
        "total_tokens": getattr(usage, "total_tokens", 0) or 0,
    }


def to_stream_event(event: Any) -> StreamEvent:
    """Translate a Responses API stream event into a StreamEvent."""
    event_type = getattr(event, "type", None)

    if event_type == "response.output_text.delta":
        return StreamEvent(
            type=StreamEventType.TEXT_DELTA,
            delta=getattr(event, "delta", "") or "",
            raw_type=event_type,
        )

    if event_type == "response.completed":
        response = getattr(event, "response", None)
        return StreamEvent(
            type=StreamEventType.COMPLETED,
            text=getattr(response, "output_text", None),
            usage=_usage_to_dict(getattr(response, "usage", None)),
            raw_type=event_type,
        )

    if event_type == "response.failed":
        error = getattr(getattr(event, "response", None), "error", None)
        return StreamEvent(
            type=StreamEventType.ERROR,
            message=getattr(error, "message", None) or "Response failed",
            raw_type=event_type,
        )

    if event_type == "response.incomplete":
        details = getattr(getattr(event, "response", None), "incomplete_details", None)
        reason = getattr(details, "reason", None) or "unknown reason"
        return StreamEvent(
            type=StreamEventType.ERROR,
            message=f"Response incomplete: {reason}",
            raw_type=event_type,
        )

    if event_type == "error":
        return StreamEvent(
            type=StreamEventType.ERROR,
            message=getattr(event, "message", None) or "Stream error",
            raw_type=event_type,
        )

    return StreamEvent(type=StreamEventType.OTHER, raw_type=event_type)


class OpenAIProvider(LLMProvider):
    """OpenAI Responses API provider.

    Works against any OpenAI-compatible endpoint exposing the Responses API
    (set base_url).

    Hidden design decisions:
    - OpenAI API client initialization
    - Message and tool format conversion
    - Mapping of Responses API events to StreamEvent
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str | None = DEFAULT_MODEL,
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: API key for the endpoint
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model or DEFAULT_MODEL
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def stream_response(
        self,
        messages: list[ChatMessage],
        tools: list[McpTool] | None = None,
        model: str | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Open a streaming response with the Responses API.

        Args:
            messages: Conversation history (converted to Responses API format)
            tools: MCP servers granted to the model
            model: Model to use (overrides default)
            **kwargs: Additional Responses API parameters

        Returns:
            StreamingResponse over translated events
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "input": _messages_to_responses_format(messages),
            "stream": True,
        }
        if tools:
            request_params["tools"] = [tool.to_param() for tool in tools]

        request_params.update(kwargs)

        stream = await self._client.responses.create(**request_params)
        return StreamingResponse(self._event_stream(stream))

    async def _event_stream(self, stream: Any) -> AsyncIterator[StreamEvent]:
        """Internal generator translating raw events, closing the stream on exit."""
        try:
            async for event in stream:
                yield to_stream_event(event)
        finally:
            await stream.close()

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
