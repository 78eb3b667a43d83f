from .base import LLMProvider
from .factory import create_llm_provider
from .models import ChatMessage, McpTool, StreamEvent, StreamEventType, StreamingResponse
from .providers import OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "McpTool",
    "StreamEvent",
    "StreamEventType",
    "StreamingResponse",
    "OpenAIProvider",
]
