"""Data models for the mail backend's conversational context."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..llm.models import ChatMessage


class ContextEntry(BaseModel):
    """One entry of the remote conversational context. Read-only."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the entry's author")
    content: Any = Field(default=None, description="Entry content, not necessarily text")


def content_to_text(content: Any) -> str:
    """Render entry content as text.

    Missing content is empty text. Other non-string content is serialized to
    compact JSON so the same value always produces the same string.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content, separators=(",", ":"), ensure_ascii=False)


def normalize_context(entries: list[ContextEntry]) -> list[ChatMessage]:
    """Convert context entries to chat messages with string content."""
    return [
        ChatMessage(role=entry.role, content=content_to_text(entry.content))
        for entry in entries
    ]


def parse_context_payload(payload: Any) -> list[ContextEntry]:
    """Extract context entries from a GET /api/context response body.

    Anything that is not an object with a 'context' list yields no entries;
    items without a string role are skipped.
    """
    if not isinstance(payload, dict):
        return []
    items = payload.get("context")
    if not isinstance(items, list):
        return []
    return [
        ContextEntry(role=item["role"], content=item.get("content"))
        for item in items
        if isinstance(item, dict) and isinstance(item.get("role"), str)
    ]
