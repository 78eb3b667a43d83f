from .client import DEFAULT_BACKEND_URL, SYNC_MAX_FETCH, MailBackendClient
from .models import ContextEntry, content_to_text, normalize_context, parse_context_payload
from .sync import ContextSynchronizer

__all__ = [
    "DEFAULT_BACKEND_URL",
    "SYNC_MAX_FETCH",
    "ContextEntry",
    "ContextSynchronizer",
    "MailBackendClient",
    "content_to_text",
    "normalize_context",
    "parse_context_payload",
]
