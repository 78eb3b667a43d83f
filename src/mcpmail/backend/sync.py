"""Session-start synchronization with the mail backend.

Both operations run once when a session is established. Their failures are
logged and swallowed: the user can still chat, possibly against stale
context.
"""

import logging

import httpx

from ..auth import Credential
from ..exceptions import BackendError
from .client import SYNC_MAX_FETCH, MailBackendClient

logger = logging.getLogger(__name__)


class ContextSynchronizer:
    """Re-indexes recent mail and resets remote context for a new session."""

    def __init__(self, backend: MailBackendClient, max_fetch: int = SYNC_MAX_FETCH) -> None:
        self._backend = backend
        self._max_fetch = max_fetch

    async def sync(self, credential: Credential) -> bool:
        """Request indexing of recent mail. Returns False on failure."""
        try:
            await self._backend.sync_emails(credential.access_token, max_fetch=self._max_fetch)
        except (BackendError, httpx.HTTPError) as e:
            logger.warning("Email sync failed for %s: %s", credential.email, e)
            return False
        return True

    async def reset_context(self, credential: Credential) -> bool:
        """Clear server-side conversational memory. Returns False on failure."""
        try:
            await self._backend.clear_context(credential.access_token)
        except (BackendError, httpx.HTTPError) as e:
            logger.warning("Context clear failed for %s: %s", credential.email, e)
            return False
        return True
