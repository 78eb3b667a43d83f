"""Mail backend API client.

All requests are bearer-authorized with the caller's access token. The
client holds no credential of its own, so one instance can be shared across
logins.
"""

import logging
from typing import Any

import httpx

from ..exceptions import BackendError
from .models import ContextEntry, parse_context_payload

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "https://mail-agent.fastmcp.app"
SYNC_MAX_FETCH = 50


class MailBackendClient:
    """Client for the mail backend's sync and context endpoints.

    Manages a shared httpx client for connection reuse.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def mcp_url(self) -> str:
        """URL of the backend's MCP server."""
        return f"{self._base_url}/mcp"

    async def close(self) -> None:
        """Close the shared HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "MailBackendClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self, access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    def _check(self, response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        raise BackendError(
            f"{operation} failed with HTTP {response.status_code}",
            status_code=response.status_code,
            operation=operation,
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def sync_emails(self, access_token: str, max_fetch: int = SYNC_MAX_FETCH) -> None:
        """Ask the backend to index up to max_fetch recent emails.

        Raises:
            BackendError: On a non-success response
            httpx.HTTPError: On transport failure
        """
        response = await self._http.post(
            "/api/sync-emails",
            json={"max_fetch": max_fetch},
            headers=self._headers(access_token),
        )
        self._check(response, "Email sync")
        logger.info("Email sync accepted (max_fetch=%d)", max_fetch)

    async def clear_context(self, access_token: str) -> None:
        """Drop the server-side conversational context.

        Raises:
            BackendError: On a non-success response
            httpx.HTTPError: On transport failure
        """
        response = await self._http.post("/api/context/clear", headers=self._headers(access_token))
        self._check(response, "Context clear")
        logger.info("Remote context cleared")

    async def fetch_context(self, access_token: str) -> list[ContextEntry]:
        """Fetch prior conversational context.

        A non-success status or an unreadable body yields an empty context.

        Raises:
            httpx.HTTPError: On transport failure
        """
        response = await self._http.get("/api/context", headers=self._headers(access_token))
        if not response.is_success:
            logger.warning("Context fetch returned HTTP %d, using empty context", response.status_code)
            return []

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Context fetch returned a non-JSON body, using empty context")
            return []

        entries = parse_context_payload(payload)
        logger.debug("Fetched %d context entries", len(entries))
        return entries
