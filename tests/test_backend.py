"""Unit tests for the mail backend module."""
import json

import httpx
import pytest
from conftest import make_credential
from hypothesis import given
from hypothesis import strategies as st

from mcpmail.backend import (
    ContextEntry,
    ContextSynchronizer,
    content_to_text,
    normalize_context,
    parse_context_payload,
)
from mcpmail.exceptions import BackendError
from mcpmail.llm import ChatMessage


class TestMailBackendClient:
    """Tests for MailBackendClient requests."""

    @pytest.mark.asyncio
    async def test_sync_emails_request(self, backend, fake_backend):
        """Test that sync posts max_fetch with the bearer token."""
        await backend.sync_emails("tok", max_fetch=50)

        request = fake_backend.last("/api/sync-emails")
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"max_fetch": 50}

    @pytest.mark.asyncio
    async def test_clear_context_request(self, backend, fake_backend):
        await backend.clear_context("tok")

        request = fake_backend.last("/api/context/clear")
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_non_success_raises_backend_error(self, backend, fake_backend):
        fake_backend.routes[("POST", "/api/sync-emails")] = (503, {"detail": "down"})

        with pytest.raises(BackendError) as exc_info:
            await backend.sync_emails("tok")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_fetch_context(self, backend, fake_backend):
        """Test that context entries are parsed from the response body."""
        fake_backend.routes[("GET", "/api/context")] = (200, {
            "context": [
                {"role": "user", "content": "earlier question"},
                {"role": "assistant", "content": {"summary": "3 unread"}},
            ]
        })

        entries = await backend.fetch_context("tok")

        assert entries == [
            ContextEntry(role="user", content="earlier question"),
            ContextEntry(role="assistant", content={"summary": "3 unread"}),
        ]
        assert fake_backend.last("/api/context").headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_fetch_context_server_error_is_empty(self, backend, fake_backend):
        """Test that a non-success status degrades to an empty context."""
        fake_backend.routes[("GET", "/api/context")] = (500, {"error": "boom"})

        assert await backend.fetch_context("tok") == []

    @pytest.mark.asyncio
    async def test_fetch_context_non_json_is_empty(self, backend, fake_backend):
        fake_backend.routes[("GET", "/api/context")] = (200, "<html>oops</html>")

        assert await backend.fetch_context("tok") == []

    @pytest.mark.asyncio
    async def test_fetch_context_transport_error_propagates(self, backend, fake_backend):
        fake_backend.routes[("GET", "/api/context")] = httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            await backend.fetch_context("tok")

    def test_mcp_url(self, backend):
        assert backend.mcp_url == "https://backend.test/mcp"


class TestContextModels:
    """Tests for context parsing and normalization."""

    def test_string_content_kept(self):
        assert content_to_text("hello") == "hello"

    def test_structured_content_compact_json(self):
        """Test that non-string content becomes compact JSON."""
        assert content_to_text({"a": [1, 2], "b": "é"}) == '{"a":[1,2],"b":"é"}'
        assert content_to_text([]) == "[]"

    def test_missing_content_is_empty(self):
        """Test that an entry without content contributes empty text, not "null"."""
        entries = parse_context_payload({"context": [{"role": "assistant"}, {"role": "user", "content": None}]})

        assert normalize_context(entries) == [
            ChatMessage(role="assistant", content=""),
            ChatMessage(role="user", content=""),
        ]

    @given(st.recursive(
        st.none() | st.booleans() | st.integers() | st.text(),
        lambda children: st.lists(children) | st.dictionaries(st.text(), children),
        max_leaves=10,
    ))
    def test_normalization_deterministic(self, content):
        """Property test: structured content always renders to the same JSON string."""
        first = content_to_text(content)

        assert first == content_to_text(content)
        if content is None:
            assert first == ""
        elif not isinstance(content, str):
            assert json.loads(first) == content

    def test_normalize_context(self):
        entries = [
            ContextEntry(role="system", content="be brief"),
            ContextEntry(role="tool", content=[{"id": 1}]),
        ]

        assert normalize_context(entries) == [
            ChatMessage(role="system", content="be brief"),
            ChatMessage(role="tool", content='[{"id":1}]'),
        ]

    @pytest.mark.parametrize("payload", [None, [], "context", {"context": "nope"}, {"other": []}])
    def test_malformed_payload_is_empty(self, payload):
        assert parse_context_payload(payload) == []

    def test_items_without_role_skipped(self):
        payload = {"context": [{"content": "x"}, "text", {"role": 3}, {"role": "user"}]}

        assert parse_context_payload(payload) == [ContextEntry(role="user", content=None)]


class TestContextSynchronizer:
    """Tests for session-start synchronization."""

    @pytest.mark.asyncio
    async def test_sync_and_reset_succeed(self, backend, fake_backend):
        synchronizer = ContextSynchronizer(backend)
        credential = make_credential()

        assert await synchronizer.sync(credential) is True
        assert await synchronizer.reset_context(credential) is True
        assert fake_backend.paths == ["/api/sync-emails", "/api/context/clear"]

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, backend, fake_backend):
        """Test that backend failures are reported as False, never raised."""
        fake_backend.routes[("POST", "/api/sync-emails")] = (500, {})
        fake_backend.routes[("POST", "/api/context/clear")] = httpx.ReadTimeout("slow")
        synchronizer = ContextSynchronizer(backend)
        credential = make_credential()

        assert await synchronizer.sync(credential) is False
        assert await synchronizer.reset_context(credential) is False

    @pytest.mark.asyncio
    async def test_custom_max_fetch(self, backend, fake_backend):
        await ContextSynchronizer(backend, max_fetch=10).sync(make_credential())

        assert json.loads(fake_backend.last("/api/sync-emails").content) == {"max_fetch": 10}
