"""Pytest configuration and shared fixtures."""
import asyncio
from collections.abc import Callable

import httpx
import pytest

from mcpmail.auth import Credential, InMemoryCredentialStore
from mcpmail.backend import ContextSynchronizer, MailBackendClient
from mcpmail.llm import ChatMessage, LLMProvider, McpTool, StreamEvent, StreamEventType, StreamingResponse

START_MS = 1_700_000_000_000
BACKEND_URL = "https://backend.test"


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_credential(now: int = START_MS, lifetime_ms: int = 3_600_000, **overrides) -> Credential:
    fields = {
        "access_token": "ya29.access",
        "refresh_token": "1//refresh",
        "email": "a@b.com",
        "expires_at": now + lifetime_ms,
    }
    fields.update(overrides)
    return Credential(**fields)


def delta(text: str) -> StreamEvent:
    return StreamEvent(type=StreamEventType.TEXT_DELTA, delta=text)


def completed(text: str | None = None) -> StreamEvent:
    return StreamEvent(type=StreamEventType.COMPLETED, text=text)


def stream_error(message: str) -> StreamEvent:
    return StreamEvent(type=StreamEventType.ERROR, message=message)


class ScriptedLLMProvider(LLMProvider):
    """Provider replaying a fixed script.

    Script items are StreamEvents (yielded), asyncio.Events (awaited before
    continuing) or exceptions (raised from the stream).
    """

    def __init__(self, script=None, open_error: Exception | None = None, model: str = "test-model"):
        self.script = list(script or [])
        self.open_error = open_error
        self.calls: list[dict] = []
        self.closed_streams = 0
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def stream_response(
        self,
        messages: list[ChatMessage],
        tools: list[McpTool] | None = None,
        model: str | None = None,
        **kwargs
    ) -> StreamingResponse:
        self.calls.append({"messages": messages, "tools": tools, "model": model})
        if self.open_error is not None:
            raise self.open_error
        return StreamingResponse(self._play())

    async def _play(self):
        try:
            for item in self.script:
                if isinstance(item, asyncio.Event):
                    await item.wait()
                elif isinstance(item, BaseException):
                    raise item
                else:
                    yield item
        finally:
            self.closed_streams += 1

    async def close(self) -> None:
        pass


class FakeMailBackend:
    """httpx mock transport handler for the mail backend.

    Routes map (method, path) to (status, json body), an exception to raise,
    or a callable taking the request. Unrouted requests get 200 with {}.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], object] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(200, json={})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, (str, bytes)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def last(self, path: str) -> httpx.Request:
        return [request for request in self.requests if request.url.path == path][-1]


class GatedSynchronizer(ContextSynchronizer):
    """Synchronizer whose email sync waits for a gate to open."""

    def __init__(self, backend: MailBackendClient, gate: asyncio.Event) -> None:
        super().__init__(backend)
        self.gate = gate
        self.synced: list[str] = []

    async def sync(self, credential: Credential) -> bool:
        self.synced.append(credential.email)
        await self.gate.wait()
        return True


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until predicate holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def clock():
    """Return a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def storage():
    """Return the mapping backing the in-memory credential store."""
    return {}


@pytest.fixture
def store(storage, clock):
    """Return an in-memory credential store on the fake clock."""
    return InMemoryCredentialStore(storage=storage, clock=clock)


@pytest.fixture
def fake_backend():
    """Return the mail backend request handler."""
    return FakeMailBackend()


@pytest.fixture
def backend(fake_backend):
    """Return a backend client talking to the fake handler."""
    return MailBackendClient(base_url=BACKEND_URL, transport=httpx.MockTransport(fake_backend))
