"""Shared test fixtures for all test modules."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from tests.helpers import FakeClock

from perfwatch.core.monitor import PerformanceMonitor


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed Unix time in ms."""
    return FakeClock()


@pytest.fixture
def monitor(clock: FakeClock) -> PerformanceMonitor:
    """Provide a monitor with default config driven by the fake clock."""
    return PerformanceMonitor(clock=clock)


# === ASGI Test Fixtures ===


@pytest.fixture
def basic_asgi_app():
    """Basic ASGI app fixture that returns 200 OK."""
    from perfwatch.adapters.frameworks.asgi import Receive, Scope, Send

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        """Simple ASGI app that returns 200 OK."""
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"OK"})

    return app


@pytest.fixture
def asgi_scope():
    """Factory fixture for creating ASGI scope dicts.

    Used in tests to create scope dicts with customizable method/path/headers.
    """
    from perfwatch.adapters.frameworks.asgi import Scope

    def _scope(
        method: str = "GET",
        path: str = "/test",
        headers: list[tuple[bytes, bytes]] | None = None,
    ) -> Scope:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": headers or [],
        }

    return _scope


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_receive():
    """ASGI receive callable returning an empty request body."""

    async def receive() -> dict[str, object]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return receive


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client, monitor):
            app = create_asgi_app(monitor)
            async with asgi_test_client(app) as client:
                response = await client.get("/report")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def asgi_client(
    monitor: PerformanceMonitor, asgi_test_client
) -> AsyncGenerator:
    """Fixture combining a monitor and an ASGI test client.

    Returns a tuple of (client, monitor).
    """
    from perfwatch.adapters.frameworks.asgi import create_asgi_app

    app = create_asgi_app(monitor)
    async with asgi_test_client(app) as client:
        yield client, monitor
