"""ASGI generic adapter for performance telemetry.

A framework-agnostic ASGI application exposing a monitor's metrics,
statistics, alerts and report, plus a middleware that times every HTTP
request. Both run under any ASGI server (uvicorn, hypercorn, daphne)
without FastAPI installed.
"""

import fnmatch
import json
import logging
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from perfwatch.adapters.frameworks.query_params import (
    _parse_limit_param,
    _parse_name_param,
    _parse_since_param,
)
from perfwatch.core.encoding.ndjson import (
    encode_alerts,
    encode_samples,
    encode_snapshot,
)
from perfwatch.core.monitor import PerformanceMonitor

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

NDJSON = "application/x-ndjson"
JSON = "application/json"

# Query filters shared by the sample-based endpoints
Filters = dict[str, Any]


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Decode the scope's query string; undecodable bytes become U+FFFD."""
    raw = scope.get("query_string", b"")
    return parse_qs(raw.decode(errors="replace"))


def _extract_request_id(scope: Scope, header_name: str = "X-Request-ID") -> str:
    """Return the request ID header (matched case-insensitively) or a new UUID4."""
    wanted = header_name.lower().encode()
    for name, value in scope.get("headers", []):
        if name.lower() == wanted:
            return str(value.decode("utf-8", errors="replace"))
    return str(uuid.uuid4())


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send a complete response in one start and one body message."""
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [(b"content-type", content_type.encode())],
        }
    )
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    render: Callable[[], str],
    content_type: str,
    log_message: str,
) -> None:
    """Send ``render()`` as a 200, or a JSON 500 if rendering fails.

    Args:
        send: ASGI send callable.
        render: Produces the response body.
        content_type: Content-Type of a successful response.
        log_message: Logged with the traceback when ``render`` raises.
    """
    try:
        body = render()
    except Exception:
        logger.exception(log_message)
        await _send_response(send, 500, JSON, json.dumps({"error": "Internal Server Error"}))
        return
    await _send_response(send, 200, content_type, body)


class ASGIPerformanceMiddleware:
    """ASGI middleware that times HTTP requests into a monitor.

    Each request becomes one timing sample, so slow requests raise
    performance alerts like any other measured operation. An exception
    from the wrapped app is also recorded as ``error.http`` and re-raised.

    Args:
        app: The ASGI application to wrap.
        monitor: Monitor receiving the request timings.
        exclude_paths: Paths that are not timed. Entries may be exact paths
            or fnmatch patterns (e.g., "/internal/*").
        metric_name: Name the request timings are recorded under.
        request_id_header: Header carrying the request ID.
    """

    def __init__(
        self,
        app: ASGIApp,
        monitor: PerformanceMonitor,
        exclude_paths: list[str] | None = None,
        metric_name: str = "http.request.duration",
        request_id_header: str = "X-Request-ID",
    ) -> None:
        self.app = app
        self.monitor = monitor
        self.exclude_paths = list(exclude_paths or ())
        self.metric_name = metric_name
        self.request_id_header = request_id_header

    def _is_excluded(self, path: str) -> bool:
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._is_excluded(scope["path"]):
            await self.app(scope, receive, send)
            return

        request_id = _extract_request_id(scope, self.request_id_header)
        status_code = 0

        async def send_and_capture(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        started = time.perf_counter()
        try:
            await self.app(scope, receive, send_and_capture)
        except Exception as exc:
            self._record(scope, request_id, 500, started, exc)
            self.monitor.record_error("http", exc)
            raise
        self._record(scope, request_id, status_code, started, None)

    def _record(
        self,
        scope: Scope,
        request_id: str,
        status_code: int,
        started: float,
        exc: Exception | None,
    ) -> None:
        self.monitor.record_timing(
            self.metric_name,
            (time.perf_counter() - started) * 1000,
            success=exc is None and status_code < 500,
            error=f"{type(exc).__name__}: {exc}" if exc is not None else None,
            request_id=request_id,
            method=scope["method"],
            path=scope["path"],
            status_code=status_code,
        )


def create_asgi_app(monitor: PerformanceMonitor) -> ASGIApp:
    """Create an ASGI app serving a monitor's telemetry.

    - ``/metrics?name=&limit=&since=``: NDJSON samples, newest first.
    - ``/statistics?name=&limit=&since=``: JSON statistics.
    - ``/alerts``: NDJSON active alerts.
    - ``/report``: JSON report snapshot.

    Malformed ``limit`` and ``since`` values are ignored. Other paths get
    a plain-text 404.
    """
    routes: dict[str, tuple[Callable[[Filters], str], str]] = {
        "/metrics": (lambda f: encode_samples(monitor.get_metrics(**f)), NDJSON),
        "/statistics": (lambda f: encode_snapshot(monitor.get_statistics(**f)), JSON),
        "/alerts": (lambda f: encode_alerts(monitor.get_alerts()), NDJSON),
        "/report": (lambda f: encode_snapshot(monitor.get_report()), JSON),
    }

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        route = routes.get(scope["path"])
        if route is None:
            await _send_response(send, 404, "text/plain", "Not Found")
            return

        params = _parse_query_params(scope)
        filters: Filters = {
            "name": _parse_name_param(params),
            "limit": _parse_limit_param(params),
            "since": _parse_since_param(params),
        }
        render, content_type = route
        await _handle_endpoint(
            send,
            lambda: render(filters),
            content_type,
            f"Error encoding {scope['path']} endpoint",
        )

    return app
