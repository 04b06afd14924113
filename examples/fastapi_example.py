"""Example FastAPI application with performance telemetry.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /perf/metrics?name=&limit=&since=     - NDJSON samples, newest first
    /perf/statistics?name=&limit=&since=  - JSON count/average/min/max/total
    /perf/alerts                          - NDJSON active alerts
    /perf/report                          - JSON report snapshot

Instrumentation:
    Every request is timed by ASGIPerformanceMiddleware. The /events route
    additionally measures its loader and accounts cache hits and misses,
    and errors logged by the application are recorded through
    TelemetryErrorHandler.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from perfwatch import TelemetryErrorHandler, create_default_monitor, create_default_runtime
from perfwatch.adapters.frameworks.asgi import ASGIPerformanceMiddleware
from perfwatch.adapters.frameworks.fastapi import create_performance_router

logger = logging.getLogger("examples.fastapi")

# The application's single monitor
monitor = create_default_monitor(
    retention_period=10 * 60 * 1000,
    thresholds={"critical": 200, "warning": 50},
)
logging.getLogger().addHandler(TelemetryErrorHandler(monitor))

_events_cache: dict[str, list[dict[str, str]]] = {}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Start sweeping and memory sampling on startup."""
    runtime = create_default_runtime(
        monitor, asyncio.get_running_loop(), cleanup_interval_seconds=30
    )
    await runtime.start()
    yield
    await runtime.stop()


app = FastAPI(title="Performance Telemetry Example", lifespan=lifespan)
app.add_middleware(
    ASGIPerformanceMiddleware, monitor=monitor, exclude_paths=["/perf/*"]
)
app.include_router(create_performance_router(monitor), prefix="/perf")


async def load_events(month: str) -> list[dict[str, str]]:
    """Simulate a slow database read."""
    await asyncio.sleep(0.08)
    return [{"month": month, "title": "Planning"}, {"month": month, "title": "Review"}]


@app.get("/events/{month}")
async def get_events(month: str) -> dict[str, list[dict[str, str]]]:
    """Events for a month, cached after the first load."""
    if month in _events_cache:
        monitor.record_cache_event("events", "hit", key=month)
        return {"events": _events_cache[month]}

    monitor.record_cache_event("events", "miss", key=month)
    events = await monitor.measure_async("calendar.events.load.timing", load_events, month)
    _events_cache[month] = events
    monitor.record_cache_event("events", "set", key=month)
    return {"events": events}


@app.get("/error")
async def error_endpoint() -> dict[str, str]:
    """Log an error; it shows up as error.examples.fastapi and a critical alert."""
    logger.error("Payment provider unreachable", extra={"provider": "acme"})
    return {"status": "logged"}
