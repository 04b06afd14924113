"""FastAPI adapter for performance telemetry endpoints."""

from fastapi import APIRouter, Query, Response

from perfwatch.core.encoding.ndjson import (
    encode_alerts,
    encode_samples,
    encode_snapshot,
)
from perfwatch.core.monitor import PerformanceMonitor


def create_performance_router(monitor: PerformanceMonitor) -> APIRouter:
    """Create a FastAPI router with /metrics, /statistics, /alerts and /report.

    Args:
        monitor: The monitor to expose.

    Returns:
        APIRouter with the telemetry endpoints configured.
    """
    router = APIRouter()

    @router.get("/metrics")
    async def get_metrics(
        name: str | None = Query(default=None),
        limit: int | None = Query(default=None, gt=0),
        since: int | None = Query(default=None, ge=0),
    ) -> Response:
        """Return samples in NDJSON format, newest first.

        Args:
            name: Metric name; all metrics when omitted.
            limit: Maximum number of samples.
            since: Unix timestamp (ms). Returns samples with timestamp >= since.
        """
        samples = monitor.get_metrics(name, limit=limit, since=since)
        return Response(content=encode_samples(samples), media_type="application/x-ndjson")

    @router.get("/statistics")
    async def get_statistics(
        name: str | None = Query(default=None),
        limit: int | None = Query(default=None, gt=0),
        since: int | None = Query(default=None, ge=0),
    ) -> Response:
        """Return count, average, min, max and total as JSON."""
        stats = monitor.get_statistics(name, limit=limit, since=since)
        return Response(content=encode_snapshot(stats), media_type="application/json")

    @router.get("/alerts")
    async def get_alerts() -> Response:
        """Return active alerts in NDJSON format."""
        return Response(
            content=encode_alerts(monitor.get_alerts()),
            media_type="application/x-ndjson",
        )

    @router.get("/report")
    async def get_report() -> Response:
        """Return the report snapshot as JSON."""
        return Response(
            content=encode_snapshot(monitor.get_report()),
            media_type="application/json",
        )

    return router
