"""perfwatch: in-process performance telemetry.

Bounded in-memory metric store, statistics, threshold alerts, cache
accounting and report snapshots, with pluggable sources and an optional
HTTP surface.
"""

from perfwatch.adapters.logging import TelemetryErrorHandler
from perfwatch.core.models import (
    MEMORY_METRIC,
    Alert,
    CacheEventPayload,
    CacheStats,
    ErrorPayload,
    InteractionPayload,
    MemoryPayload,
    MonitorConfig,
    Report,
    Sample,
    Statistics,
    Thresholds,
    TimingPayload,
    ValuePayload,
)
from perfwatch.core.monitor import PerformanceMonitor
from perfwatch.runtime.embedded import (
    EmbeddedRuntime,
    create_default_monitor,
    create_default_runtime,
)

__all__ = [
    "MEMORY_METRIC",
    "Alert",
    "CacheEventPayload",
    "CacheStats",
    "EmbeddedRuntime",
    "ErrorPayload",
    "InteractionPayload",
    "MemoryPayload",
    "MonitorConfig",
    "PerformanceMonitor",
    "Report",
    "Sample",
    "Statistics",
    "TelemetryErrorHandler",
    "Thresholds",
    "TimingPayload",
    "ValuePayload",
    "create_default_monitor",
    "create_default_runtime",
]
