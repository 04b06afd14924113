"""Core domain models for performance telemetry."""

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Literal

MEMORY_METRIC = "memory.usage"

AlertLevel = Literal["warning", "critical"]


def _freeze(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return a read-only copy of a metadata mapping."""
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class Sample:
    """A single recorded observation.

    Attributes:
        name: Metric name (e.g., "calendar.render.timing").
        value: The observed value, normally a number.
        timestamp: Unix timestamp in milliseconds.
        metadata: Read-only fields carried by the payload that produced it.
        kind: Payload variant that produced the sample.
    """

    name: str
    value: Any
    timestamp: int
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    kind: str = "value"

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))


@dataclass(frozen=True)
class Alert:
    """A notice that a recorded value crossed a configured threshold.

    Alerts are created active and stay active; they leave the alert list
    only through count-cap eviction or the retention sweep.
    """

    id: str
    type: str
    message: str
    level: AlertLevel
    timestamp: int
    active: bool = True
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the running cache counters."""

    hits: int = 0
    misses: int = 0
    operations: int = 0


@dataclass(frozen=True)
class Statistics:
    """Aggregate view over a slice of the metric store."""

    count: int = 0
    average: float = 0
    min: float = 0
    max: float = 0
    total: float = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Report:
    """Point-in-time snapshot of system health.

    Attributes:
        uptime: Milliseconds since the monitor was created or last reset.
        total_metrics: Number of samples currently stored.
        average_response_time: Mean value of timing samples (ms).
        memory_usage: ``used`` of the newest memory sample (MB).
        cache_hit_rate: Cache hits as a percentage of hits and misses.
        error_rate: Error samples as a percentage of all samples.
        active_alerts: Number of active alerts.
        last_updated: Unix timestamp in milliseconds of the snapshot.
    """

    uptime: int
    total_metrics: int
    average_response_time: float
    memory_usage: float
    cache_hit_rate: float
    error_rate: float
    active_alerts: int
    last_updated: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Thresholds:
    """Alerting thresholds.

    Attributes:
        critical: Timing at or above this (ms) raises a critical alert.
        warning: Timing at or above this (ms) raises a warning alert.
        optimal: Timing at or below this (ms) is considered optimal.
        memory_warning: Memory usage (MB) raising a warning alert.
        cache_miss_warning: Cache miss rate (%) raising a warning alert.
    """

    critical: float = 1000
    warning: float = 500
    optimal: float = 100
    memory_warning: float = 50
    cache_miss_warning: float = 20


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for a PerformanceMonitor.

    Values are not validated; degenerate settings (for example zero
    thresholds) produce degenerate behaviour rather than errors.

    Attributes:
        enabled: Whether recording is active.
        sample_rate: Fraction (0-1) of timing samples that are kept.
        max_metrics: Maximum number of samples kept per metric name.
        retention_period: Maximum sample and alert age in milliseconds.
        enable_alerts: Whether recordings are evaluated against thresholds.
        thresholds: Alerting thresholds.
        enable_memory_monitoring: Whether the runtime polls memory.
        enable_cache_monitoring: Whether cache events are accounted.
        enable_error_tracking: Whether unhandled-error sources are installed.
    """

    enabled: bool = True
    sample_rate: float = 1.0
    max_metrics: int = 10000
    retention_period: int = 24 * 60 * 60 * 1000
    enable_alerts: bool = True
    thresholds: Thresholds = field(default_factory=Thresholds)
    enable_memory_monitoring: bool = True
    enable_cache_monitoring: bool = True
    enable_error_tracking: bool = True


# --- Payload variants ---


@dataclass(frozen=True)
class TimingPayload:
    """Elapsed time of an operation, in milliseconds."""

    kind: ClassVar[str] = "timing"

    duration: float
    success: bool = True
    error: str | None = None
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> float:
        return float(self.duration)

    def to_metadata(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "duration": self.duration,
            "success": self.success,
            "error": self.error,
        }


@dataclass(frozen=True)
class ValuePayload:
    """A raw metric value."""

    kind: ClassVar[str] = "value"

    value: Any = 0
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> Any:
        return self.value

    def to_metadata(self) -> dict[str, Any]:
        return {**self.metadata, "value": self.value}


@dataclass(frozen=True)
class MemoryPayload:
    """Memory usage in megabytes."""

    kind: ClassVar[str] = "memory"

    used: float
    total: float = 0
    limit: float = 0
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> float:
        return float(self.used)

    def to_metadata(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "used": self.used,
            "total": self.total,
            "limit": self.limit,
        }


@dataclass(frozen=True)
class CacheEventPayload:
    """A cache operation and the counters right after it."""

    kind: ClassVar[str] = "cache"

    cache_name: str
    operation: str
    stats: CacheStats
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> int:
        return 0

    def to_metadata(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "cache_name": self.cache_name,
            "operation": self.operation,
            "cache_stats": asdict(self.stats),
        }


@dataclass(frozen=True)
class ErrorPayload:
    """A failure reported by the host application."""

    kind: ClassVar[str] = "error"

    context: str
    message: str
    error_type: str | None = None
    stack: str | None = None
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> int:
        return 0

    def to_metadata(self) -> dict[str, Any]:
        return {
            **self.metadata,
            "context": self.context,
            "message": self.message,
            "error_type": self.error_type,
            "stack": self.stack,
        }


@dataclass(frozen=True)
class InteractionPayload:
    """A user interaction event."""

    kind: ClassVar[str] = "interaction"

    interaction: str
    timestamp: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def sample_value(self) -> int:
        return 0

    def to_metadata(self) -> dict[str, Any]:
        return {**self.metadata, "interaction": self.interaction}


MetricPayload = (
    TimingPayload
    | ValuePayload
    | MemoryPayload
    | CacheEventPayload
    | ErrorPayload
    | InteractionPayload
)


def payload_from_mapping(name: str, data: Mapping[str, Any]) -> MetricPayload:
    """Build a payload variant from a loosely-shaped mapping.

    Args:
        name: Metric name the mapping is recorded under.
        data: Arbitrary fields. A non-zero numeric ``duration`` selects a
            timing payload, ``used`` under ``memory.usage`` selects a
            memory payload, anything else becomes a raw value taken from
            ``duration`` or ``value`` (0 when both are falsy).

    Returns:
        The payload variant; unknown keys land in its metadata.

    Raises:
        TypeError, ValueError: If a known field has an unusable type.
    """
    timestamp = data.get("timestamp")
    if timestamp is not None:
        timestamp = int(timestamp)
    duration = data.get("duration")
    if is_number(duration) and duration:
        extra = _without(data, "duration", "success", "error", "timestamp")
        return TimingPayload(
            duration=float(duration),
            success=bool(data.get("success", True)),
            error=data.get("error"),
            timestamp=timestamp,
            metadata=extra,
        )
    if name == MEMORY_METRIC and "used" in data:
        extra = _without(data, "used", "total", "limit", "timestamp")
        return MemoryPayload(
            used=float(data["used"]),
            total=float(data.get("total", 0)),
            limit=float(data.get("limit", 0)),
            timestamp=timestamp,
            metadata=extra,
        )
    return ValuePayload(
        value=duration or data.get("value") or 0,
        timestamp=timestamp,
        metadata=_without(data, "duration", "value", "timestamp"),
    )


def _without(data: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in keys}


def is_number(value: Any) -> bool:
    """Return True for ints and floats, excluding bools and NaN."""
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and not math.isnan(value)


@dataclass(frozen=True)
class RecordOutcome:
    """Result of an internal recording step.

    Internal helpers return this instead of raising so the recording
    boundary can log failures without letting them reach instrumented code.
    """

    sample: Sample | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, sample: Sample | None = None) -> "RecordOutcome":
        return cls(sample=sample)

    @classmethod
    def failed(cls, error: Exception) -> "RecordOutcome":
        return cls(error=error)
