"""PerformanceMonitor: the entry point of the telemetry core.

Example:
    ```python
    from perfwatch import PerformanceMonitor

    monitor = PerformanceMonitor()
    events = monitor.measure("calendar.events.load.timing", load_events, month)
    monitor.record_cache_event("events", "hit")
    print(monitor.get_report().cache_hit_rate)
    ```

Recording never raises into the instrumented code: internal failures are
returned as RecordOutcome values by the helpers below and logged here.
Only the exceptions of measured operations propagate, unchanged.
"""

import functools
import inspect
import logging
import random
import threading
import time
import traceback
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from types import TracebackType
from typing import Any, TypeVar

from perfwatch.core.alerts import AlertEngine
from perfwatch.core.cache import CacheAccounting
from perfwatch.core.models import (
    MEMORY_METRIC,
    Alert,
    AlertLevel,
    CacheEventPayload,
    CacheStats,
    ErrorPayload,
    InteractionPayload,
    MemoryPayload,
    MetricPayload,
    MonitorConfig,
    RecordOutcome,
    Report,
    Sample,
    Statistics,
    Thresholds,
    TimingPayload,
    payload_from_mapping,
)
from perfwatch.core.report import build_report
from perfwatch.core.statistics import compute_statistics
from perfwatch.core.store import MetricStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], int]


def now_ms() -> int:
    """Current Unix time in integer milliseconds."""
    return time.time_ns() // 1_000_000


class PerformanceMonitor:
    """In-memory performance telemetry.

    Owns the metric store, the alert list and the cache counters. All of
    them are guarded by one re-entrant lock so recordings may arrive from
    server threads, logging handlers and excepthooks alike.

    No module-level instance exists; create one at the application's
    composition root and pass it to whoever records.

    Args:
        config: Monitor configuration. Defaults to MonitorConfig().
        clock: Returns the current Unix time in milliseconds.
        rng: Random source used for timing-sample rate limiting.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or MonitorConfig()
        self._clock = clock or now_ms
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._store = MetricStore(self._config.max_metrics)
        self._alerts = AlertEngine(
            self._config.thresholds, enabled=self._config.enable_alerts
        )
        self._cache = CacheAccounting()
        self._started_at = self._clock()

    # --- Configuration ---

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable recording."""
        self.update_config(enabled=enabled)

    def update_config(self, **changes: Any) -> MonitorConfig:
        """Shallow-merge new values into the configuration.

        ``thresholds`` may be a Thresholds or a mapping of its fields; either
        way it replaces the previous thresholds as a whole.

        Raises:
            TypeError: If a key is not a MonitorConfig field.
        """
        thresholds = changes.get("thresholds")
        if isinstance(thresholds, Mapping):
            changes["thresholds"] = Thresholds(**thresholds)
        with self._lock:
            self._config = replace(self._config, **changes)
            self._store.resize(self._config.max_metrics)
            self._alerts.configure(
                self._config.thresholds, self._config.enable_alerts
            )
            return self._config

    # --- Recording ---

    def record_metric(
        self, name: str, payload: MetricPayload | Mapping[str, Any]
    ) -> None:
        """Record a sample under ``name``.

        Args:
            name: Metric name (e.g., "calendar.render.timing").
            payload: A payload variant, or a loose mapping which is
                converted with ``payload_from_mapping``.
        """
        if not self._config.enabled:
            return
        with self._lock:
            outcome = self._record(name, payload)
        self._log_failure(name, outcome)

    def record_timing(
        self,
        name: str,
        duration: float,
        success: bool = True,
        error: str | None = None,
        **metadata: Any,
    ) -> None:
        """Record the elapsed time (ms) of an operation."""
        self.record_metric(
            name,
            TimingPayload(
                duration=duration, success=success, error=error, metadata=metadata
            ),
        )

    def record_memory(self, used: float, total: float = 0, limit: float = 0) -> None:
        """Record a memory reading (MB) under ``memory.usage``."""
        self.record_metric(
            MEMORY_METRIC, MemoryPayload(used=used, total=total, limit=limit)
        )

    def record_cache_event(
        self, cache_name: str, operation: str, **metadata: Any
    ) -> None:
        """Count a cache operation and record it as ``cache.<name>.<op>``.

        Args:
            cache_name: Name of the cache (e.g., "events").
            operation: "hit", "miss", "set" or any other operation name.
            **metadata: Extra fields stored with the sample.
        """
        if not self._config.enabled or not self._config.enable_cache_monitoring:
            return
        name = f"cache.{cache_name}.{operation}"
        with self._lock:
            stats = self._cache.record(operation)
            outcome = self._record(
                name,
                CacheEventPayload(
                    cache_name=cache_name,
                    operation=operation,
                    stats=stats,
                    metadata=metadata,
                ),
            )
        self._log_failure(name, outcome)

    def record_error(self, context: str, error: object) -> None:
        """Record an error as ``error.<context>`` and raise a critical alert.

        Args:
            context: Where the error happened (e.g., "unhandled").
            error: An exception, a mapping with ``message`` or ``reason``,
                or any object whose string form describes the failure.
        """
        if not self._config.enabled:
            return
        name = f"error.{context}"
        with self._lock:
            try:
                payload = _error_payload(context, error, self._clock())
            except Exception as exc:  # noqa: BLE001
                outcome = RecordOutcome.failed(exc)
            else:
                outcome = self._record(name, payload)
        self._log_failure(name, outcome)

    def record_interaction(self, interaction: str, **metadata: Any) -> None:
        """Record a user interaction as ``interaction.<interaction>``."""
        if not self._config.enabled:
            return
        self.record_metric(
            f"interaction.{interaction}",
            InteractionPayload(
                interaction=interaction, timestamp=self._clock(), metadata=metadata
            ),
        )

    def create_alert(
        self,
        type: str,
        message: str,
        level: AlertLevel = "warning",
        metadata: Mapping[str, Any] | None = None,
    ) -> Alert:
        """Append an alert directly, bypassing threshold evaluation."""
        with self._lock:
            return self._alerts.create_alert(
                type, message, level, self._clock(), metadata
            )

    # --- Timed measurement ---

    def timed(self, name: str) -> "TimedBlock":
        """Time a block or a function and record it under ``name``.

        Usable as a context manager or as a decorator; decorated coroutine
        functions are timed until their awaited result. The sample is
        recorded whether the body completes or raises; an exception is
        recorded with ``success=False`` and then propagates unchanged.

        Example:
            ```python
            @monitor.timed("calendar.render.timing")
            async def render(month): ...

            with monitor.timed("calendar.lookup.timing"):
                lookup()
            ```
        """
        return TimedBlock(self, name)

    def measure(
        self, name: str, operation: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """Call ``operation(*args, **kwargs)`` and record how long it took.

        When the monitor is disabled the operation is called directly.
        """
        if not self._config.enabled:
            return operation(*args, **kwargs)
        with self.timed(name):
            return operation(*args, **kwargs)

    async def measure_async(
        self,
        name: str,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await ``operation(*args, **kwargs)`` and record how long it took."""
        if not self._config.enabled:
            return await operation(*args, **kwargs)
        with self.timed(name):
            return await operation(*args, **kwargs)

    # --- Queries ---

    def get_metrics(
        self,
        name: str | None = None,
        *,
        limit: int | None = None,
        since: int | None = None,
    ) -> list[Sample]:
        """Return samples newest first; see MetricStore.query.

        A ``limit`` of None or 0 means no limit.
        """
        with self._lock:
            return self._store.query(name, limit=limit, since=since)

    def get_statistics(
        self,
        name: str | None,
        *,
        limit: int | None = None,
        since: int | None = None,
    ) -> Statistics:
        """Return count, average, min, max and total for a metric."""
        return compute_statistics(self.get_metrics(name, limit=limit, since=since))

    def get_alerts(self) -> list[Alert]:
        """Return the active alerts, oldest first."""
        with self._lock:
            return self._alerts.active()

    @property
    def cache_stats(self) -> CacheStats:
        with self._lock:
            return self._cache.snapshot()

    def get_report(self) -> Report:
        """Return a point-in-time snapshot of the monitor's state."""
        with self._lock:
            return build_report(
                samples=self._store.query(),
                latest_memory=self._store.latest(MEMORY_METRIC),
                cache_hit_rate=self._cache.hit_rate(),
                active_alerts=len(self._alerts.active()),
                started_at=self._started_at,
                now=self._clock(),
            )

    # --- Lifecycle ---

    def sweep(self, retention_period: int | None = None) -> int:
        """Prune samples and alerts older than the retention window.

        Meant to be driven by an external timer (see EmbeddedRuntime).

        Args:
            retention_period: Window in milliseconds. Defaults to the
                configured ``retention_period``.

        Returns:
            Number of samples removed.
        """
        with self._lock:
            if retention_period is None:
                retention_period = self._config.retention_period
            now = self._clock()
            removed = self._store.sweep(retention_period, now)
            expired_alerts = self._alerts.sweep(now - retention_period)
        logger.debug(
            "Swept %d samples and %d alerts older than %dms",
            removed,
            expired_alerts,
            retention_period,
        )
        return removed

    def reset(self) -> None:
        """Clear metrics, alerts and cache counters and restart uptime."""
        with self._lock:
            self._store.clear()
            self._alerts.clear()
            self._cache.reset()
            self._started_at = self._clock()

    # --- Internals ---

    def _record(
        self, name: str, payload: MetricPayload | Mapping[str, Any]
    ) -> RecordOutcome:
        """Store a sample and evaluate it. Must be called with the lock held."""
        if isinstance(payload, Mapping):
            try:
                payload = payload_from_mapping(name, payload)
            except Exception as exc:  # noqa: BLE001
                return RecordOutcome.failed(exc)

        if isinstance(payload, TimingPayload) and not self._keep_timing_sample():
            return RecordOutcome.success()

        now = self._clock()
        outcome = self._store.record(name, payload, now)
        if not outcome.ok:
            return outcome
        try:
            self._evaluate(name, payload, now)
        except Exception as exc:  # noqa: BLE001
            return RecordOutcome(sample=outcome.sample, error=exc)
        return outcome

    def _evaluate(self, name: str, payload: MetricPayload, now: int) -> None:
        if isinstance(payload, TimingPayload):
            self._alerts.evaluate_timing(name, payload.duration, now)
        elif isinstance(payload, MemoryPayload):
            self._alerts.evaluate_memory(payload.used, now)
        elif isinstance(payload, ErrorPayload):
            self._alerts.evaluate_error(payload.context, payload.message, now)
        elif isinstance(payload, CacheEventPayload) and payload.operation in (
            "hit",
            "miss",
        ):
            lookups = payload.stats.hits + payload.stats.misses
            miss_rate = payload.stats.misses / lookups * 100 if lookups else 0
            self._alerts.evaluate_cache_miss_rate(
                payload.cache_name, miss_rate, lookups, now
            )

    def _keep_timing_sample(self) -> bool:
        rate = self._config.sample_rate
        return rate >= 1 or self._rng.random() < rate

    @staticmethod
    def _log_failure(name: str, outcome: RecordOutcome) -> None:
        if outcome.error is not None:
            logger.warning("Failed to record metric %r: %r", name, outcome.error)


class TimedBlock:
    """Context manager and decorator returned by ``PerformanceMonitor.timed``.

    Each ``with`` entry needs its own instance; as a decorator every call
    of the wrapped function is measured separately.
    """

    def __init__(self, monitor: PerformanceMonitor, name: str) -> None:
        self._monitor = monitor
        self._name = name
        self._start: float | None = None

    def __enter__(self) -> None:
        if self._monitor.enabled:
            self._start = time.perf_counter()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._start is None:
            return
        elapsed_ms = (time.perf_counter() - self._start) * 1000
        self._start = None
        error = None
        if exc_value is not None:
            error = str(exc_value) or type(exc_value).__name__
        self._monitor.record_timing(
            self._name, elapsed_ms, success=exc_value is None, error=error
        )

    def __call__(self, func: Callable[..., Any]) -> Callable[..., Any]:
        monitor, name = self._monitor, self._name

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await monitor.measure_async(name, func, *args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return monitor.measure(name, func, *args, **kwargs)

        return wrapper


def _error_payload(context: str, error: object, now: int) -> ErrorPayload:
    """Normalise the supported error shapes into an ErrorPayload."""
    if isinstance(error, BaseException):
        stack = None
        if error.__traceback__ is not None:
            stack = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        return ErrorPayload(
            context=context,
            message=str(error) or "Unknown error",
            error_type=type(error).__name__,
            stack=stack,
            timestamp=now,
        )
    if isinstance(error, Mapping):
        message = error.get("message") or error.get("reason") or "Unknown error"
        return ErrorPayload(
            context=context,
            message=str(message),
            error_type=error.get("error_type"),
            stack=error.get("stack"),
            timestamp=now,
            metadata={
                k: v
                for k, v in error.items()
                if k not in ("message", "reason", "error_type", "stack")
            },
        )
    return ErrorPayload(
        context=context, message=str(error) or "Unknown error", timestamp=now
    )
