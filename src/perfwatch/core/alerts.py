"""Threshold-based alerting."""

import logging
import uuid
from collections import deque
from collections.abc import Mapping
from typing import Any

from perfwatch.core.models import Alert, AlertLevel, Thresholds

logger = logging.getLogger(__name__)

MAX_ALERTS = 100
MIN_CACHE_LOOKUPS = 10


class AlertEngine:
    """Evaluates recorded values against thresholds and keeps the alerts.

    The alert list holds at most ``MAX_ALERTS`` entries; appending beyond
    that evicts the oldest alert. Evaluation is skipped entirely while
    alerting is disabled, but ``create_alert`` always appends.

    The cache miss-rate alert is edge-triggered: it fires when the rate
    rises to the threshold and re-arms once it falls back below it.

    Args:
        thresholds: Thresholds to evaluate against.
        enabled: Whether ``evaluate_*`` methods may raise alerts.
    """

    def __init__(self, thresholds: Thresholds, enabled: bool = True) -> None:
        self.thresholds = thresholds
        self.enabled = enabled
        self._alerts: deque[Alert] = deque(maxlen=MAX_ALERTS)
        self._cache_miss_high = False

    def __len__(self) -> int:
        return len(self._alerts)

    def configure(self, thresholds: Thresholds, enabled: bool) -> None:
        self.thresholds = thresholds
        self.enabled = enabled

    def create_alert(
        self,
        type: str,
        message: str,
        level: AlertLevel,
        now: int,
        metadata: Mapping[str, Any] | None = None,
    ) -> Alert:
        """Append a new active alert and log it."""
        alert = Alert(
            id=uuid.uuid4().hex,
            type=type,
            message=message,
            level=level,
            timestamp=now,
            active=True,
            metadata=metadata or {},
        )
        self._alerts.append(alert)
        logger.warning("Performance alert [%s]: %s", level.upper(), message)
        return alert

    def evaluate_timing(self, name: str, duration: float, now: int) -> Alert | None:
        """Raise a critical or warning alert for a slow operation.

        Critical is checked first, so a single observation produces at
        most one alert.
        """
        if not self.enabled:
            return None
        metadata = {"metric": name, "duration": duration}
        if duration >= self.thresholds.critical:
            return self.create_alert(
                "performance",
                f"Critical performance issue: {name} took {duration:.2f}ms",
                "critical",
                now,
                metadata,
            )
        if duration >= self.thresholds.warning:
            return self.create_alert(
                "performance",
                f"Performance warning: {name} took {duration:.2f}ms",
                "warning",
                now,
                metadata,
            )
        return None

    def evaluate_memory(self, used_mb: float, now: int) -> Alert | None:
        """Raise a warning alert when memory usage reaches the threshold."""
        if not self.enabled or used_mb < self.thresholds.memory_warning:
            return None
        return self.create_alert(
            "memory",
            f"High memory usage: {used_mb:.1f}MB",
            "warning",
            now,
            {"memory_usage": used_mb},
        )

    def evaluate_cache_miss_rate(
        self, cache_name: str, miss_rate: float, lookups: int, now: int
    ) -> Alert | None:
        """Raise a warning alert when the cache miss rate (%) becomes too high.

        Rates over fewer than ``MIN_CACHE_LOOKUPS`` lookups are ignored.
        """
        if not self.enabled or lookups < MIN_CACHE_LOOKUPS:
            return None
        if miss_rate < self.thresholds.cache_miss_warning:
            self._cache_miss_high = False
            return None
        if self._cache_miss_high:
            return None
        self._cache_miss_high = True
        return self.create_alert(
            "cache",
            f"High cache miss rate: {cache_name} at {miss_rate:.1f}%",
            "warning",
            now,
            {"cache": cache_name, "miss_rate": miss_rate},
        )

    def evaluate_error(self, context: str, message: str, now: int) -> Alert | None:
        """Raise a critical alert for a recorded error."""
        if not self.enabled:
            return None
        return self.create_alert(
            "error",
            f"Error in {context}: {message}",
            "critical",
            now,
            {"context": context},
        )

    def active(self) -> list[Alert]:
        """Return the active alerts, oldest first."""
        return [a for a in self._alerts if a.active]

    def all(self) -> list[Alert]:
        return list(self._alerts)

    def sweep(self, cutoff: int) -> int:
        """Drop alerts with ``timestamp <= cutoff``; return how many."""
        kept = [a for a in self._alerts if a.timestamp > cutoff]
        removed = len(self._alerts) - len(kept)
        self._alerts = deque(kept, maxlen=MAX_ALERTS)
        return removed

    def clear(self) -> None:
        self._alerts.clear()
        self._cache_miss_high = False
