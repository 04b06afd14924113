"""Port interfaces for the collaborators that feed the monitor.

The core never inspects its execution environment. Hosts plug in
concrete sources (psutil, interpreter excepthooks, ...) that implement
these protocols and push data through the recording API.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from perfwatch.core.models import MemoryPayload, MetricPayload


@runtime_checkable
class TelemetryRecorder(Protocol):
    """The recording side of a PerformanceMonitor.

    External sources depend on this narrow interface rather than on the
    monitor itself.
    """

    def record_metric(
        self, name: str, payload: MetricPayload | Mapping[str, Any]
    ) -> None:
        """Record a metric sample under the given name."""
        ...

    def record_error(self, context: str, error: object) -> None:
        """Record an error and raise a critical alert."""
        ...


@runtime_checkable
class MemorySampleSource(Protocol):
    """Port for memory usage readings.

    Adapters implementing this protocol report memory usage in megabytes.
    Examples: PsutilMemorySource.
    """

    def sample(self) -> MemoryPayload | None:
        """Take a memory reading.

        Returns:
            A MemoryPayload, or None if no reading is available.
        """
        ...


@runtime_checkable
class UnhandledErrorSource(Protocol):
    """Port for sources of uncaught failures.

    Adapters implementing this protocol forward failures nobody handled to
    ``recorder.record_error``. Examples: ExceptHookErrorSource.
    """

    def install(self, recorder: TelemetryRecorder) -> None:
        """Start forwarding unhandled failures to the recorder."""
        ...

    def uninstall(self) -> None:
        """Stop forwarding and restore whatever was in place before."""
        ...
