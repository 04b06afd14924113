"""Embedded runtime driving a monitor's periodic work.

The monitor owns no timers. This runtime owns them: one asyncio task
sweeps expired samples and alerts, another pushes memory readings. It
also installs the unhandled-error source for the lifetime of the run.
"""

import asyncio
import contextlib
import logging
from types import TracebackType
from typing import Any

from perfwatch.adapters.sources.errors import ExceptHookErrorSource
from perfwatch.adapters.sources.memory import PsutilMemorySource
from perfwatch.core.models import MEMORY_METRIC, MonitorConfig
from perfwatch.core.monitor import PerformanceMonitor
from perfwatch.core.ports import MemorySampleSource, UnhandledErrorSource

logger = logging.getLogger(__name__)


class EmbeddedRuntime:
    """Runs retention sweeps and memory sampling on fixed cadences.

    Example:
        ```python
        runtime = EmbeddedRuntime(monitor, memory_source=PsutilMemorySource())
        await runtime.start()
        ...
        await runtime.stop()
        ```

    Hosts with their own scheduler can call ``run_cleanup_once`` and
    ``sample_memory_once`` instead of starting the runtime.

    Args:
        monitor: The monitor to drive.
        memory_source: Source of memory readings. None disables sampling.
        error_source: Source of unhandled errors, installed on start when
            the monitor's ``enable_error_tracking`` is set.
        cleanup_interval_seconds: Seconds between retention sweeps.
        memory_interval_seconds: Seconds between memory readings.
    """

    def __init__(
        self,
        monitor: PerformanceMonitor,
        memory_source: MemorySampleSource | None = None,
        error_source: UnhandledErrorSource | None = None,
        cleanup_interval_seconds: float = 60.0,
        memory_interval_seconds: float = 5.0,
    ) -> None:
        self.monitor = monitor
        self.memory_source = memory_source
        self.error_source = error_source
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.memory_interval_seconds = memory_interval_seconds
        self._tasks: list[asyncio.Task[None]] = []
        self._error_source_installed = False

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start the background tasks. Calling start twice is a no-op."""
        if self._tasks:
            return
        config = self.monitor.config
        if self.error_source is not None and config.enable_error_tracking:
            self.error_source.install(self.monitor)
            self._error_source_installed = True
        self._tasks.append(asyncio.create_task(self._cleanup_loop()))
        if self.memory_source is not None and config.enable_memory_monitoring:
            self._tasks.append(asyncio.create_task(self._memory_loop()))
        logger.info("Performance runtime started with %d task(s)", len(self._tasks))

    async def stop(self) -> None:
        """Cancel the background tasks and uninstall the error source."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._error_source_installed and self.error_source is not None:
            self.error_source.uninstall()
            self._error_source_installed = False

    async def __aenter__(self) -> "EmbeddedRuntime":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    def run_cleanup_once(self) -> int:
        """Sweep expired samples and alerts; return the samples removed."""
        return self.monitor.sweep()

    def sample_memory_once(self) -> bool:
        """Push one memory reading into the monitor.

        Returns:
            True if a reading was recorded.
        """
        if self.memory_source is None or not self.monitor.config.enable_memory_monitoring:
            return False
        payload = self.memory_source.sample()
        if payload is None:
            return False
        self.monitor.record_metric(MEMORY_METRIC, payload)
        return True

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_seconds)
            self.run_cleanup_once()

    async def _memory_loop(self) -> None:
        while True:
            try:
                self.sample_memory_once()
            except Exception as e:
                logger.warning("Memory sample unavailable: %s", e)
            await asyncio.sleep(self.memory_interval_seconds)


def create_default_monitor(
    config: MonitorConfig | None = None, **overrides: Any
) -> PerformanceMonitor:
    """Build the application's monitor.

    Call this once at the composition root and pass the result along.

    Args:
        config: Base configuration. Defaults to MonitorConfig().
        **overrides: MonitorConfig fields to shallow-merge on top.
    """
    monitor = PerformanceMonitor(config)
    if overrides:
        monitor.update_config(**overrides)
    return monitor


def create_default_runtime(
    monitor: PerformanceMonitor,
    loop: asyncio.AbstractEventLoop | None = None,
    **intervals: float,
) -> EmbeddedRuntime:
    """Build a runtime wired to psutil memory readings and excepthooks.

    Args:
        monitor: The monitor to drive.
        loop: Event loop whose unhandled task errors are recorded.
        **intervals: ``cleanup_interval_seconds`` / ``memory_interval_seconds``.
    """
    return EmbeddedRuntime(
        monitor,
        memory_source=PsutilMemorySource(),
        error_source=ExceptHookErrorSource(loop),
        **intervals,
    )
