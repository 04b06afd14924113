"""Memory sample source backed by psutil."""

import psutil

from perfwatch.core.models import MemoryPayload

_MB = 1024 * 1024


class PsutilMemorySource:
    """Reports memory usage of a process in megabytes.

    ``used`` is the resident set size of the process, ``total`` its
    virtual memory size and ``limit`` the total physical memory of the
    machine.

    Args:
        pid: Process to observe. Defaults to the current process.
    """

    def __init__(self, pid: int | None = None) -> None:
        self._process = psutil.Process(pid)

    def sample(self) -> MemoryPayload | None:
        """Take a memory reading, or None if the process is gone."""
        try:
            info = self._process.memory_info()
        except psutil.Error:
            return None
        return MemoryPayload(
            used=info.rss / _MB,
            total=info.vms / _MB,
            limit=psutil.virtual_memory().total / _MB,
        )
