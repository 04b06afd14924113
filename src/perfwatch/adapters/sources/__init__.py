"""External signal sources that push data into a monitor."""

from perfwatch.adapters.sources.errors import ExceptHookErrorSource
from perfwatch.adapters.sources.memory import PsutilMemorySource

__all__ = ["ExceptHookErrorSource", "PsutilMemorySource"]
