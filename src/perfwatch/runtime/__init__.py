"""Runtimes that drive a monitor's periodic work."""

from perfwatch.runtime.embedded import (
    EmbeddedRuntime,
    create_default_monitor,
    create_default_runtime,
)

__all__ = ["EmbeddedRuntime", "create_default_monitor", "create_default_runtime"]
