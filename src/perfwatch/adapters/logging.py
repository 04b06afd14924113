"""Python logging handler adapter for perfwatch.

This adapter bridges Python's standard library logging module to a
PerformanceMonitor, so that errors an application already logs are
counted in the error rate and raise critical alerts.
"""

import logging
import traceback

from perfwatch.core.ports import TelemetryRecorder

# Records from these loggers are never forwarded; the monitor logs its own
# alerts and recording failures and must not feed on them.
_IGNORED_LOGGER_PREFIX = "perfwatch"

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_LOGRECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}


class TelemetryErrorHandler(logging.Handler):
    """Logging handler that records log records as monitor errors.

    Each record becomes ``recorder.record_error(<logger name>, {...})``.

    Example:
        ```python
        from perfwatch import PerformanceMonitor, TelemetryErrorHandler

        monitor = PerformanceMonitor()
        logging.getLogger().addHandler(TelemetryErrorHandler(monitor))
        ```
    """

    def __init__(
        self,
        recorder: TelemetryRecorder,
        level: int = logging.ERROR,
    ) -> None:
        """Initialize the handler with a recorder.

        Args:
            recorder: Monitor (or any TelemetryRecorder) to record into.
            level: Minimum level forwarded. Defaults to ERROR.
        """
        super().__init__(level=level)
        self._recorder = recorder

    def emit(self, record: logging.LogRecord) -> None:
        """Record a log record as an error.

        Args:
            record: The log record to emit.
        """
        if record.name.split(".", 1)[0] == _IGNORED_LOGGER_PREFIX:
            return

        error: dict[str, object] = {
            "message": record.getMessage(),
            "level": record.levelname,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                value, (str, int, float, bool)
            ):
                error.setdefault(key, value)

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                error["error_type"] = exc_type.__name__
            if exc_tb is not None:
                error["stack"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        try:
            self._recorder.record_error(record.name, error)
        except Exception:  # noqa: BLE001
            self.handleError(record)
