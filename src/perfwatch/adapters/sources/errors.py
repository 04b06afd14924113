"""Unhandled-error source built on the interpreter's exception hooks.

Uncaught exceptions in the main thread, in other threads and in asyncio
callbacks or tasks are recorded as errors before being handed on to
whatever hook was installed before.
"""

import asyncio
import sys
import threading
from types import TracebackType
from typing import Any

from perfwatch.core.ports import TelemetryRecorder

MAIN_CONTEXT = "unhandled"
THREAD_CONTEXT = "unhandled-thread"
ASYNC_CONTEXT = "unhandled-promise"


class ExceptHookErrorSource:
    """Chains ``sys.excepthook``, ``threading.excepthook`` and, optionally,
    an asyncio loop's exception handler.

    Args:
        loop: Event loop whose exception handler is chained. None leaves
            asyncio alone.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._recorder: TelemetryRecorder | None = None
        self._previous_excepthook: Any = None
        self._previous_threading_excepthook: Any = None
        self._previous_loop_handler: Any = None

    @property
    def installed(self) -> bool:
        return self._recorder is not None

    def install(self, recorder: TelemetryRecorder) -> None:
        """Start forwarding unhandled exceptions to ``recorder``.

        Raises:
            RuntimeError: If the source is already installed.
        """
        if self._recorder is not None:
            raise RuntimeError("ExceptHookErrorSource is already installed")
        self._recorder = recorder

        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._handle_exception

        self._previous_threading_excepthook = threading.excepthook
        threading.excepthook = self._handle_thread_exception

        if self._loop is not None:
            self._previous_loop_handler = self._loop.get_exception_handler()
            self._loop.set_exception_handler(self._handle_loop_exception)

    def uninstall(self) -> None:
        """Restore the hooks that were in place before ``install``.

        A hook chained on top of ours may still call it afterwards; it then
        hands on to the interpreter defaults.
        """
        if self._recorder is None:
            return
        sys.excepthook = self._previous_excepthook
        threading.excepthook = self._previous_threading_excepthook
        if self._loop is not None:
            self._loop.set_exception_handler(self._previous_loop_handler)
        self._recorder = None
        self._previous_excepthook = None
        self._previous_threading_excepthook = None
        self._previous_loop_handler = None

    def _record(self, context: str, error: object) -> None:
        if self._recorder is not None:
            self._recorder.record_error(context, error)

    def _handle_exception(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: TracebackType | None,
    ) -> None:
        self._record(MAIN_CONTEXT, exc_value)
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc_value, exc_tb)

    def _handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is not SystemExit:
            error = args.exc_value if args.exc_value is not None else args.exc_type
            self._record(THREAD_CONTEXT, error)
        previous = self._previous_threading_excepthook or threading.__excepthook__
        previous(args)

    def _handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exception = context.get("exception")
        if exception is not None:
            self._record(ASYNC_CONTEXT, exception)
        else:
            self._record(ASYNC_CONTEXT, {"message": context.get("message", "")})

        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)
        else:
            loop.default_exception_handler(context)
