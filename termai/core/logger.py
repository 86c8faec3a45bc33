"""Log sinks consumed by the error manager."""

from __future__ import annotations
import logging
import sys
from typing import Any, Optional, Protocol, runtime_checkable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "termai-console"


@runtime_checkable
class LogSink(Protocol):
    """Four severity-tagged sinks, each taking a label and a structured payload."""

    def debug(self, label: str, payload: Any = None) -> None: ...

    def info(self, label: str, payload: Any = None) -> None: ...

    def warning(self, label: str, payload: Any = None) -> None: ...

    def error(self, label: str, payload: Any = None) -> None: ...


class StdlibLogSink:
    """LogSink backed by a ``logging.Logger``.

    The label becomes the log message. Error-level records get the payload's
    diagnostic detail (stack, cause chain) appended when it has any. Failures
    while emitting are dropped so the error path cannot raise.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("termai.errors")

    def debug(self, label: str, payload: Any = None) -> None:
        self._emit(logging.DEBUG, label, payload)

    def info(self, label: str, payload: Any = None) -> None:
        self._emit(logging.INFO, label, payload)

    def warning(self, label: str, payload: Any = None) -> None:
        self._emit(logging.WARNING, label, payload)

    def error(self, label: str, payload: Any = None) -> None:
        self._emit(logging.ERROR, label, payload)

    def _emit(self, level: int, label: str, payload: Any) -> None:
        try:
            if not self.logger.isEnabledFor(level):
                return
            text = label
            details = getattr(payload, "details", "") if payload is not None else ""
            if level >= logging.ERROR and details:
                text = f"{label}\n{details}"
            elif payload is not None and not hasattr(payload, "details"):
                text = f"{label} {payload}"
            self.logger.log(level, "%s", text, extra={"error_payload": payload})
        except Exception:
            return


def get_logger(name: str = "termai") -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(
    level: str | int = "WARNING", fmt: str = DEFAULT_FORMAT, stream: Any = None
) -> logging.Logger:
    """Attach a single console handler to the ``termai`` logger.

    Safe to call repeatedly; the existing handler is reconfigured in place.
    """
    root = logging.getLogger("termai")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    root.setLevel(level)

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.set_name(_HANDLER_NAME)
        root.addHandler(handler)
    elif stream is not None and isinstance(handler, logging.StreamHandler):
        handler.setStream(stream)
    handler.setFormatter(logging.Formatter(fmt))
    return root
