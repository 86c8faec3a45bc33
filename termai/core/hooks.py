from __future__ import annotations
import asyncio
import logging
import sys
import threading
import warnings
from typing import Any, Dict, Optional

from .config import ErrorHandlingSettings
from .errors import ErrorCategory, ErrorLevel
from .manager import ErrorManager

logger = logging.getLogger(__name__)


class ErrorHooks:
    """Process-level hooks routing escaped failures into an ErrorManager.

    ``install()`` swaps in ``sys.excepthook``, ``threading.excepthook`` and
    ``warnings.showwarning``; ``uninstall()`` restores whatever was there
    before. Asyncio loops are wired separately with ``attach_loop`` since a
    loop may not exist yet when hooks are installed.
    """

    def __init__(self, manager: ErrorManager, exit_on_uncaught: bool = False):
        self.manager = manager
        self.exit_on_uncaught = exit_on_uncaught
        self.installed = False
        self._previous: Dict[str, Any] = {}
        self._loops: Dict[int, Any] = {}

    def install(self) -> "ErrorHooks":
        if self.installed:
            return self
        self._previous = {
            "excepthook": sys.excepthook,
            "threading_excepthook": threading.excepthook,
            "showwarning": warnings.showwarning,
        }
        sys.excepthook = self._excepthook
        threading.excepthook = self._thread_excepthook
        warnings.showwarning = self._showwarning
        self.installed = True
        return self

    def uninstall(self) -> None:
        if not self.installed:
            return
        sys.excepthook = self._previous["excepthook"]
        threading.excepthook = self._previous["threading_excepthook"]
        warnings.showwarning = self._previous["showwarning"]
        for loop, previous in list(self._loops.values()):
            if not loop.is_closed():
                loop.set_exception_handler(previous)
        self._loops.clear()
        self.installed = False

    def attach_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Route failures no task awaited on ``loop`` to the manager."""
        loop = loop or asyncio.get_running_loop()
        self._loops[id(loop)] = (loop, loop.get_exception_handler())
        loop.set_exception_handler(self._loop_exception_handler)

    def _excepthook(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        if issubclass(exc_type, KeyboardInterrupt):
            self._previous["excepthook"](exc_type, exc, tb)
            return
        self.manager.handle_uncaught_exception(exc)

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        self.manager.handle_uncaught_exception(args.exc_value)
        if self.exit_on_uncaught:
            # runs on the dying worker thread, where SystemExit would only end that thread
            self.manager.abort()

    def _loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        reason = context.get("exception") or context.get("message", "Unknown async error")
        source = context.get("task") or context.get("future")
        self.manager.handle_unhandled_rejection(reason, source)
        if self.exit_on_uncaught:
            # may be called from Task.__del__, which discards SystemExit
            self.manager.abort()

    def _showwarning(self, message, category, filename, lineno, file=None, line=None) -> None:  # type: ignore[no-untyped-def]
        self.manager.handle_error(
            str(message),
            level=ErrorLevel.MINOR,
            category=ErrorCategory.APPLICATION,
            context={
                "warning": getattr(category, "__name__", str(category)),
                "filename": filename,
                "lineno": lineno,
            },
        )

    def __enter__(self) -> "ErrorHooks":
        return self.install()

    def __exit__(self, *exc_info: Any) -> None:
        self.uninstall()


def install_error_handling(
    manager: Optional[ErrorManager] = None,
    settings: Optional[ErrorHandlingSettings] = None,
) -> ErrorHooks:
    """Create (if needed) an ErrorManager and wire it to the process hooks.

    Args:
        manager: Manager to route failures into; built from ``settings`` if omitted
        settings: Settings used to build the manager and pick the exit policy

    Returns:
        ErrorHooks: Installed hooks; ``hooks.manager`` is usable even when
        wiring a hook failed.
    """
    logger.debug("Initializing error handling system")
    if manager is None:
        manager = ErrorManager(settings)
    settings = settings or manager.settings
    hooks = ErrorHooks(manager, exit_on_uncaught=settings.exit_on_uncaught)
    try:
        hooks.install()
    except Exception as e:
        logger.error("Failed to initialize error handling system: %s", e)
    return hooks
