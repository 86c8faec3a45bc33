"""Central router for every failure in the process.

``ErrorManager.handle_error`` is the general entry point: it classifies the
error, counts it per ``category:level:message`` key, formats it, logs it at a
severity picked from the level and forwards MAJOR/CRITICAL errors to the
configured reporter. The other three handlers cover fatal errors, uncaught
exceptions and unhandled async failures.
"""

from __future__ import annotations
import logging
import os
import sys
from typing import Any, Callable, Dict, Mapping, NoReturn, Optional

from .config import ErrorHandlingSettings
from .errors import (
    CategoryLike,
    ErrorLevel,
    ErrorOptions,
    LevelLike,
    level_label,
)
from .formatter import FormattedError, format_for_display, get_error_message
from .logger import LogSink, StdlibLogSink
from .reporting import ErrorSummary, Reporter, reporter_from_url

ExitFunc = Callable[[int], Any]


def occurrence_key(value: Any, options: ErrorOptions) -> str:
    return f"{options.category.value}:{level_label(options.level)}:{get_error_message(value)}"


class ErrorManager:
    """Classify, count, log and report errors.

    Not thread-safe: the occurrence counter is mutated in place, so callers
    running handlers from several threads must serialize access themselves.
    """

    def __init__(
        self,
        settings: Optional[ErrorHandlingSettings] = None,
        *,
        log: Optional[LogSink] = None,
        reporter: Optional[Reporter] = None,
        exit_func: Optional[ExitFunc] = None,
        abort_func: Optional[ExitFunc] = None,
    ):
        self.settings = settings or ErrorHandlingSettings()
        self.log = log or StdlibLogSink()
        self.reporter = reporter or reporter_from_url(
            self.settings.report_url, timeout=self.settings.report_timeout, log=self.log
        )
        self.exit_func = exit_func or sys.exit
        self.abort_func = abort_func or os._exit
        self._error_counts: Dict[str, int] = {}

    @property
    def max_errors(self) -> int:
        return self.settings.max_errors

    @property
    def error_counts(self) -> Dict[str, int]:
        return dict(self._error_counts)

    def occurrences(self, key: str) -> int:
        return self._error_counts.get(key, 0)

    def handle_error(
        self,
        error: Any,
        *,
        level: Optional[LevelLike] = None,
        category: Optional[CategoryLike] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Handle a general error. Defaults to MINOR / APPLICATION; never raises."""
        try:
            options = ErrorOptions.build(level, category, context)
        except (TypeError, ValueError) as e:
            self.log.debug(f"Invalid error options, using defaults: {e}")
            options = _default_options(context)

        key = occurrence_key(error, options)
        count = self._error_counts.get(key, 0) + 1
        self._error_counts[key] = count

        if self.settings.suppress_repeated and count > self.max_errors:
            if count == self.max_errors + 1:
                self.log.debug(f"Suppressing further occurrences of: {key}")
            return

        formatted = self._format(error)
        self._log_by_level(options, formatted)

        if options.level >= ErrorLevel.MAJOR:
            self._report(formatted, options, count)

    def log_fatal_error(self, error: Any) -> FormattedError:
        """Format and log an unrecoverable error without terminating."""
        formatted = self._format(error)
        self.log.error(f"FATAL ERROR: {formatted.text}", formatted)
        return formatted

    def terminate(self, code: Optional[int] = None) -> NoReturn:
        status = self.settings.fatal_exit_code if code is None else code
        self.exit_func(status)
        # exit primitives that return (test doubles, embedding hosts) must not resume the caller
        raise SystemExit(status)

    def abort(self, code: Optional[int] = None) -> None:
        """End the whole process from any thread, skipping interpreter cleanup.

        ``terminate`` only ends the calling thread when run off the main
        thread, and its SystemExit is discarded inside finalizers. Log
        handlers and the standard streams are flushed first.
        """
        status = self.settings.fatal_exit_code if code is None else code
        _flush_output()
        self.abort_func(status)

    def handle_fatal_error(self, error: Any) -> NoReturn:
        """Log as CRITICAL / APPLICATION, then terminate the process."""
        self.log_fatal_error(error)
        self.terminate()

    def handle_unhandled_rejection(self, reason: Any, source: Any = None) -> None:
        """Handle a failed future/task nobody awaited. Logged as MAJOR; does not exit."""
        formatted = self._format(reason)
        label = f"Unhandled async rejection: {formatted.text}"
        if source is not None:
            label = f"{label} (source: {_describe(source)})"
        self.log.error(label, formatted)

    def handle_uncaught_exception(self, error: Any) -> None:
        """Handle an exception that escaped to the top level. Logged as CRITICAL; does not exit."""
        formatted = self._format(error)
        self.log.error(f"Uncaught exception: {formatted.text}", formatted)

    def _format(self, error: Any) -> FormattedError:
        try:
            return format_for_display(error)
        except Exception as formatting_error:
            return FormattedError(
                message=get_error_message(error) or "Unknown error",
                original_error=error,
                formatting_error=get_error_message(formatting_error),
            )

    def _log_by_level(self, options: ErrorOptions, formatted: FormattedError) -> None:
        level = options.level
        label = f"[{options.category.name}] {formatted.text}"
        if level >= ErrorLevel.MAJOR:
            self.log.error(label, formatted)
        elif level == ErrorLevel.MINOR:
            self.log.warning(label, formatted)
        elif level == ErrorLevel.INFORMATIONAL:
            self.log.info(label, formatted)

    def _report(self, formatted: FormattedError, options: ErrorOptions, count: int) -> None:
        summary = ErrorSummary(
            message=formatted.message,
            level=level_label(options.level),
            category=options.category.value,
            occurrences=count,
        )
        try:
            self.reporter.report(summary)
        except Exception as e:
            self.log.debug(f"Error reporter failed: {get_error_message(e)}")


def _default_options(context: Any) -> ErrorOptions:
    """MINOR / APPLICATION, keeping ``context`` only when it is a usable mapping."""
    if isinstance(context, Mapping):
        try:
            return ErrorOptions.build(context=context)
        except (TypeError, ValueError):
            pass
    return ErrorOptions.build()


def _flush_output() -> None:
    handlers = logging.getLogger().handlers + logging.getLogger("termai").handlers
    flushers = [getattr(h, "flush", None) for h in handlers]
    flushers += [getattr(s, "flush", None) for s in (sys.stdout, sys.stderr)]
    for flush in flushers:
        if flush is None:
            continue
        try:
            flush()
        except Exception:
            pass


def _describe(source: Any) -> str:
    try:
        return repr(source)
    except Exception:
        return object.__repr__(source)

