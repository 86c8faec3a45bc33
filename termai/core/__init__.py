"""Error classification, routing and display for termai."""

from .errors import (
    ErrorLevel,
    ErrorCategory,
    ErrorOptions,
    UserError,
    create_user_error,
    resolve_level,
    resolve_category,
)
from .formatter import (
    FormattedError,
    classify_error,
    get_error_message,
    format_for_display,
    format_user_facing,
    format_display_for_user,
    get_severity_message,
    should_show_resolution,
)
from .config import ErrorHandlingSettings, load_settings
from .logger import LogSink, StdlibLogSink, configure_logging
from .reporting import ErrorSummary, Reporter, NullReporter, HttpReporter
from .manager import ErrorManager, occurrence_key
from .hooks import ErrorHooks, install_error_handling

__all__ = [
    # Taxonomy
    "ErrorLevel",
    "ErrorCategory",
    "ErrorOptions",
    "UserError",
    "create_user_error",
    "resolve_level",
    "resolve_category",
    # Formatting
    "FormattedError",
    "classify_error",
    "get_error_message",
    "format_for_display",
    "format_user_facing",
    "format_display_for_user",
    "get_severity_message",
    "should_show_resolution",
    # Configuration and sinks
    "ErrorHandlingSettings",
    "load_settings",
    "LogSink",
    "StdlibLogSink",
    "configure_logging",
    "ErrorSummary",
    "Reporter",
    "NullReporter",
    "HttpReporter",
    # Routing
    "ErrorManager",
    "occurrence_key",
    "ErrorHooks",
    "install_error_handling",
]
