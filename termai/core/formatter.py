"""Turn any raised value into something displayable.

Every raised value is first classified into one of four variants:

- ``UserErrorValue``: a ``UserError``, rendered friendly and resolution-first
- ``NativeError``: any other exception, rendered technically (type, stack, causes)
- ``StringMessage``: a bare string
- ``Unrecognized``: anything else, serialized best-effort

Each variant owns a total ``message()`` conversion, so no formatting path can
raise back into the error handler.
"""

from __future__ import annotations
import json
import traceback
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorCategory, ErrorLevel, UserError

UNKNOWN_MESSAGE = "Unknown error"

_SEVERITY_MESSAGES = {
    ErrorLevel.CRITICAL: "This is a critical error that prevents the application from functioning.",
    ErrorLevel.MAJOR: "This is a significant error that may impact functionality.",
    ErrorLevel.MINOR: "This is a minor error that should not significantly impact functionality.",
    ErrorLevel.INFORMATIONAL: "This is an informational message about an error condition.",
}


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        try:
            return repr(value)
        except Exception:
            return object.__repr__(value)


def _serialize(value: Any) -> str:
    try:
        return json.dumps(value)
    except Exception:
        return _safe_str(value)


@dataclass(frozen=True)
class UserErrorValue:
    error: UserError

    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class NativeError:
    error: BaseException

    def message(self) -> str:
        text = _safe_str(self.error)
        return text or type(self.error).__name__


@dataclass(frozen=True)
class StringMessage:
    text: str

    def message(self) -> str:
        return self.text


@dataclass(frozen=True)
class Unrecognized:
    raw: Any

    def message(self) -> str:
        return _serialize(self.raw)


ErrorValue = Union[UserErrorValue, NativeError, StringMessage, Unrecognized]


def classify_error(value: Any) -> ErrorValue:
    if isinstance(value, UserError):
        return UserErrorValue(value)
    if isinstance(value, BaseException):
        return NativeError(value)
    if isinstance(value, str):
        return StringMessage(value)
    return Unrecognized(value)


def get_error_message(value: Any) -> str:
    """Deterministic message for any raised value; never raises."""
    try:
        return classify_error(value).message()
    except Exception:
        return _safe_str(value)


class FormattedError(BaseModel):
    """Display record produced for a single handled error."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: str
    resolution: Optional[Union[str, List[str]]] = None
    user_facing: bool = False
    category: Optional[ErrorCategory] = None
    error_type: Optional[str] = None
    stack: Optional[str] = None
    causes: List[str] = Field(default_factory=list)
    original_error: Any = None
    formatting_error: Optional[str] = None

    @property
    def text(self) -> str:
        """Line used when the record is logged or printed."""
        if self.user_facing and isinstance(self.original_error, UserError):
            return format_user_facing(self.original_error)
        return self.message

    @property
    def details(self) -> str:
        parts = []
        if self.stack:
            parts.append(self.stack.rstrip())
        if self.causes:
            parts.append("\n".join(f"Caused by: {cause}" for cause in self.causes))
        if self.formatting_error:
            parts.append(f"Formatting failed: {self.formatting_error}")
        return "\n".join(parts)


def _cause_chain(error: BaseException, limit: int = 10) -> List[str]:
    chain: List[str] = []
    seen = {id(error)}
    current = _next_cause(error)
    while current is not None and len(chain) < limit and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, BaseException):
            chain.append(f"{type(current).__name__}: {NativeError(current).message()}")
            current = _next_cause(current)
        else:
            chain.append(get_error_message(current))
            break
    return chain


def _next_cause(error: BaseException) -> Any:
    if isinstance(error, UserError) and error.cause is not None:
        return error.cause
    return error.__cause__ or error.__context__


def _stack(error: BaseException) -> Optional[str]:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__, chain=False))


def _record_for(variant: ErrorValue, value: Any) -> FormattedError:
    message = variant.message() or UNKNOWN_MESSAGE
    if isinstance(variant, UserErrorValue):
        error = variant.error
        resolution = error.resolution
        if resolution is not None and not isinstance(resolution, str):
            resolution = list(resolution)
        return FormattedError(
            message=message,
            resolution=resolution,
            user_facing=True,
            category=error.category,
            error_type=type(error).__name__,
            causes=_cause_chain(error),
            original_error=value,
        )
    if isinstance(variant, NativeError):
        error = variant.error
        return FormattedError(
            message=message,
            error_type=type(error).__name__,
            stack=_stack(error),
            causes=_cause_chain(error),
            original_error=value,
        )
    return FormattedError(message=message, original_error=value)


def format_for_display(value: Any) -> FormattedError:
    """Format any raised value into a FormattedError.

    Total: a failure while formatting degrades to a minimal record carrying
    the best-effort message and the formatting failure.
    """
    try:
        return _record_for(classify_error(value), value)
    except Exception as formatting_error:
        return FormattedError(
            message=get_error_message(value) or UNKNOWN_MESSAGE,
            original_error=value,
            formatting_error=_safe_str(formatting_error),
        )


def format_user_facing(error: UserError) -> str:
    """Render a UserError as ``Error: <message>`` plus an optional resolution block.

    A sequence resolution is joined with ``"\\n  - "``, so its first step sits
    on the ``Resolution:`` line and later steps are bulleted below it.
    """
    text = f"Error: {error.message}"
    resolution = error.resolution
    if resolution:
        if not isinstance(resolution, str):
            resolution = "\n  - ".join(resolution)
        text += f"\nResolution: {resolution}"
    return text


def format_display_for_user(value: Any) -> str:
    """Single display string: friendly for UserError, technical for exceptions."""
    variant = classify_error(value)
    if isinstance(variant, UserErrorValue):
        return format_user_facing(variant.error)
    if isinstance(variant, NativeError):
        return f"{type(variant.error).__name__}: {variant.message()}"
    return get_error_message(value) or UNKNOWN_MESSAGE


def get_severity_message(level: Any) -> str:
    try:
        return _SEVERITY_MESSAGES.get(ErrorLevel(level), "")
    except (ValueError, TypeError):
        return ""


def should_show_resolution(level: Any) -> bool:
    return level in (ErrorLevel.MAJOR, ErrorLevel.CRITICAL)

