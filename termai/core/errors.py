from __future__ import annotations
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


class ErrorLevel(IntEnum):
    """Ordered severity scale, least to most severe.

    Legacy names are true aliases of the canonical levels, so they route
    exactly like the level they map onto.
    """

    INFORMATIONAL = 1
    MINOR = 2
    MAJOR = 3
    CRITICAL = 4

    # Legacy aliases
    DEBUG = 1
    INFO = 1
    WARNING = 2
    ERROR = 3
    FATAL = 4


class ErrorCategory(str, Enum):
    APPLICATION = "application"
    AUTHENTICATION = "authentication"
    CONNECTION = "connection"
    INITIALIZATION = "initialization"
    CONFIGURATION = "configuration"
    NETWORK = "network"
    AI_SERVICE = "ai_service"
    API = "api"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    FILE_SYSTEM = "file_system"
    COMMAND_EXECUTION = "command_execution"
    VALIDATION = "validation"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


Resolution = Union[str, Sequence[str]]
LevelLike = Union[ErrorLevel, int, str]
CategoryLike = Union[ErrorCategory, str]


class UserError(Exception):
    """Failure meant to be shown directly to the end user.

    Attributes:
        message: Human-readable message (required, non-empty)
        resolution: Optional remediation, a single string or ordered steps
        category: ErrorCategory of the failing subsystem
        cause: Optional originating error, kept for diagnostics only
        context: Optional structured payload safe to log/serialize
    """

    _FIELDS = ("message", "resolution", "category", "cause", "context")

    def __init__(
        self,
        message: str,
        *,
        resolution: Optional[Resolution] = None,
        category: CategoryLike = ErrorCategory.APPLICATION,
        cause: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not isinstance(message, str) or not message.strip():
            raise ValueError("UserError requires a non-empty message")
        super().__init__(message)
        if resolution is not None and not isinstance(resolution, str):
            resolution = tuple(str(step) for step in resolution)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "resolution", resolution or None)
        object.__setattr__(self, "category", resolve_category(category))
        object.__setattr__(self, "cause", cause)
        object.__setattr__(self, "context", dict(context) if context else {})
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._FIELDS:
            raise AttributeError(f"UserError.{name} is read-only")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name in self._FIELDS:
            raise AttributeError(f"UserError.{name} is read-only")
        super().__delattr__(name)

    def __reduce__(self):
        return (
            _rebuild_user_error,
            (self.message, self.resolution, self.category, self.cause, self.context),
        )

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"UserError({self.message!r}, category={self.category.name})"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": self.message,
            "category": self.category.value,
            "context": self.context,
        }
        if self.resolution is not None:
            data["resolution"] = (
                self.resolution if isinstance(self.resolution, str) else list(self.resolution)
            )
        if self.cause is not None:
            data["cause"] = type(self.cause).__name__
        return data


def _rebuild_user_error(message, resolution, category, cause, context) -> UserError:
    return UserError(
        message, resolution=resolution, category=category, cause=cause, context=context
    )


def create_user_error(
    message: str,
    *,
    resolution: Optional[Resolution] = None,
    category: CategoryLike = ErrorCategory.APPLICATION,
    cause: Any = None,
    context: Optional[Dict[str, Any]] = None,
) -> UserError:
    """Build a UserError at the point a domain operation fails."""
    return UserError(
        message,
        resolution=resolution,
        category=category,
        cause=cause,
        context=context,
    )


def resolve_level(level: Optional[LevelLike]) -> Union[ErrorLevel, int]:
    """Map a level given as enum, int or name onto the severity scale.

    None resolves to MINOR. Integers outside the canonical range are kept as
    plain ints so callers can express "below informational".
    """
    if level is None:
        return ErrorLevel.MINOR
    if isinstance(level, ErrorLevel):
        return level
    if isinstance(level, str):
        try:
            return ErrorLevel[level.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown error level: {level!r}")
    try:
        value = int(level)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"Unknown error level: {level!r}")
    try:
        return ErrorLevel(value)
    except ValueError:
        return value


def resolve_category(category: Optional[CategoryLike]) -> ErrorCategory:
    """Map a category given as enum, value or name; None resolves to APPLICATION."""
    if category is None:
        return ErrorCategory.APPLICATION
    if isinstance(category, ErrorCategory):
        return category
    text = str(category).strip()
    try:
        return ErrorCategory(text.lower())
    except ValueError:
        pass
    try:
        return ErrorCategory[text.upper()]
    except KeyError:
        raise ValueError(f"Unknown error category: {category!r}")


def level_label(level: Union[ErrorLevel, int]) -> str:
    if isinstance(level, ErrorLevel):
        return level.name.lower()
    return str(level)


class ErrorOptions(BaseModel):
    """Classification hints passed alongside an error."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: Union[ErrorLevel, int] = ErrorLevel.MINOR
    category: ErrorCategory = ErrorCategory.APPLICATION
    context: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        level: Optional[LevelLike] = None,
        category: Optional[CategoryLike] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> "ErrorOptions":
        return cls(
            level=resolve_level(level),
            category=resolve_category(category),
            context=dict(context) if context else {},
        )

