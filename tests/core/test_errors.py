from __future__ import annotations

import pickle

import pytest

from termai.core.errors import (
    ErrorCategory,
    ErrorLevel,
    ErrorOptions,
    UserError,
    create_user_error,
    level_label,
    resolve_category,
    resolve_level,
)


def test_levels_are_ordered():
    assert ErrorLevel.INFORMATIONAL < ErrorLevel.MINOR < ErrorLevel.MAJOR < ErrorLevel.CRITICAL


def test_legacy_levels_alias_canonical_levels():
    assert ErrorLevel.DEBUG is ErrorLevel.INFORMATIONAL
    assert ErrorLevel.INFO is ErrorLevel.INFORMATIONAL
    assert ErrorLevel.WARNING is ErrorLevel.MINOR
    assert ErrorLevel.ERROR is ErrorLevel.MAJOR
    assert ErrorLevel.FATAL is ErrorLevel.CRITICAL
    # aliases are not separate members
    assert [lvl.name for lvl in ErrorLevel] == ["INFORMATIONAL", "MINOR", "MAJOR", "CRITICAL"]


class TestResolve:
    def test_defaults(self):
        assert resolve_level(None) is ErrorLevel.MINOR
        assert resolve_category(None) is ErrorCategory.APPLICATION

    def test_level_by_name_and_int(self):
        assert resolve_level("major") is ErrorLevel.MAJOR
        assert resolve_level("FATAL") is ErrorLevel.CRITICAL
        assert resolve_level(1) is ErrorLevel.INFORMATIONAL

    def test_level_below_scale_kept_as_int(self):
        level = resolve_level(0)
        assert level == 0
        assert not isinstance(level, ErrorLevel)
        assert level_label(level) == "0"

    def test_unknown_level_name(self):
        with pytest.raises(ValueError, match="Unknown error level"):
            resolve_level("catastrophic")

    def test_unconvertible_level(self):
        for level in (float("inf"), float("nan"), object()):
            with pytest.raises(ValueError, match="Unknown error level"):
                resolve_level(level)

    def test_category_by_value_or_name(self):
        assert resolve_category("connection") is ErrorCategory.CONNECTION
        assert resolve_category("INITIALIZATION") is ErrorCategory.INITIALIZATION

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="Unknown error category"):
            resolve_category("plumbing")

    def test_options_build(self):
        options = ErrorOptions.build("critical", "connection", {"attempt": 2})
        assert options.level is ErrorLevel.CRITICAL
        assert options.category is ErrorCategory.CONNECTION
        assert options.context == {"attempt": 2}


class TestUserError:
    def test_defaults(self):
        err = UserError("AI module not initialized")
        assert err.message == "AI module not initialized"
        assert err.resolution is None
        assert err.category is ErrorCategory.APPLICATION
        assert err.cause is None
        assert str(err) == "AI module not initialized"

    def test_empty_message_rejected(self):
        with pytest.raises(ValueError):
            UserError("")
        with pytest.raises(ValueError):
            UserError("   ")

    def test_fields_are_read_only(self):
        err = UserError("boom", resolution="retry")
        with pytest.raises(AttributeError):
            err.message = "changed"
        with pytest.raises(AttributeError):
            err.resolution = None
        with pytest.raises(AttributeError):
            del err.category
        assert err.message == "boom"

    def test_sequence_resolution_is_frozen(self):
        steps = ["step1", "step2"]
        err = UserError("boom", resolution=steps)
        steps.append("step3")
        assert err.resolution == ("step1", "step2")

    def test_cause_is_chained(self):
        original = ConnectionError("refused")
        err = create_user_error(
            "Failed to initialize AI capabilities",
            category=ErrorCategory.INITIALIZATION,
            cause=original,
        )
        assert err.cause is original
        assert err.__cause__ is original

    def test_can_be_raised(self):
        with pytest.raises(UserError, match="not initialized") as excinfo:
            raise UserError("AI module not initialized", category="initialization")
        assert excinfo.value.category is ErrorCategory.INITIALIZATION

    def test_to_dict(self):
        err = UserError(
            "Failed to connect",
            resolution=["Check network", "Retry"],
            category=ErrorCategory.CONNECTION,
            cause=TimeoutError("slow"),
        )
        assert err.to_dict() == {
            "message": "Failed to connect",
            "category": "connection",
            "context": {},
            "resolution": ["Check network", "Retry"],
            "cause": "TimeoutError",
        }

    def test_pickle_roundtrip(self):
        err = UserError("boom", resolution="retry", category=ErrorCategory.CONNECTION)
        restored = pickle.loads(pickle.dumps(err))
        assert restored.message == "boom"
        assert restored.resolution == "retry"
        assert restored.category is ErrorCategory.CONNECTION
