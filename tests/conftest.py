from __future__ import annotations
from typing import Any, List, Tuple

import pytest

from termai.core import ErrorHandlingSettings, ErrorManager


class RecordingLog:
    """LogSink double that records (sink, label, payload) calls."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Any]] = []

    def debug(self, label, payload=None):
        self.calls.append(("debug", label, payload))

    def info(self, label, payload=None):
        self.calls.append(("info", label, payload))

    def warning(self, label, payload=None):
        self.calls.append(("warning", label, payload))

    def error(self, label, payload=None):
        self.calls.append(("error", label, payload))

    def sink(self, name: str) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == name]


class RecordingReporter:
    def __init__(self):
        self.summaries = []

    def report(self, summary):
        self.summaries.append(summary)


class RecordingExit:
    def __init__(self):
        self.codes: List[int] = []

    def __call__(self, code: int) -> None:
        self.codes.append(code)


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def exit_func() -> RecordingExit:
    return RecordingExit()


@pytest.fixture
def abort_func() -> RecordingExit:
    return RecordingExit()


@pytest.fixture
def manager(log, reporter, exit_func, abort_func) -> ErrorManager:
    return ErrorManager(
        ErrorHandlingSettings(),
        log=log,
        reporter=reporter,
        exit_func=exit_func,
        abort_func=abort_func,
    )
