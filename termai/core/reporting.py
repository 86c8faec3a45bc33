"""Monitoring sinks that severe errors are forwarded to."""

from __future__ import annotations
import logging
import threading
from typing import Optional, Protocol, runtime_checkable

import requests
from requests import Session
from pydantic import BaseModel

from .logger import LogSink

logger = logging.getLogger(__name__)


class ErrorSummary(BaseModel):
    message: str
    level: str
    category: str
    occurrences: int = 1


@runtime_checkable
class Reporter(Protocol):
    def report(self, summary: ErrorSummary) -> None: ...


class NullReporter:
    """Stand-in for an external error-tracking service.

    Writes a debug line to ``log`` when given, else to the module logger.
    """

    def __init__(self, log: Optional[LogSink] = None):
        self.log = log

    def report(self, summary: ErrorSummary) -> None:
        if self.log is not None:
            self.log.debug("Would report error to monitoring system", summary.model_dump())
            return
        logger.debug("Would report error to monitoring system: %s", summary.model_dump())


class HttpReporter:
    """POST summaries as JSON to a collector endpoint.

    Each report is sent from a daemon thread and never awaited; transport
    failures are logged at debug level and otherwise ignored.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        session: Optional[Session] = None,
        background: bool = True,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.background = background

    def report(self, summary: ErrorSummary) -> None:
        payload = summary.model_dump()
        if not self.background:
            self._send(payload)
            return
        thread = threading.Thread(
            target=self._send, args=(payload,), name="termai-reporter", daemon=True
        )
        thread.start()

    def _send(self, payload: dict) -> None:
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout)
            r.raise_for_status()
        except Exception as e:
            logger.debug("Error report to %s failed: %s", self.url, e)


def reporter_from_url(
    url: Optional[str], timeout: float = 5.0, log: Optional[LogSink] = None
) -> Reporter:
    if url:
        return HttpReporter(url, timeout=timeout)
    return NullReporter(log)
