"""Progress and cancellation collaborators for conversion runs.

The conversion core only reports status text and polls for cancellation.
Callers plug in whatever surface they drive (CLI, worker thread, tests).
"""

from __future__ import annotations

import threading
from typing import Callable, Protocol

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ProgressSink(Protocol):
    """Fire-and-forget receiver of human-readable status lines."""

    def report(self, message: str) -> None:
        """Receive one status message."""


class CancellationSignal(Protocol):
    """Polled flag asking a running conversion to stop."""

    def is_requested(self) -> bool:
        """Return True once cancellation was requested."""


class NullProgressSink:
    """Progress sink that discards every message."""

    def report(self, message: str) -> None:
        return None


class LoggingProgressSink:
    """Progress sink forwarding messages as structured log events."""

    def report(self, message: str) -> None:
        _LOGGER.info("conversion_progress", message=message)


class CallbackProgressSink:
    """Progress sink wrapping a plain callable."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def report(self, message: str) -> None:
        self._callback(message)


class CancellationToken:
    """Thread-safe cancellation flag backed by ``threading.Event``."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def request(self) -> None:
        """Ask the running conversion to stop."""
        self._event.set()

    def is_requested(self) -> bool:
        return self._event.is_set()


class NeverCancelled:
    """Cancellation signal that is never raised."""

    def is_requested(self) -> bool:
        return False


def report_progress(sink: ProgressSink, message: str) -> None:
    """Deliver one message without letting sink failures escape.

    Args:
        sink: Caller-provided progress sink.
        message: Status text.
    """
    try:
        sink.report(message)
    except Exception as error:
        _LOGGER.warning("progress_sink_failed", error=str(error), message=message)
