"""
Capture of warning and error log records for a user interface.

An application that wants to surface adapter warnings (for example a
failed handshake) installs a ``LogCaptureHandler`` on the logger of its
choice and drains it with ``pop_logs()``. The adapter itself never refers
to this module.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class LogEvent:
    level: int
    message: str
    logger_name: str = ""

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


class LogCaptureHandler(logging.Handler):
    """Keeps formatted messages of records at or above ``level``.

    The buffer is bounded; once ``capacity`` events are queued the oldest
    ones are dropped.
    """

    def __init__(self, level: int = logging.WARNING, capacity: int = 1000) -> None:
        super().__init__(level)
        self._events: deque[LogEvent] = deque(maxlen=capacity)
        self._events_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return
        with self._events_lock:
            self._events.append(LogEvent(record.levelno, message, record.name))

    def pop_logs(self) -> list[LogEvent]:
        """Return and clear all captured events, oldest first."""
        with self._events_lock:
            events = list(self._events)
            self._events.clear()
        return events

    def __len__(self) -> int:
        return len(self._events)
