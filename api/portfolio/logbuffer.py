"""In-memory ring buffer of recent log lines, exposed through the admin console."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime

from .settings import LOG_BUFFER_SIZE


class LogBuffer(logging.Handler):
    """Logging handler that keeps the last ``capacity`` formatted records."""

    def __init__(self, capacity: int = LOG_BUFFER_SIZE) -> None:
        super().__init__()
        self._lines: deque[str] = deque(maxlen=capacity)
        self._lines_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            level = "ERROR" if record.levelno >= logging.ERROR else record.levelname
            line = f"[{stamp}] [{level}] {record.getMessage()}"
        except Exception:
            self.handleError(record)
            return
        with self._lines_lock:
            self._lines.append(line)

    def lines(self) -> list[str]:
        with self._lines_lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lines_lock:
            self._lines.clear()


log_buffer = LogBuffer()


def install_log_buffer() -> LogBuffer:
    """Attach the shared buffer to the root logger (idempotent)."""
    root = logging.getLogger()
    if log_buffer not in root.handlers:
        root.addHandler(log_buffer)
    return log_buffer
