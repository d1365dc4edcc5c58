"""
skillswap.services.log_buffer — Recent Log Records for the Admin Dashboard
============================================================================

A bounded, thread-safe deque fed by a :class:`logging.Handler`.  The admin
routes read the tail through :func:`get_logs` and move the capture level
with :func:`set_capture_level`.  Nothing is persisted; a restart starts
from an empty buffer.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

DEFAULT_CAPACITY = 2000
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_buffer: LogBuffer | None = None
_buffer_lock = threading.Lock()


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: str
    level: str
    logger: str
    message: str


class LogBuffer:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def tail(
        self,
        count: int = 200,
        *,
        level: str | None = None,
        logger_prefix: str | None = None,
    ) -> list[dict[str, str]]:
        """Last *count* entries at or above *level* from loggers under *logger_prefix*."""
        floor = logging.getLevelName(level.upper()) if level else 0
        if not isinstance(floor, int):
            floor = 0
        with self._lock:
            entries = list(self._entries)

        kept = [
            e for e in entries
            if logging.getLevelName(e.level) >= floor
            and (not logger_prefix or e.logger.startswith(logger_prefix))
        ]
        if count:
            kept = kept[-count:]
        return [asdict(e) for e in kept]


class BufferHandler(logging.Handler):
    """Copies every record it sees into a :class:`LogBuffer`."""

    def __init__(self, buffer: LogBuffer, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.buffer.append(LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                level=record.levelname,
                logger=record.name,
                message=self.format(record),
            ))
        except Exception:
            self.handleError(record)


def get_buffer() -> LogBuffer:
    global _buffer
    with _buffer_lock:
        if _buffer is None:
            _buffer = LogBuffer()
        return _buffer


def _installed_handler() -> BufferHandler | None:
    for handler in logging.getLogger().handlers:
        if isinstance(handler, BufferHandler):
            return handler
    return None


def install_handler(level: int = logging.DEBUG) -> BufferHandler:
    """Attach the buffer handler to the root logger (once).

    Uvicorn's loggers are set to propagate so their records reach it too.
    """
    handler = _installed_handler()
    if handler is None:
        handler = BufferHandler(get_buffer(), level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(handler)
    else:
        handler.setLevel(level)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv = logging.getLogger(name)
        uv.propagate = True
        uv.setLevel(logging.INFO)
    return handler


def get_logs(
    tail: int = 200,
    level: str | None = None,
    logger_filter: str | None = None,
) -> list[dict[str, str]]:
    return get_buffer().tail(tail, level=level, logger_prefix=logger_filter)


def get_current_level() -> str:
    handler = _installed_handler()
    if handler is not None:
        return logging.getLevelName(handler.level)
    return logging.getLevelName(logging.getLogger().level)


def set_capture_level(level_name: str) -> str:
    """Change what the buffer captures; installs the handler if needed."""
    level_name = level_name.upper()
    if level_name not in VALID_LEVELS:
        raise ValueError(f"Invalid level: {level_name}. Must be one of {VALID_LEVELS}")
    install_handler(level=getattr(logging, level_name))
    return level_name
