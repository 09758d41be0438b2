from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
from threading import Lock
from typing import Any


def _truncate(message: str, limit: int = 2000) -> str:
    """Trim long log messages to keep payloads lightweight."""
    if len(message) <= limit:
        return message
    return f"{message[: limit - 1]}…"


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str
    logger: str
    message: str
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class RequestEntry:
    timestamp: datetime
    method: str
    path: str
    status: int
    duration_ms: float


class _RingBuffer:
    """Bounded deque with locked snapshots."""

    def __init__(self, capacity: int):
        self._capacity = max(1, capacity)
        self._items: deque[Any] = deque(maxlen=self._capacity)
        self._lock = Lock()

    def append(self, item: Any) -> None:
        with self._lock:
            self._items.append(item)

    def snapshot(self, limit: int | None = None) -> list[Any]:
        with self._lock:
            data = list(self._items)
        if limit is None or limit >= len(data):
            return data
        return data[-limit:]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class _InMemoryLogHandler(logging.Handler):
    def __init__(self, buffer: _RingBuffer):
        super().__init__()
        self._buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            details = None
            if record.exc_info:
                details = {"exception": self.formatException(record.exc_info)}
            self._buffer.append(
                LogEntry(
                    timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                    level=record.levelname,
                    logger=record.name,
                    message=_truncate(record.getMessage()),
                    details=details,
                )
            )
        except Exception:  # pragma: no cover - logging must never raise
            self.handleError(record)


class LogBufferManager:
    """Keeps recent log records and pricing request events in memory."""

    def __init__(self) -> None:
        self._log_buffer = _RingBuffer(500)
        self._request_buffer = _RingBuffer(200)
        self._installed = False
        self._lock = Lock()

    def install(
        self,
        *,
        max_logs: int = 500,
        max_request_events: int = 200,
        file_path: Path | None = None,
        level: int = logging.INFO,
    ) -> None:
        with self._lock:
            if self._installed:
                return

            self._log_buffer = _RingBuffer(max_logs)
            self._request_buffer = _RingBuffer(max_request_events)

            root_logger = logging.getLogger()
            handler = _InMemoryLogHandler(self._log_buffer)
            handler.setLevel(logging.NOTSET)
            root_logger.addHandler(handler)
            if root_logger.level == logging.NOTSET or root_logger.level > level:
                root_logger.setLevel(level)

            if file_path:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(file_path)
                file_handler.setLevel(level)
                file_handler.setFormatter(
                    logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s", "%Y-%m-%d %H:%M:%S")
                )
                root_logger.addHandler(file_handler)

            self._installed = True

    def add_request(self, *, method: str, path: str, status: int, duration_ms: float) -> None:
        self._request_buffer.append(
            RequestEntry(
                timestamp=datetime.now(timezone.utc),
                method=method,
                path=path,
                status=status,
                duration_ms=round(duration_ms, 2),
            )
        )

    def log_entries(self, limit: int | None = None) -> list[LogEntry]:
        return self._log_buffer.snapshot(limit)

    def request_entries(self, limit: int | None = None) -> list[RequestEntry]:
        return self._request_buffer.snapshot(limit)

    def clear(self) -> None:
        self._log_buffer.clear()
        self._request_buffer.clear()


_MANAGER = LogBufferManager()


def install_log_buffer(
    *,
    max_logs: int = 500,
    max_request_events: int = 200,
    file_path: Path | None = None,
    level: int = logging.INFO,
) -> None:
    """Attach the log buffer handler to the root logger."""

    _MANAGER.install(
        max_logs=max_logs,
        max_request_events=max_request_events,
        file_path=file_path,
        level=level,
    )


def record_request(*, method: str, path: str, status: int, duration_ms: float) -> None:
    _MANAGER.add_request(method=method, path=path, status=status, duration_ms=duration_ms)


def get_log_entries(limit: int | None = None) -> list[LogEntry]:
    return _MANAGER.log_entries(limit)


def get_request_entries(limit: int | None = None) -> list[RequestEntry]:
    return _MANAGER.request_entries(limit)


def reset_buffers() -> None:
    """TEST-ONLY: clear in-memory buffers."""

    _MANAGER.clear()


__all__ = [
    "get_log_entries",
    "get_request_entries",
    "install_log_buffer",
    "record_request",
    "reset_buffers",
    "LogEntry",
    "RequestEntry",
]
