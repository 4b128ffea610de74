"""Focus diagnostics log capture.

Attaches a handler to the ``focusnav`` logger hierarchy and keeps recent
records in a ring buffer so a debug panel can show why a transition did not
happen (refused validators, dropped requests, failed activations). Each
captured record is also published as ``FocusEvent.LOG_RECORD_ADDED``.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import RLock
from typing import Deque, List, Optional

from .event_bus import EventBus, FocusEvent

__all__ = ["LogEntry", "LoggingService"]

ROOT_LOGGER = "focusnav"


@dataclass(frozen=True)
class LogEntry:
    level: str
    name: str
    message: str
    created: float
    lineno: int


class _RingBufferHandler(logging.Handler):
    def __init__(self, svc: "LoggingService") -> None:
        super().__init__(level=logging.DEBUG)
        self._svc = svc

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        self._svc._ingest(record)


class LoggingService:
    def __init__(self, capacity: int = 200, *, event_bus: Optional[EventBus] = None) -> None:
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._bus = event_bus
        self._handler = _RingBufferHandler(self)
        self._attached = False
        self._prior_level: Optional[int] = None

    # Lifecycle --------------------------------------------------------
    def attach(self, level: int = logging.DEBUG) -> None:
        if self._attached:
            return
        logger = logging.getLogger(ROOT_LOGGER)
        logger.addHandler(self._handler)
        self._prior_level = logger.level
        if logger.getEffectiveLevel() > level:
            logger.setLevel(level)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        logger = logging.getLogger(ROOT_LOGGER)
        logger.removeHandler(self._handler)
        if self._prior_level is not None:
            logger.setLevel(self._prior_level)
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def _ingest(self, record: logging.LogRecord) -> None:
        entry = LogEntry(
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
            created=record.created,
            lineno=record.lineno,
        )
        with self._lock:
            self._entries.append(entry)
        if self._bus is not None:
            self._bus.publish(
                FocusEvent.LOG_RECORD_ADDED,
                {"level": entry.level, "name": entry.name, "message": entry.message[:120]},
            )

    # Query ------------------------------------------------------------
    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            data = list(self._entries)
        return data[-limit:] if limit is not None else data

    def filter(self, *, level: str | None = None, name_contains: str | None = None) -> List[LogEntry]:
        return [
            e
            for e in self.recent()
            if (not level or e.level == level) and (not name_contains or name_contains in e.name)
        ]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_jsonl(self, path: str | Path, *, level: str | None = None, append: bool = False) -> int:
        """Write filtered entries as JSON Lines; returns number of lines written."""
        entries = self.filter(level=level)
        with open(path, "a" if append else "w", encoding="utf-8") as fh:
            for e in entries:
                fh.write(json.dumps(asdict(e), sort_keys=True) + "\n")
        return len(entries)
