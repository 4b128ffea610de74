"""History log of committed focus changes.

Index-addressable; undo/redo walk it with ``find`` and ``move_to``.
Appending after an undo discards the redo branch. When the log exceeds
``max_size`` the oldest entries are dropped.
``index`` is ``-1`` for an empty log and otherwise stays within
``[0, len(log))``.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .models import HistoryEntry

__all__ = ["HistoryLog"]


class HistoryLog:
    def __init__(self, max_size: int = 50) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._max_size = max_size
        self._entries: List[HistoryEntry] = []
        self._index = -1

    def append(self, entry: HistoryEntry) -> None:
        entries = self._entries[: self._index + 1]
        entries.append(entry)
        if len(entries) > self._max_size:
            entries = entries[-self._max_size :]
        self._entries = entries
        self._index = len(entries) - 1

    def find(self, step: int, usable: Callable[[HistoryEntry], bool]) -> Optional[Tuple[int, HistoryEntry]]:
        """Nearest entry from the current index in direction ``step`` (-1 undo, +1 redo) accepted by ``usable``."""
        i = self._index + step
        while 0 <= i < len(self._entries):
            entry = self._entries[i]
            if usable(entry):
                return i, entry
            i += step
        return None

    def move_to(self, index: int) -> HistoryEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"history index {index} outside [0, {len(self._entries)})")
        self._index = index
        return self._entries[index]

    def clear(self) -> None:
        self._entries = []
        self._index = -1

    def was_visited(self, element_id: str) -> bool:
        return any(e.element_id == element_id for e in self._entries)

    def visited_ids(self) -> set[str]:
        return {e.element_id for e in self._entries}

    @property
    def index(self) -> int:
        return self._index

    @property
    def max_size(self) -> int:
        return self._max_size

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
