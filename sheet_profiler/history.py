from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sheet_profiler.table import Table

HISTORY_LIMIT = 5


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    table: Table
    timestamp: datetime


class History:
    """
    Bounded undo stack of pre-mutation snapshots.

    push() must be called with the table as it was immediately before the
    mutation about to happen. Only the newest `limit` entries are kept.
    """

    def __init__(self, limit: int = HISTORY_LIMIT, clock: Callable[[], datetime] | None = None) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._clock = clock or utc_now
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def push(self, table: Table) -> HistoryEntry:
        entry = HistoryEntry(table, self._clock())
        self._entries.append(entry)
        return entry

    def undo(self) -> HistoryEntry | None:
        if not self._entries:
            return None
        return self._entries.pop()

    def clear(self) -> None:
        self._entries.clear()
