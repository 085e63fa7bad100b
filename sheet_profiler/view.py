"""
Query/view pipeline: search filter → stable sort → pagination.

Everything here is a pure function of (table, query). The debouncer at the
bottom is a helper for hosts that feed the search term from keystrokes.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from sheet_profiler.table import Row, Table
from sheet_profiler.values import comparison_key, is_empty, stringify

PAGE_SIZE = 50
SEARCH_DEBOUNCE_SECONDS = 0.3
DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: str = "asc"

    def __post_init__(self) -> None:
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Sort direction must be one of: {', '.join(DIRECTIONS)}")

    def toggled(self, column: str) -> "SortSpec":
        """Clicking the same column again flips asc → desc; any other click starts at asc."""
        if column == self.column and self.direction == "asc":
            return SortSpec(column, "desc")
        return SortSpec(column, "asc")


@dataclass(frozen=True)
class ViewQuery:
    search: str = ""
    sort: SortSpec | None = None
    page: int = 1
    page_size: int = PAGE_SIZE


@dataclass(frozen=True)
class Page:
    rows: list[Row]
    page: int
    total_pages: int
    total_rows: int
    page_size: int

    @property
    def first_row_number(self) -> int:
        return (self.page - 1) * self.page_size + 1


def filter_rows(rows: Iterable[Row], search: str) -> list[Row]:
    rows = list(rows)
    if not search:
        return rows
    needle = search.casefold()
    return [
        row for row in rows
        if any(needle in stringify(value).casefold() for value in row.values.values())
    ]


def sort_rows(rows: Iterable[Row], sort: SortSpec | None) -> list[Row]:
    rows = list(rows)
    if sort is None:
        return rows
    present = [row for row in rows if not is_empty(row.get(sort.column))]
    missing = [row for row in rows if is_empty(row.get(sort.column))]
    ordered = sorted(
        present,
        key=lambda row: comparison_key(row.get(sort.column)),
        reverse=sort.direction == "desc",
    )
    return ordered + missing


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(count / page_size)


def paginate(rows: list[Row], page: int = 1, page_size: int = PAGE_SIZE) -> Page:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    pages = total_pages(len(rows), page_size)
    page = min(max(1, page), max(1, pages))
    start = (page - 1) * page_size
    return Page(rows[start:start + page_size], page, pages, len(rows), page_size)


def build_view(table: Table, query: ViewQuery | None = None) -> Page:
    query = query or ViewQuery()
    processed = filter_rows(table.rows, query.search)
    processed = sort_rows(processed, query.sort)
    return paginate(processed, query.page, query.page_size)


class SearchDebouncer:
    """
    Holds back a search term until input has been quiet for `delay` seconds.

    update() on every keystroke; a new keystroke restarts the window and drops
    the stale pending term. poll() returns the committed term.
    """

    def __init__(self, delay: float = SEARCH_DEBOUNCE_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self._clock = clock
        self._pending: str | None = None
        self._deadline = 0.0
        self.committed = ""

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def update(self, term: str) -> None:
        self._pending = term
        self._deadline = self._clock() + self.delay

    def cancel(self) -> None:
        self._pending = None

    def poll(self) -> str:
        if self._pending is not None and self._clock() >= self._deadline:
            self.committed = self._pending
            self._pending = None
        return self.committed
