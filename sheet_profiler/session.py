"""
EditorSession — the stateful shell around the pure table operations.

A session owns the current Table, the bounded undo History and the pending
duplicate scan. Every method returns an OperationSummary and appends it to
`summaries`, which is the session's activity log.

Ordering rules:
  - every applied mutation pushes the pre-mutation table before replacing it
  - declined operations leave the table and history untouched
  - load, undo and any mutation invalidate the pending duplicate scan, so
    resolve_duplicates can only run against the table that was scanned
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from sheet_profiler import dedupe, transforms
from sheet_profiler.column_detector import DEFAULT_THRESHOLDS, TypeThresholds, analyse_table, scan_for_date_columns
from sheet_profiler.dates import DateLayout, apply_date_normalization, resolve_target_layout
from sheet_profiler.history import HISTORY_LIMIT, History
from sheet_profiler.table import Table
from sheet_profiler.transforms import ALL_COLUMNS, TransformResult
from sheet_profiler.validation import ValidationConfig, ValidationIssue, validate_table
from sheet_profiler.view import Page, ViewQuery, build_view

SUCCESS = "success"
INFO = "info"
ERROR = "error"


class OperationOrderError(RuntimeError):
    """Raised when an operation runs without the step that must precede it."""


@dataclass(frozen=True)
class OperationSummary:
    action: str
    message: str
    level: str = SUCCESS
    count: int = 0
    applied: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "message": self.message,
            "level": self.level,
            "count": self.count,
            "applied": self.applied,
        }


@dataclass(frozen=True)
class PendingScan:
    table: Table
    key: str | None
    count: int


class EditorSession:
    def __init__(
        self,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] | None = None,
        thresholds: TypeThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.table = Table.empty()
        self.history = History(history_limit, clock)
        self.thresholds = thresholds
        self.summaries: list[OperationSummary] = []
        self._pending_scan: PendingScan | None = None

    # ── Bookkeeping ───────────────────────────────────────────────────────

    @property
    def pending_duplicates(self) -> int | None:
        return None if self._pending_scan is None else self._pending_scan.count

    def _record(self, summary: OperationSummary) -> OperationSummary:
        self.summaries.append(summary)
        return summary

    def _commit(self, table: Table) -> None:
        self.history.push(self.table)
        self.table = table
        self._pending_scan = None

    def _declined(self, action: str, message: str) -> OperationSummary:
        return self._record(OperationSummary(action, message, INFO, 0, applied=False))

    def _apply(self, action: str, result: TransformResult, message: str, decline_message: str = "") -> OperationSummary:
        if not result.applied:
            return self._declined(action, decline_message)
        self._commit(result.table)
        return self._record(OperationSummary(action, message, SUCCESS, result.count))

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def load(self, table: Table) -> OperationSummary:
        self.table = table
        self.history.clear()
        self._pending_scan = None
        return self._record(OperationSummary("load", f"Loaded {len(table)} rows", SUCCESS, len(table)))

    def clear(self) -> OperationSummary:
        self.table = Table.empty()
        self.history.clear()
        self._pending_scan = None
        return self._record(OperationSummary("clear", "Cleared table and history", INFO))

    def undo(self) -> OperationSummary:
        entry = self.history.undo()
        if entry is None:
            return self._declined("undo", "Nothing to undo")
        self.table = entry.table
        self._pending_scan = None
        if not entry.table.rows:
            return self._record(OperationSummary("undo", "Undid last action; restored an empty table", INFO))
        return self._record(OperationSummary("undo", "Undid last action", INFO, len(entry.table)))

    # ── Transforms ────────────────────────────────────────────────────────

    def trim(self) -> OperationSummary:
        result = transforms.trim_whitespace(self.table)
        return self._apply("trim", result, f"Trimmed whitespace in {result.count} fields")

    def remove_empty_rows(self) -> OperationSummary:
        result = transforms.remove_empty_rows(self.table)
        return self._apply("remove_empty_rows", result, f"Removed {result.count} empty rows")

    def split_column(self, source: str, delimiter: str, first_name: str, second_name: str) -> OperationSummary:
        result = transforms.split_column(self.table, source, delimiter, first_name, second_name)
        return self._apply(
            "split_column",
            result,
            f"Split column '{source}'",
            "Split needs a source column, a delimiter and two new column names",
        )

    def find_replace(self, find: str, replace: str, column: str | None = ALL_COLUMNS) -> OperationSummary:
        result = transforms.find_replace(self.table, find, replace, column)
        return self._apply(
            "find_replace",
            result,
            f"Replaced {result.count} occurrences",
            "Find/replace needs a search value and a known column",
        )

    def edit_cell(self, row_id: int, column: str, value: Any) -> OperationSummary:
        result = transforms.edit_cell(self.table, row_id, column, value)
        if not result.applied:
            return self._declined("edit_cell", f"No cell at row {row_id}, column '{column}'")
        # Direct edits replace the table without an undo entry.
        self.table = result.table
        self._pending_scan = None
        return self._record(OperationSummary("edit_cell", f"Updated '{column}' on row {row_id}", SUCCESS, 1))

    # ── Duplicates ────────────────────────────────────────────────────────

    def scan_duplicates(self, key: str | None = dedupe.WHOLE_ROW) -> OperationSummary:
        if key is not dedupe.WHOLE_ROW and key not in self.table.columns:
            self._pending_scan = None
            return self._declined("scan_duplicates", f"Unknown column '{key}'")
        count = dedupe.scan_duplicates(self.table, key)
        if count == 0:
            self._pending_scan = None
            return self._record(OperationSummary("scan_duplicates", "No duplicates found", INFO, 0, applied=False))
        self._pending_scan = PendingScan(self.table, key, count)
        return self._record(OperationSummary("scan_duplicates", f"Found {count} duplicates", INFO, count))

    def resolve_duplicates(self, strategy: str = "first") -> OperationSummary:
        pending = self._pending_scan
        if pending is None or pending.table is not self.table:
            raise OperationOrderError("resolve_duplicates requires a scan_duplicates with matches on the current table")
        resolved = dedupe.resolve_duplicates(self.table, pending.key, strategy)
        removed = len(self.table) - len(resolved)
        self._commit(resolved)
        return self._record(OperationSummary("resolve_duplicates", f"Removed {removed} duplicates", SUCCESS, removed))

    # ── Dates ─────────────────────────────────────────────────────────────

    def scan_date_columns(self) -> list[str]:
        return scan_for_date_columns(self.table, self.thresholds)

    def normalize_dates(self, columns: Iterable[str], layout: "DateLayout | str" = DateLayout.ISO) -> OperationSummary:
        selected = [column for column in columns if column in self.table.columns]
        if not selected:
            return self._declined("normalize_dates", "No likely date columns detected")
        try:
            target = resolve_target_layout(layout)
        except ValueError as exc:
            return self._record(OperationSummary("normalize_dates", str(exc), ERROR, 0, applied=False))
        result = apply_date_normalization(self.table, selected, target)
        self._commit(result.table)
        message = f"Standardized {result.changed} dates"
        if result.unparsed:
            message += f"; {result.unparsed} values could not be parsed"
        return self._record(OperationSummary("normalize_dates", message, SUCCESS, result.changed))

    # ── Read-only views ───────────────────────────────────────────────────

    def view(self, query: ViewQuery | None = None) -> Page:
        return build_view(self.table, query)

    def validate(self, config: ValidationConfig) -> list[ValidationIssue]:
        return validate_table(self.table, config)

    def profile(self) -> dict[str, Any]:
        return analyse_table(self.table, self.thresholds)
