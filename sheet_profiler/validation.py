from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Hashable

from sheet_profiler.table import Row, Table
from sheet_profiler.values import is_empty, normalize_scalar, stringify

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationConfig:
    check_unique_id: bool = False
    id_column: str = ""
    check_email: bool = False
    email_column: str = ""

    @property
    def unique_id_enabled(self) -> bool:
        return self.check_unique_id and bool(self.id_column)

    @property
    def email_enabled(self) -> bool:
        return self.check_email and bool(self.email_column)


@dataclass(frozen=True)
class ValidationIssue:
    row_number: int
    reason: str
    row: Row

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row_number, "reason": self.reason, "data": self.row.to_dict()}


def looks_like_email(value: Any) -> bool:
    return bool(EMAIL_RE.fullmatch(stringify(value)))


def validate_table(table: Table, config: ValidationConfig) -> list[ValidationIssue]:
    """
    One ordered scan over the whole table (never the filtered view).

    Row numbers are 1-based scan positions. A row can collect one issue per
    check, so the same row may appear twice.
    """
    issues: list[ValidationIssue] = []
    seen_ids: set[Hashable] = set()

    for number, row in enumerate(table.rows, start=1):
        if config.unique_id_enabled:
            raw_id = normalize_scalar(row.get(config.id_column))
            if raw_id in seen_ids:
                issues.append(ValidationIssue(number, f"Duplicate ID: {stringify(raw_id)}", row))
            seen_ids.add(raw_id)
        if config.email_enabled:
            email = row.get(config.email_column)
            if not is_empty(email) and not looks_like_email(email):
                issues.append(ValidationIssue(number, f"Invalid Email: {stringify(email)}", row))

    return issues


def invalid_rows_table(table: Table, issues: list[ValidationIssue]) -> Table:
    """Offending rows, one per issue, renumbered so each copy has its own row id."""
    rows = tuple(Row(i, issue.row.values) for i, issue in enumerate(issues))
    return Table(table.columns, rows, len(rows))
