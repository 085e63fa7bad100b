"""
Row transform operations.

Each transform is a pure function from a Table to a TransformResult. A
transform that receives unusable input (an empty delimiter, a blank search
term, an unknown column) declines: it returns the original table with
`applied=False` and the caller must not record a history entry for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sheet_profiler.table import Table
from sheet_profiler.values import is_empty, stringify

ALL_COLUMNS = None


@dataclass(frozen=True)
class TransformResult:
    table: Table
    count: int
    applied: bool = True


def declined(table: Table) -> TransformResult:
    return TransformResult(table, 0, applied=False)


def trim_whitespace(table: Table) -> TransformResult:
    changed = 0
    rows = []
    for row in table.rows:
        updates = {
            column: value.strip()
            for column, value in row.values.items()
            if isinstance(value, str) and value.strip() != value
        }
        changed += len(updates)
        rows.append(row.with_values(updates) if updates else row)
    return TransformResult(table.with_rows(rows), changed)


def remove_empty_rows(table: Table) -> TransformResult:
    kept = [row for row in table.rows if any(not is_empty(value) for value in row.values.values())]
    return TransformResult(table.with_rows(kept), len(table.rows) - len(kept))


def split_column(
    table: Table,
    source: str,
    delimiter: str,
    first_name: str,
    second_name: str,
) -> TransformResult:
    if not source or not delimiter or not first_name or not second_name:
        return declined(table)
    if source not in table.columns:
        return declined(table)

    rows = []
    for row in table.rows:
        head, _, remainder = stringify(row.get(source)).partition(delimiter)
        rows.append(row.with_values({first_name: head, second_name: remainder}))

    columns = table.columns + tuple(
        name for name in dict.fromkeys((first_name, second_name)) if name not in table.columns
    )
    return TransformResult(table.with_rows(rows, columns), len(rows))


def find_replace(
    table: Table,
    find: str,
    replace: str,
    column: str | None = ALL_COLUMNS,
) -> TransformResult:
    """Replace whole-field matches only; "N/A" never matches inside "N/A pending"."""
    if not find:
        return declined(table)
    if column is not ALL_COLUMNS and column not in table.columns:
        return declined(table)

    changed = 0
    rows = []
    for row in table.rows:
        scope = row.values.keys() if column is ALL_COLUMNS else [column]
        updates = {
            name: replace
            for name in scope
            if name in row.values and not is_empty(row.get(name)) and stringify(row.get(name)) == find
        }
        changed += len(updates)
        rows.append(row.with_values(updates) if updates else row)
    return TransformResult(table.with_rows(rows), changed)


def edit_cell(table: Table, row_id: int, column: str, value: Any) -> TransformResult:
    position = table.position_of(row_id)
    if position is None or column not in table.columns:
        return declined(table)
    rows = list(table.rows)
    rows[position] = rows[position].with_values({column: value})
    return TransformResult(table.with_rows(rows), 1)
