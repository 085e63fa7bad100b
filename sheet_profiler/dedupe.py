"""
Duplicate detection and resolution.

Two phases so a caller can confirm the strategy before anything is removed:
`scan_duplicates` counts, `resolve_duplicates` rebuilds the table.
"""

from __future__ import annotations

from typing import Hashable

from sheet_profiler.table import Row, Table
from sheet_profiler.values import ValueKind, normalize_scalar, stringify, value_kind

WHOLE_ROW = None
STRATEGIES = ("first", "last")


def _tagged(value) -> tuple[ValueKind, Hashable]:
    kind = value_kind(value)
    return kind, None if kind is ValueKind.EMPTY else normalize_scalar(value)


def row_key(row: Row, key: str | None, columns: tuple[str, ...]) -> Hashable:
    # Missing, None and "" are one and the same Empty for whole-row equality.
    if key is WHOLE_ROW:
        return tuple(_tagged(row.get(column)) for column in columns)
    return stringify(row.get(key))


def key_columns(table: Table, rows: list[Row] | tuple[Row, ...]) -> tuple[str, ...]:
    extra = {column: None for row in rows for column in row.values if column not in table.columns}
    return table.columns + tuple(extra)


def scan_duplicates(table: Table, key: str | None = WHOLE_ROW) -> int:
    columns = key_columns(table, table.rows)
    seen: set[Hashable] = set()
    duplicates = 0
    for row in table.rows:
        current = row_key(row, key, columns)
        if current in seen:
            duplicates += 1
        else:
            seen.add(current)
    return duplicates


def _keep_first(rows: list[Row], key: str | None, columns: tuple[str, ...]) -> list[Row]:
    seen: set[Hashable] = set()
    kept = []
    for row in rows:
        current = row_key(row, key, columns)
        if current not in seen:
            seen.add(current)
            kept.append(row)
    return kept


def resolve_duplicates(table: Table, key: str | None = WHOLE_ROW, strategy: str = "first") -> Table:
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown dedupe strategy '{strategy}'. Use one of: {', '.join(STRATEGIES)}")
    columns = key_columns(table, table.rows)
    if strategy == "first":
        kept = _keep_first(list(table.rows), key, columns)
    else:
        kept = _keep_first(list(reversed(table.rows)), key, columns)
        kept.reverse()
    return table.with_rows(kept)
