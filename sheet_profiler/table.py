from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Iterable, Iterator, Mapping

import pandas as pd

from sheet_profiler.values import normalize_scalar


@dataclass(frozen=True)
class Row:
    """One record. `values` is never mutated after construction; use `with_values`."""

    row_id: int
    values: dict[str, Any]

    def get(self, column: str) -> Any:
        return self.values.get(column)

    def with_values(self, updates: Mapping[str, Any]) -> "Row":
        merged = dict(self.values)
        merged.update(updates)
        return Row(self.row_id, merged)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


def union_columns(records: Iterable[Mapping[str, Any]]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(str(key), None)
    return tuple(seen)


@dataclass(frozen=True)
class Table:
    columns: tuple[str, ...]
    rows: tuple[Row, ...] = ()
    next_row_id: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.rows and self.next_row_id <= max(row.row_id for row in self.rows):
            object.__setattr__(self, "next_row_id", max(row.row_id for row in self.rows) + 1)

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def empty(cls, columns: Iterable[str] = ()) -> "Table":
        return cls(tuple(columns))

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        columns: Iterable[str] | None = None,
    ) -> "Table":
        materialized = [
            {str(key): normalize_scalar(value) for key, value in record.items()}
            for record in records
        ]
        resolved = tuple(columns) if columns is not None else union_columns(materialized)
        rows = tuple(Row(i, values) for i, values in enumerate(materialized))
        return cls(resolved, rows, len(rows))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "Table":
        columns = [str(column) for column in df.columns]
        records = (
            dict(zip(columns, values))
            for values in df.itertuples(index=False, name=None)
        )
        return cls.from_records(records, columns=columns)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [[row.get(column) for column in self.columns] for row in self.rows],
            columns=list(self.columns),
        )

    def with_rows(self, rows: Iterable[Row], columns: Iterable[str] | None = None) -> "Table":
        return Table(
            tuple(columns) if columns is not None else self.columns,
            tuple(rows),
            self.next_row_id,
        )

    # ── Access ────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    @cached_property
    def _positions(self) -> dict[int, int]:
        return {row.row_id: position for position, row in enumerate(self.rows)}

    def position_of(self, row_id: int) -> int | None:
        return self._positions.get(row_id)

    def row_by_id(self, row_id: int) -> Row | None:
        position = self.position_of(row_id)
        return None if position is None else self.rows[position]

    def column_values(self, column: str) -> list[Any]:
        return [row.get(column) for row in self.rows]

    def records(self) -> list[dict[str, Any]]:
        return [row.to_dict() for row in self.rows]
