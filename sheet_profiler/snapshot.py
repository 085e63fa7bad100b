"""
Persistence boundary for a Table.

serialize() writes a versioned JSON document; deserialize() reads it back and
also accepts a bare array of row objects. Anything unreadable comes back as an
empty table so a host can start fresh instead of failing to boot.
"""

from __future__ import annotations

import json
from typing import Any

from sheet_profiler.contracts import build_contract
from sheet_profiler.table import Row, Table, union_columns
from sheet_profiler.values import normalize_scalar

SNAPSHOT_CONTRACT = "sheet_profiler.snapshot"


def serialize(table: Table) -> str:
    payload = {
        "contract": build_contract(SNAPSHOT_CONTRACT),
        "columns": list(table.columns),
        "rows": [row.to_dict() for row in table.rows],
    }
    return json.dumps(payload, ensure_ascii=False)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _rows_from(records: list) -> list[dict] | None:
    if not all(isinstance(record, dict) for record in records):
        return None
    if not all(_is_scalar(value) for record in records for value in record.values()):
        return None
    return records


def deserialize(blob: str | bytes | None) -> Table:
    if not blob:
        return Table.empty()
    try:
        data = json.loads(blob)
    except (TypeError, ValueError, RecursionError):
        return Table.empty()

    if isinstance(data, list):
        records = _rows_from(data)
        return Table.empty() if records is None else Table.from_records(records)

    if not isinstance(data, dict):
        return Table.empty()
    contract = data.get("contract")
    if not isinstance(contract, dict) or contract.get("name") != SNAPSHOT_CONTRACT:
        return Table.empty()

    columns = data.get("columns")
    records = data.get("rows")
    if not isinstance(columns, list) or not isinstance(records, list):
        return Table.empty()
    records = _rows_from(records)
    if records is None:
        return Table.empty()

    columns = [str(column) for column in columns]
    extra = [column for column in union_columns(records) if column not in columns]
    rows = tuple(
        Row(i, {str(key): normalize_scalar(value) for key, value in record.items()})
        for i, record in enumerate(records)
    )
    return Table(tuple(columns + extra), rows, len(rows))
