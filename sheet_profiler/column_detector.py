"""
sheet-profiler column_detector.py

Classifies each column of a Table as Numeric, Date, Text, Mixed or Empty and
builds the per-column chart data shown by the profiler (a histogram for
numeric columns, a top-values frequency list for everything else).
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sheet_profiler.dates import parse_candidate
from sheet_profiler.table import Table
from sheet_profiler.values import is_empty, maybe_parse_number, stringify


class ColumnType(str, Enum):
    NUMERIC = "Numeric"
    DATE = "Date"
    TEXT = "Text"
    MIXED = "Mixed"
    EMPTY = "Empty"


@dataclass(frozen=True)
class TypeThresholds:
    mixed_numeric_ratio: float = 0.9
    mixed_date_ratio: float = 0.8


DEFAULT_THRESHOLDS = TypeThresholds()
HISTOGRAM_BINS = 10
FREQUENCY_TOP = 5
EMPTY_LABEL = "(Empty)"


def non_empty_values(table: Table, column: str) -> list[Any]:
    return [value for value in table.column_values(column) if not is_empty(value)]


def infer_type(
    table: Table,
    column: str,
    thresholds: TypeThresholds | None = None,
) -> ColumnType:
    thresholds = thresholds or DEFAULT_THRESHOLDS
    values = non_empty_values(table, column)
    if not values:
        return ColumnType.EMPTY

    total = len(values)
    num_count = sum(1 for value in values if maybe_parse_number(value) is not None)
    date_count = sum(1 for value in values if parse_candidate(value) is not None)

    if num_count == total:
        return ColumnType.NUMERIC
    if date_count == total:
        return ColumnType.DATE
    if num_count > total * thresholds.mixed_numeric_ratio:
        return ColumnType.MIXED
    if date_count > total * thresholds.mixed_date_ratio:
        return ColumnType.MIXED
    return ColumnType.TEXT


def scan_for_date_columns(table: Table, thresholds: TypeThresholds | None = None) -> list[str]:
    """Columns inferred as Date or Mixed, offered to the caller for selective normalization."""
    return [
        column
        for column in table.columns
        if infer_type(table, column, thresholds) in (ColumnType.DATE, ColumnType.MIXED)
    ]


def histogram(table: Table, column: str, bins: int = HISTOGRAM_BINS) -> list[dict[str, Any]]:
    numbers = [
        number
        for number in (maybe_parse_number(value) for value in table.column_values(column))
        if number is not None and math.isfinite(number)
    ]
    if not numbers:
        return []

    low, high = min(numbers), max(numbers)
    step = (high - low) / bins or 1
    buckets = [{"range": f"{low + i * step:.1f}", "count": 0} for i in range(bins)]
    for number in numbers:
        index = min(math.floor((number - low) / step), bins - 1)
        buckets[index]["count"] += 1
    return buckets


def frequency(table: Table, column: str, top: int = FREQUENCY_TOP) -> list[dict[str, Any]]:
    counts = Counter(
        EMPTY_LABEL if is_empty(value) else stringify(value)
        for value in table.column_values(column)
    )
    return [{"range": label, "count": count} for label, count in counts.most_common(top)]


def analyse_column(table: Table, column: str, thresholds: TypeThresholds | None = None) -> dict[str, Any]:
    detected = infer_type(table, column, thresholds)
    values = table.column_values(column)
    empty_count = sum(1 for value in values if is_empty(value))
    if detected is ColumnType.NUMERIC:
        chart_kind, chart = "distribution", histogram(table, column)
    else:
        chart_kind, chart = "frequency", frequency(table, column)
    return {
        "detected_type": detected.value,
        "empty_count": empty_count,
        "non_empty_count": len(values) - empty_count,
        "unique_count": len({stringify(value) for value in values if not is_empty(value)}),
        "chart_kind": chart_kind,
        "chart": chart,
    }


def analyse_table(table: Table, thresholds: TypeThresholds | None = None) -> dict[str, Any]:
    columns: dict[str, Any] = {}
    detected_counter = Counter()

    for column in table.columns:
        column_report = analyse_column(table, column, thresholds)
        columns[column] = column_report
        detected_counter[column_report["detected_type"]] += 1

    return {
        "columns": columns,
        "summary": {
            "total_rows": len(table),
            "total_columns": len(table.columns),
            "detected_types": dict(sorted(detected_counter.items())),
        },
    }
