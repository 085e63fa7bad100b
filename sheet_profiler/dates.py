"""
Date Normalizer.

Values are probed against a fixed, ordered list of layouts; the first layout
that yields a real calendar date with a year strictly between 1900 and 2100
wins. Ambiguous strings such as 01/02/2023 therefore resolve by list order
(day-first here), never by locale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable

from sheet_profiler.table import Table
from sheet_profiler.values import is_empty, is_numeric, normalize_scalar, stringify

MIN_YEAR_EXCLUSIVE = 1900
MAX_YEAR_EXCLUSIVE = 2100

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                       "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
MONTH_NUMBERS = {name.lower(): i for i, name in enumerate(MONTH_ABBREVIATIONS, start=1)}


class DateLayout(str, Enum):
    ISO = "yyyy-MM-dd"
    DAY_FIRST_SLASH = "dd/MM/yyyy"
    MONTH_FIRST_SLASH = "MM/dd/yyyy"
    DAY_FIRST_HYPHEN = "dd-MM-yyyy"
    DAY_FIRST_DOT = "dd.MM.yyyy"
    YEAR_FIRST_SLASH = "yyyy/MM/dd"
    VERBOSE = "MMM dd, yyyy"


# Order is significant.
PARSE_LAYOUTS = [
    (DateLayout.ISO, re.compile(r"^(?P<year>\d{1,4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})$", re.ASCII)),
    (DateLayout.DAY_FIRST_SLASH, re.compile(r"^(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{1,4})$", re.ASCII)),
    (DateLayout.MONTH_FIRST_SLASH, re.compile(r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{1,4})$", re.ASCII)),
    (DateLayout.DAY_FIRST_HYPHEN, re.compile(r"^(?P<day>\d{1,2})-(?P<month>\d{1,2})-(?P<year>\d{1,4})$", re.ASCII)),
    (DateLayout.DAY_FIRST_DOT, re.compile(r"^(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{1,4})$", re.ASCII)),
    (DateLayout.YEAR_FIRST_SLASH, re.compile(r"^(?P<year>\d{1,4})/(?P<month>\d{1,2})/(?P<day>\d{1,2})$", re.ASCII)),
    (DateLayout.VERBOSE, re.compile(r"^(?P<month>[A-Za-z]{3}) (?P<day>\d{1,2}), (?P<year>\d{1,4})$", re.ASCII)),
]

TARGET_LAYOUTS = {
    DateLayout.ISO: "ISO 8601 (2023-12-31)",
    DateLayout.MONTH_FIRST_SLASH: "US (12/31/2023)",
    DateLayout.DAY_FIRST_SLASH: "European (31/12/2023)",
    DateLayout.DAY_FIRST_HYPHEN: "Hyphenated (31-12-2023)",
    DateLayout.VERBOSE: "Verbose (Dec 31, 2023)",
}


@dataclass(frozen=True)
class NormalizedDate:
    value: date
    layout: DateLayout


@dataclass(frozen=True)
class DateNormalizationResult:
    table: Table
    changed: int
    parsed: int
    unparsed: int


def resolve_layout(layout: "DateLayout | str") -> DateLayout:
    if isinstance(layout, DateLayout):
        return layout
    try:
        return DateLayout(layout)
    except ValueError:
        by_name = {item.name.lower(): item for item in DateLayout}
        found = by_name.get(str(layout).strip().lower())
        if found is None:
            supported = ", ".join(item.value for item in DateLayout)
            raise ValueError(f"Unknown date layout '{layout}'. Supported: {supported}") from None
        return found


def resolve_target_layout(layout: "DateLayout | str") -> DateLayout:
    """Like resolve_layout, restricted to the layouts values may be rewritten into."""
    target = resolve_layout(layout)
    if target not in TARGET_LAYOUTS:
        supported = ", ".join(item.value for item in TARGET_LAYOUTS)
        raise ValueError(f"'{target.value}' is not an output date layout. Supported: {supported}")
    return target


def _build_date(fields: dict[str, str]) -> date | None:
    month_text = fields["month"]
    if month_text.isdigit():
        month = int(month_text)
    else:
        month = MONTH_NUMBERS.get(month_text.lower())
        if month is None:
            return None
    try:
        return date(int(fields["year"]), month, int(fields["day"]))
    except ValueError:
        return None


def parse_candidate(value: Any) -> NormalizedDate | None:
    if is_empty(value):
        return None
    normalized = normalize_scalar(value)
    if not isinstance(normalized, str):
        return None
    text = normalized.strip()
    # Pure numbers (IDs, prices, blank padding) are never dates.
    if not text or is_numeric(text):
        return None

    for layout, pattern in PARSE_LAYOUTS:
        match = pattern.fullmatch(text)
        if not match:
            continue
        parsed = _build_date(match.groupdict())
        if parsed and MIN_YEAR_EXCLUSIVE < parsed.year < MAX_YEAR_EXCLUSIVE:
            return NormalizedDate(parsed, layout)
    return None


def apply_format(value: date, layout: "DateLayout | str") -> str:
    layout = resolve_layout(layout)
    day = f"{value.day:02d}"
    month = f"{value.month:02d}"
    year = f"{value.year:04d}"
    if layout is DateLayout.ISO:
        return f"{year}-{month}-{day}"
    if layout is DateLayout.DAY_FIRST_SLASH:
        return f"{day}/{month}/{year}"
    if layout is DateLayout.MONTH_FIRST_SLASH:
        return f"{month}/{day}/{year}"
    if layout is DateLayout.DAY_FIRST_HYPHEN:
        return f"{day}-{month}-{year}"
    if layout is DateLayout.DAY_FIRST_DOT:
        return f"{day}.{month}.{year}"
    if layout is DateLayout.YEAR_FIRST_SLASH:
        return f"{year}/{month}/{day}"
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {day}, {year}"


def apply_date_normalization(
    table: Table,
    columns: Iterable[str],
    layout: "DateLayout | str",
) -> DateNormalizationResult:
    target = resolve_target_layout(layout)
    selected = [column for column in dict.fromkeys(columns) if column in table.columns]
    changed = parsed_count = unparsed = 0
    rows = []

    for row in table.rows:
        updates = {}
        for column in selected:
            raw = row.get(column)
            if is_empty(raw):
                continue
            parsed = parse_candidate(raw)
            if parsed is None:
                unparsed += 1
                continue
            parsed_count += 1
            formatted = apply_format(parsed.value, target)
            if formatted != stringify(raw):
                updates[column] = formatted
                changed += 1
        rows.append(row.with_values(updates) if updates else row)

    return DateNormalizationResult(table.with_rows(rows), changed, parsed_count, unparsed)
