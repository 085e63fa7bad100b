from __future__ import annotations

import csv
import io
from pathlib import Path

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from sheet_profiler.table import Table
from sheet_profiler.validation import ValidationIssue
from sheet_profiler.values import stringify

CLEAN_HEADER_COLOR = "4CAF50"
ISSUE_HEADER_COLOR = "E53935"


def to_delimited(table: Table, delimiter: str = ",") -> str:
    """Header row plus data rows, minimal quoting, LF line endings."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(table.columns)
    for row in table.rows:
        writer.writerow([stringify(row.get(column)) for column in table.columns])
    return buffer.getvalue()


def write_delimited(table: Table, path: Path, delimiter: str = ",") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_delimited(table, delimiter), encoding="utf-8", newline="")
    return path


# ── Workbook ──────────────────────────────────────────────────────────────────

def _style_sheet(ws, col_widths: list[int], header_color: str) -> None:
    """Bold coloured header, frozen first row, column widths."""
    fill = PatternFill("solid", fgColor=header_color)
    font = Font(bold=True, color="FFFFFF")
    for cell in ws[1]:
        cell.font = font
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=False)
    ws.freeze_panes = "A2"
    for i, width in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _infer_col_widths(rows: list[list], min_width: int = 10, max_width: int = 60, sample: int = 300) -> list[int]:
    if not rows:
        return []
    widths = [min(max_width, len(str(v)) + 2) for v in rows[0]]
    for row in rows[1 : sample + 1]:
        for i, val in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], min(max_width, len(str(val)) + 2))
    return [max(min_width, w) for w in widths]


def _cell_value(value):
    # openpyxl keeps numbers numeric; everything else is written as text.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return stringify(value)


def write_workbook(table: Table, path: Path, issues: list[ValidationIssue] | None = None) -> Path:
    wb = openpyxl.Workbook()

    ws = wb.active
    ws.title = "Clean Data"
    rows = [list(table.columns)]
    rows.extend([_cell_value(row.get(column)) for column in table.columns] for row in table.rows)
    for values in rows:
        ws.append(values)
    if table.columns:
        _style_sheet(ws, _infer_col_widths(rows), CLEAN_HEADER_COLOR)

    if issues is not None:
        ws_issues = wb.create_sheet("Validation Issues")
        issue_rows = [["row", "reason"] + list(table.columns)]
        issue_rows.extend(
            [issue.row_number, issue.reason] + [_cell_value(issue.row.get(column)) for column in table.columns]
            for issue in issues
        )
        for values in issue_rows:
            ws_issues.append(values)
        _style_sheet(ws_issues, _infer_col_widths(issue_rows), ISSUE_HEADER_COLOR)

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path
