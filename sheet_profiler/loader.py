"""
loader.py — file and byte-payload loader for sheet-profiler

Supports: .csv .tsv .txt .xlsx .xlsm .xls .ods .json

Public API:
    result = load_file("path/to/file.csv")
    table  = result.table

Delimited text is decoded positionally against a cleaned header row: short
rows leave their trailing keys absent, overflow fields are dropped with a
warning, and blank lines are skipped.
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import chardet
import pandas as pd

from sheet_profiler.table import Row, Table, union_columns

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS  = {".csv", ".tsv", ".txt"}
EXCEL_FORMATS = {".xlsx", ".xlsm", ".xls"}
ODS_FORMATS   = {".ods"}
JSON_FORMATS  = {".json"}
ALL_FORMATS   = TEXT_FORMATS | EXCEL_FORMATS | ODS_FORMATS | JSON_FORMATS

DELIMITER_CANDIDATES = [",", ";", "\t", "|"]
MAX_OVERFLOW_WARNINGS = 5


@dataclass
class LoadResult:
    table: Table
    detected_format: str
    detected_encoding: str | None = None
    encoding_info: dict | None = None
    delimiter: str | None = None
    sheet_name: str | None = None
    sheet_names: list[str] | None = None
    warnings: list[str] = field(default_factory=list)

    def metadata(self) -> dict[str, Any]:
        return {
            "detected_format": self.detected_format,
            "detected_encoding": self.detected_encoding,
            "delimiter": self.delimiter,
            "sheet_name": self.sheet_name,
            "sheet_names": self.sheet_names,
            "rows": len(self.table),
            "columns": len(self.table.columns),
            "warnings": list(self.warnings),
        }


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding_info(raw: bytes) -> dict:
    """
    Detect encoding from raw bytes.

    Returns dict with: detected, confidence, is_utf8, suspicious_chars.
    """
    result     = chardet.detect(raw)
    detected   = result.get("encoding") or "unknown"
    confidence = round(result.get("confidence") or 0.0, 2)

    is_utf8 = detected.upper().replace("-", "") in ("UTF8", "ASCII", "UTF8SIG")

    suspicious: list[str] = []
    if not is_utf8:
        for row_idx, line in enumerate(raw.split(b"\n")[:100], start=1):
            try:
                line.decode("utf-8")
            except UnicodeDecodeError as e:
                bad_byte = line[e.start : e.end]
                suspicious.append(f"row {row_idx}: byte {bad_byte!r} at position {e.start}")

    return {
        "detected":         detected,
        "confidence":       confidence,
        "is_utf8":          is_utf8,
        "suspicious_chars": suspicious[:10],
    }


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Each line tries UTF-8, then the detected encoding, then latin-1, and
    finally CP1252 with replacement. Null bytes and a leading BOM are dropped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc or enc == "unknown":
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines).lstrip("\ufeff")


def decode_bytes(raw: bytes) -> tuple[str, dict]:
    enc_info = _detect_encoding_info(raw)
    enc      = enc_info["detected"] if enc_info["detected"] != "unknown" else "utf-8"
    return _read_text_safely(raw, enc), enc_info


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_delimiter(text: str) -> str:
    """
    Infer the delimiter from sample lines.

    csv.Sniffer first; otherwise score each candidate by column-count
    consistency and width.
    """
    sample_lines = [l for l in text.splitlines() if l.strip()][:50]
    sample = "\n".join(sample_lines[:25])

    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters="".join(DELIMITER_CANDIDATES)).delimiter
        except csv.Error:
            pass

    best_delim  = ","
    best_score  = float("-inf")
    best_width  = 0
    sample_text = "\n".join(sample_lines[:120])

    for delim in DELIMITER_CANDIDATES:
        rows = [
            row
            for row in csv.reader(io.StringIO(sample_text), delimiter=delim)
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            continue

        widths       = [len(row) for row in rows]
        mode_width, mode_count = Counter(widths).most_common(1)[0]
        consistency  = mode_count / len(widths)

        score = (mode_width * 2.0) + (consistency * mode_width)
        if len(rows[0]) == mode_width:
            score += 1.0
        if mode_width == 1:
            score -= 10.0

        if score > best_score or (score == best_score and mode_width > best_width):
            best_score = score
            best_width = mode_width
            best_delim = delim

    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# HEADERS AND ROWS
# ══════════════════════════════════════════════════════════════════════════════

def _normalise_header_text(value: str, index: int) -> str:
    cleaned = value.replace("\ufeff", "")
    if not cleaned.strip():
        return f"column_{index}"
    return cleaned


def clean_headers(raw_header: list[str]) -> list[str]:
    """
    Blank names become column_N; exact repeats get a _2, _3 ... suffix.

    Any other name is kept as written, case and inner whitespace included.
    """
    headers: list[str] = []
    taken: set[str] = set()
    repeats: Counter = Counter()
    for i, cell in enumerate(raw_header, start=1):
        base = _normalise_header_text(cell or "", i)
        name = base
        while name in taken:
            repeats[base] += 1
            name = f"{base}_{repeats[base] + 1}"
        taken.add(name)
        headers.append(name)
    return headers


def parse_delimited(text: str, delimiter: str | None = None) -> LoadResult:
    """Parse delimited text whose first non-blank line is the header row."""
    delimiter = delimiter or _detect_delimiter(text)
    records = [row for row in csv.reader(io.StringIO(text), delimiter=delimiter) if row]
    if not records:
        return LoadResult(Table.empty(), "csv", delimiter=delimiter)

    headers = clean_headers(records[0])
    warnings: list[str] = []
    overflow_rows: list[int] = []
    rows = []

    for line_no, fields in enumerate(records[1:], start=2):
        if len(fields) > len(headers):
            overflow_rows.append(line_no)
        rows.append(Row(len(rows), dict(zip(headers, fields))))

    if overflow_rows:
        sample = ", ".join(str(n) for n in overflow_rows[:MAX_OVERFLOW_WARNINGS])
        extra  = f" (+{len(overflow_rows) - MAX_OVERFLOW_WARNINGS} more)" if len(overflow_rows) > MAX_OVERFLOW_WARNINGS else ""
        warnings.append(
            f"{len(overflow_rows)} rows had more fields than the header; extra fields dropped (rows {sample}{extra})"
        )

    return LoadResult(
        Table(tuple(headers), tuple(rows), len(rows)),
        "csv",
        delimiter=delimiter,
        warnings=warnings,
    )


def load_bytes(raw: bytes, delimiter: str | None = None) -> LoadResult:
    """Decode an uploaded payload and parse it as delimited text."""
    text, enc_info = decode_bytes(raw)
    result = parse_delimited(text, delimiter)
    result.detected_encoding = enc_info["detected"]
    result.encoding_info = enc_info
    return result


# ══════════════════════════════════════════════════════════════════════════════
# FORMAT LOADERS
# ══════════════════════════════════════════════════════════════════════════════

def _load_text(path: Path, suffix: str, delimiter: str | None) -> LoadResult:
    if suffix == ".tsv" and delimiter is None:
        delimiter = "\t"
    result = load_bytes(path.read_bytes(), delimiter)
    if suffix == ".txt" and len(result.table.columns) < 2:
        raise ValueError(".txt file does not appear to contain delimited/tabular data")
    result.detected_format = suffix.lstrip(".")
    return result


def _table_from_sheet(df: pd.DataFrame) -> Table:
    raw_names = ["" if str(name).startswith("Unnamed:") else str(name) for name in df.columns]
    df = df.copy()
    df.columns = clean_headers(raw_names)
    return Table.from_dataframe(df)


def _load_spreadsheet(path: Path, suffix: str, sheet_name: str | None) -> LoadResult:
    """
    Load .xlsx/.xlsm/.xls/.ods through pandas, every cell read as text.

    With several sheets and no sheet_name, the first sheet is used and the
    rest are listed in a warning.
    """
    engine = None
    if suffix == ".xls":
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise ImportError(".xls files require xlrd — run: pip install sheet-profiler[excel-legacy]")
    elif suffix in ODS_FORMATS:
        engine = "odf"
        try:
            import odf  # noqa: F401
        except ImportError:
            raise ImportError(".ods files require odfpy — run: pip install sheet-profiler[ods]")

    try:
        with pd.ExcelFile(path, engine=engine) as xf:
            all_sheets = [str(name) for name in xf.sheet_names]
    except Exception as exc:
        raise ValueError(f"Could not open workbook: {exc}") from exc

    warnings: list[str] = []
    if sheet_name is not None:
        if sheet_name not in all_sheets:
            raise ValueError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")
        chosen = sheet_name
    else:
        chosen = all_sheets[0]
        if len(all_sheets) > 1:
            warnings.append(
                f"Multiple sheets found ({len(all_sheets)} total); used '{chosen}'. "
                f"Ignored: {all_sheets[1:]}"
            )

    try:
        df = pd.read_excel(path, sheet_name=chosen, dtype=str, engine=engine)
    except Exception as exc:
        raise ValueError(f"Could not load sheet '{chosen}': {exc}") from exc

    return LoadResult(
        _table_from_sheet(df),
        suffix.lstrip("."),
        sheet_name=chosen,
        sheet_names=all_sheets,
        warnings=warnings,
    )


def _load_json(path: Path) -> LoadResult:
    """Load a JSON array of row objects; a dict root uses its first list value."""
    text, enc_info = decode_bytes(path.read_bytes())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    warnings: list[str] = []
    if isinstance(data, dict):
        list_keys = [k for k, v in data.items() if isinstance(v, list)]
        if not list_keys:
            raise ValueError("JSON object has no array of rows")
        warnings.append(f"Nested JSON: used array at top-level key '{list_keys[0]}'")
        data = data[list_keys[0]]
    if not isinstance(data, list):
        raise ValueError(f"JSON root must be an array or object, got {type(data).__name__}")

    records = [record for record in data if isinstance(record, dict)]
    if len(records) != len(data):
        warnings.append(f"Skipped {len(data) - len(records)} entries that are not objects")

    table = Table.from_records(records, columns=union_columns(records))
    return LoadResult(
        table,
        "json",
        detected_encoding=enc_info["detected"],
        encoding_info=enc_info,
        warnings=warnings,
    )


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_file(
    path: "str | Path",
    sheet_name: str | None = None,
    delimiter: str | None = None,
) -> LoadResult:
    """
    Load any supported file into a Table.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if the format is unsupported or unreadable.
        ImportError        if a required optional reader is missing.
    """
    path   = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

    if suffix in TEXT_FORMATS:
        return _load_text(path, suffix, delimiter)
    if suffix in JSON_FORMATS:
        return _load_json(path)
    return _load_spreadsheet(path, suffix, sheet_name)
