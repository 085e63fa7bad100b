from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sheet_profiler import __version__ as TOOL_VERSION
from sheet_profiler.config import ProfilerConfig, load_config, starter_config
from sheet_profiler.contracts import build_contract, build_run_summary
from sheet_profiler.dates import TARGET_LAYOUTS
from sheet_profiler.dedupe import STRATEGIES, WHOLE_ROW
from sheet_profiler.loader import ALL_FORMATS, LoadResult, load_file
from sheet_profiler.session import EditorSession, OperationSummary
from sheet_profiler.table import Table
from sheet_profiler.validation import ValidationConfig, invalid_rows_table
from sheet_profiler.view import SortSpec, ViewQuery
from sheet_profiler.writer import to_delimited, write_delimited, write_workbook

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_VALIDATE_FAILED = 5

DEFAULT_CONFIG_NAME = "sheet-profiler.json"
DATE_FORMAT_CHOICES = [layout.value for layout in TARGET_LAYOUTS] + [layout.name.lower() for layout in TARGET_LAYOUTS]


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class SheetProfilerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def emit_verbose(args: argparse.Namespace, message: str) -> None:
    if getattr(args, "verbose", False) and not getattr(args, "quiet", False):
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def timestamp_token() -> str:
    override = os.environ.get("SHEET_PROFILER_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "sheet-profiler-output" / f"{input_path.stem}-{timestamp_token()}"


def determine_output_dir(args: argparse.Namespace, input_path: Path) -> Path:
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    return default_output_dir(input_path)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, payload: str) -> None:
    ensure_parent(path)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def remove_generated_at(value: Any) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == "generated_at":
                result[key] = "1970-01-01T00:00:00Z"
            else:
                result[key] = remove_generated_at(item)
        return result
    if isinstance(value, list):
        return [remove_generated_at(item) for item in value]
    return value


def normalize_report_for_cli(payload: Any) -> Any:
    if os.environ.get("SHEET_PROFILER_OUTPUT_STAMP"):
        return remove_generated_at(payload)
    return payload


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_backend_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (ImportError, UnicodeDecodeError)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def require_input(args: argparse.Namespace) -> Path:
    input_path = Path(args.input)
    if not input_path.exists():
        raise CliError(f"File not found: {input_path}", EXIT_COMMAND_ERROR)
    suffix = input_path.suffix.lower()
    if suffix not in ALL_FORMATS:
        raise CliError(
            f"Unsupported file type '{suffix or '[missing extension]'}'. "
            f"Supported: {', '.join(sorted(ALL_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )
    return input_path


def read_config(args: argparse.Namespace) -> ProfilerConfig:
    path = Path(args.config) if getattr(args, "config", None) else None
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError) as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc


def load_input(args: argparse.Namespace, input_path: Path) -> LoadResult:
    loaded = load_file(input_path, sheet_name=getattr(args, "sheet_name", None))
    for warning in loaded.warnings:
        emit_verbose(args, f"Warning: {warning}")
    return loaded


def ensure_column(table: Table, column: str | None, flag: str) -> None:
    if column and column not in table.columns:
        raise CliError(f"{flag}: unknown column '{column}'. Available: {list(table.columns)}", EXIT_COMMAND_ERROR)


# ── Text rendering ────────────────────────────────────────────────────────────

def render_profile_text(payload: dict[str, Any]) -> str:
    profile = payload["profile"]
    summary = profile["summary"]
    lines = [
        "sheet-profiler profile",
        f"File: {payload['file']}",
        f"Format: {payload['source']['detected_format']}",
        f"Rows: {summary['total_rows']}",
        f"Columns: {summary['total_columns']}",
    ]
    for name, column in profile["columns"].items():
        lines.append(
            f"- {name}: {column['detected_type']} "
            f"(empty {column['empty_count']}, unique {column['unique_count']})"
        )
    return "\n".join(lines) + "\n"


def render_clean_text(payload: dict[str, Any]) -> str:
    lines = [
        "sheet-profiler clean",
        f"File: {payload['file']}",
        f"Rows: {payload['rows_before']} -> {payload['rows_after']}",
    ]
    for operation in payload["operations"]:
        marker = "" if operation["applied"] else " (skipped)"
        lines.append(f"- {operation['message']}{marker}")
    return "\n".join(lines) + "\n"


def render_validate_text(payload: dict[str, Any]) -> str:
    lines = [
        "sheet-profiler validate",
        f"File: {payload['file']}",
        f"Valid: {'yes' if payload['valid'] else 'no'}",
        f"Issues: {payload['issue_count']}",
    ]
    for issue in payload["issues"]:
        lines.append(f"- row {issue['row']}: {issue['reason']}")
    return "\n".join(lines) + "\n"


# ── Commands ──────────────────────────────────────────────────────────────────

def run_profile(args: argparse.Namespace) -> int:
    try:
        input_path = require_input(args)
        config = read_config(args)
        loaded = load_input(args, input_path)
        session = EditorSession(config.history_limit, thresholds=config.thresholds)
        session.load(loaded.table)
        profile = session.profile()

        out_dir = determine_output_dir(args, input_path)
        report_path = Path(args.output) if args.output else out_dir / "profile.json"
        payload = {
            "contract": build_contract("sheet_profiler.profile"),
            "file": str(input_path),
            "source": loaded.metadata(),
            "profile": profile,
            "run_summary": build_run_summary(
                command="profile",
                input_path=input_path,
                output_path=report_path,
                metrics={
                    "rows": profile["summary"]["total_rows"],
                    "columns": profile["summary"]["total_columns"],
                },
                warnings=loaded.warnings,
            ),
        }
        payload = normalize_report_for_cli(payload)
        write_json(report_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_profile_text(payload).rstrip(), quiet=args.quiet)
            emit_human(f"Profile written: {report_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def apply_clean_operations(args: argparse.Namespace, session: EditorSession, config: ProfilerConfig) -> list[OperationSummary]:
    """Run the requested operations in a fixed order; returns their summaries."""
    table = session.table
    if args.replace:
        ensure_column(table, args.replace_column, "--replace-column")
    if args.split:
        ensure_column(table, args.split, "--split")
        if not args.delimiter or not args.into:
            raise CliError("--split requires --delimiter and --into FIRST SECOND", EXIT_COMMAND_ERROR)
    if args.dedupe:
        ensure_column(table, args.dedupe, "--dedupe")

    start = len(session.summaries)
    if args.trim:
        session.trim()
    if args.remove_empty:
        session.remove_empty_rows()
    if args.replace:
        find, replace = args.replace
        session.find_replace(find, replace, args.replace_column)
    if args.split:
        first, second = args.into
        session.split_column(args.split, args.delimiter, first, second)
    if args.fix_dates:
        columns = args.date_columns or session.scan_date_columns()
        session.normalize_dates(columns, args.date_format or config.layout)
    if args.dedupe is not None:
        scan = session.scan_duplicates(args.dedupe or WHOLE_ROW)
        if scan.applied:
            session.resolve_duplicates(args.keep)

    operations = session.summaries[start:]
    for summary in operations:
        emit_verbose(args, f"[{summary.level}] {summary.action}: {summary.message}")
    return operations


def run_clean(args: argparse.Namespace) -> int:
    try:
        input_path = require_input(args)
        config = read_config(args)
        loaded = load_input(args, input_path)
        session = EditorSession(config.history_limit, thresholds=config.thresholds)
        session.load(loaded.table)
        rows_before = len(session.table)

        operations = apply_clean_operations(args, session, config)

        out_dir = determine_output_dir(args, input_path)
        suffix = ".xlsx" if args.format == "xlsx" else ".csv"
        output_path = safe_output_path(Path(args.output) if args.output else out_dir / f"{input_path.stem}-clean{suffix}")
        summary_path = safe_output_path(output_path.with_name(f"{output_path.stem}-summary.json"))

        if args.format == "xlsx":
            write_workbook(session.table, output_path)
        else:
            write_delimited(session.table, output_path)

        payload = {
            "contract": build_contract("sheet_profiler.clean_summary"),
            "file": str(input_path),
            "rows_before": rows_before,
            "rows_after": len(session.table),
            "columns": list(session.table.columns),
            "operations": [summary.to_dict() for summary in operations],
            "run_summary": build_run_summary(
                command="clean",
                input_path=input_path,
                output_path=output_path,
                metrics={
                    "rows_before": rows_before,
                    "rows_after": len(session.table),
                    "operations_applied": sum(1 for summary in operations if summary.applied),
                },
                warnings=loaded.warnings,
            ),
        }
        payload = normalize_report_for_cli(payload)
        write_json(summary_path, payload)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_clean_text(payload).rstrip(), quiet=args.quiet)
            emit_human(f"Clean output: {output_path}", quiet=args.quiet)
            emit_human(f"Clean summary: {summary_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_validate(args: argparse.Namespace) -> int:
    try:
        input_path = require_input(args)
        if not args.unique_id and not args.email:
            raise CliError("validate needs --unique-id COLUMN and/or --email COLUMN", EXIT_COMMAND_ERROR)
        loaded = load_input(args, input_path)
        session = EditorSession()
        session.load(loaded.table)
        ensure_column(session.table, args.unique_id, "--unique-id")
        ensure_column(session.table, args.email, "--email")

        config = ValidationConfig(
            check_unique_id=bool(args.unique_id),
            id_column=args.unique_id or "",
            check_email=bool(args.email),
            email_column=args.email or "",
        )
        issues = session.validate(config)
        payload = {
            "contract": build_contract("sheet_profiler.validation"),
            "tool": "sheet-profiler",
            "command": "validate",
            "version": TOOL_VERSION,
            "file": str(input_path),
            "valid": not issues,
            "issue_count": len(issues),
            "issues": [issue.to_dict() for issue in issues],
        }

        if args.invalid_rows:
            invalid_path = Path(args.invalid_rows)
            offending = invalid_rows_table(session.table, issues)
            if invalid_path.suffix.lower() == ".xlsx":
                write_workbook(offending, invalid_path, issues)
            else:
                write_delimited(offending, invalid_path)
            emit_human(f"Invalid rows: {invalid_path}", quiet=args.quiet)
        if args.output or args.out_dir:
            out_dir = determine_output_dir(args, input_path)
            output_path = Path(args.output) if args.output else out_dir / "validation.json"
            write_json(output_path, payload)
            emit_human(f"Validation report: {output_path}", quiet=args.quiet)
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_validate_text(payload).rstrip(), quiet=args.quiet)
        return EXIT_SUCCESS if payload["valid"] else EXIT_VALIDATE_FAILED
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_view(args: argparse.Namespace) -> int:
    try:
        input_path = require_input(args)
        config = read_config(args)
        loaded = load_input(args, input_path)
        table = loaded.table
        ensure_column(table, args.sort, "--sort")

        sort = SortSpec(args.sort, "desc" if args.desc else "asc") if args.sort else None
        query = ViewQuery(
            search=args.search or "",
            sort=sort,
            page=args.page,
            page_size=args.page_size or config.page_size,
        )
        session = EditorSession(config.history_limit, thresholds=config.thresholds)
        session.load(table)
        page = session.view(query)

        if args.json:
            maybe_emit_json_stdout(
                {
                    "page": page.page,
                    "total_pages": page.total_pages,
                    "total_rows": page.total_rows,
                    "page_size": page.page_size,
                    "columns": list(table.columns),
                    "rows": [row.to_dict() for row in page.rows],
                },
                True,
            )
        else:
            emit_human(
                f"Page {page.page} of {max(page.total_pages, 1)} ({page.total_rows} matching rows)",
                quiet=args.quiet,
            )
            sys.stdout.write(to_delimited(table.with_rows(page.rows)))
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    write_json(config_path, starter_config())
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Input file path")
    parser.add_argument("--sheet", dest="sheet_name", help="Workbook sheet name")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="More human logs")


def build_parser() -> argparse.ArgumentParser:
    parser = SheetProfilerArgumentParser(prog="sheet-profiler", description="Profile, clean and validate tabular files.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    profile = subparsers.add_parser("profile", help="Infer column types and chart data.")
    add_common_flags(profile)
    profile.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    profile.add_argument("--output", help="Explicit profile output path")
    profile.add_argument("--config", help="JSON config path")
    profile.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    clean = subparsers.add_parser("clean", help="Apply cleanup operations and write the result.")
    add_common_flags(clean)
    clean.add_argument("--trim", action="store_true", help="Trim whitespace in every text field")
    clean.add_argument("--remove-empty", action="store_true", help="Drop rows where every field is empty")
    clean.add_argument("--dedupe", nargs="?", const="", default=None, metavar="COLUMN", help="Remove duplicates by whole row, or by COLUMN")
    clean.add_argument("--keep", choices=list(STRATEGIES), default="first", help="Which duplicate to keep")
    clean.add_argument("--fix-dates", action="store_true", help="Normalize date columns")
    clean.add_argument("--date-format", choices=DATE_FORMAT_CHOICES, help="Target date layout (pattern or name, e.g. iso)")
    clean.add_argument("--date-column", dest="date_columns", action="append", metavar="COLUMN", help="Date column to normalize (repeatable; default: detected)")
    clean.add_argument("--replace", nargs=2, metavar=("FIND", "REPLACE"), help="Replace whole-field matches")
    clean.add_argument("--replace-column", help="Limit --replace to one column")
    clean.add_argument("--split", metavar="COLUMN", help="Split COLUMN at the first delimiter")
    clean.add_argument("--delimiter", help="Delimiter for --split")
    clean.add_argument("--into", nargs=2, metavar=("FIRST", "SECOND"), help="Names for the split columns")
    clean.add_argument("--format", choices=["csv", "xlsx"], default="csv", help="Output format")
    clean.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    clean.add_argument("--output", help="Explicit output path")
    clean.add_argument("--config", help="JSON config path")
    clean.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    validate = subparsers.add_parser("validate", help="Check unique IDs and email addresses.")
    add_common_flags(validate)
    validate.add_argument("--unique-id", metavar="COLUMN", help="Column whose values must be unique")
    validate.add_argument("--email", metavar="COLUMN", help="Column whose values must look like email addresses")
    validate.add_argument("--invalid-rows", help="Write offending rows to this .csv or .xlsx path")
    validate.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    validate.add_argument("--output", help="Explicit validation output path")
    validate.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    view = subparsers.add_parser("view", help="Search, sort and page through rows.")
    add_common_flags(view)
    view.add_argument("--search", help="Case-insensitive substring filter")
    view.add_argument("--sort", metavar="COLUMN", help="Sort column")
    view.add_argument("--desc", action="store_true", help="Sort descending")
    view.add_argument("--page", type=int, default=1, help="1-based page number")
    view.add_argument("--page-size", type=int, help="Rows per page")
    view.add_argument("--config", help="JSON config path")
    view.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default=DEFAULT_CONFIG_NAME, help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "profile":
            return run_profile(args)
        if args.command == "clean":
            return run_clean(args)
        if args.command == "validate":
            return run_validate(args)
        if args.command == "view":
            return run_view(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
