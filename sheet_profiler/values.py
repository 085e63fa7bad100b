"""
Scalar cell values and their coercion rules.

Every field in a Row is one of three kinds:

    NUMBER — an int or float (never bool, never NaN)
    TEXT   — any non-empty str, including whitespace-only text
    EMPTY  — None, "" or a missing key (NaN/NaT from pandas collapse here too)

Each consuming operation coerces through the helpers below instead of relying
on implicit str()/float() conversions.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

import pandas as pd


class ValueKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    EMPTY = "empty"


DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
RADIX_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
INFINITY_RE = re.compile(r"^[+-]?Infinity$")


def normalize_scalar(value: Any) -> Any:
    """Collapse pandas/NumPy scalars into plain str, int, float or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (str, int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        return normalize_scalar(value.item())
    return str(value)


def value_kind(value: Any) -> ValueKind:
    normalized = normalize_scalar(value)
    if normalized is None or normalized == "":
        return ValueKind.EMPTY
    if isinstance(normalized, (int, float)):
        return ValueKind.NUMBER
    return ValueKind.TEXT


def is_empty(value: Any) -> bool:
    return value_kind(value) is ValueKind.EMPTY


def format_number(number: int | float) -> str:
    if isinstance(number, float):
        if math.isinf(number):
            return "Infinity" if number > 0 else "-Infinity"
        if number.is_integer() and abs(number) < 1e21:
            return str(int(number))
    return str(number)


def stringify(value: Any) -> str:
    normalized = normalize_scalar(value)
    if normalized is None:
        return ""
    if isinstance(normalized, (int, float)):
        return format_number(normalized)
    return normalized


def maybe_parse_number(value: Any) -> float | None:
    """Return the numeric reading of a value, or None if it is not a number literal."""
    normalized = normalize_scalar(value)
    if normalized is None:
        return None
    if isinstance(normalized, (int, float)):
        return float(normalized)

    text = normalized.strip()
    if not text:
        return None
    if DECIMAL_RE.fullmatch(text):
        return float(text)
    if RADIX_RE.fullmatch(text):
        return float(int(text, 0))
    if INFINITY_RE.fullmatch(text):
        return -math.inf if text.startswith("-") else math.inf
    return None


def is_numeric(value: Any) -> bool:
    return maybe_parse_number(value) is not None


def comparison_key(value: Any) -> tuple[int, Any]:
    """Sort key for raw values: numbers before text; callers place EMPTY themselves."""
    normalized = normalize_scalar(value)
    if isinstance(normalized, (int, float)):
        return (0, normalized)
    return (1, "" if normalized is None else normalized)
