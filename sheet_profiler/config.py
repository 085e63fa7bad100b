"""Tunable defaults for profiling and cleanup, optionally read from a JSON file."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from sheet_profiler.column_detector import DEFAULT_THRESHOLDS, TypeThresholds
from sheet_profiler.dates import DateLayout, resolve_target_layout
from sheet_profiler.history import HISTORY_LIMIT
from sheet_profiler.view import PAGE_SIZE

SUPPORTED_CONFIG_SUFFIXES = {".json"}


@dataclass(frozen=True)
class ProfilerConfig:
    mixed_numeric_ratio: float = DEFAULT_THRESHOLDS.mixed_numeric_ratio
    mixed_date_ratio: float = DEFAULT_THRESHOLDS.mixed_date_ratio
    page_size: int = PAGE_SIZE
    history_limit: int = HISTORY_LIMIT
    date_layout: str = DateLayout.ISO.value

    def __post_init__(self) -> None:
        for name in ("mixed_numeric_ratio", "mixed_date_ratio"):
            ratio = getattr(self, name)
            if isinstance(ratio, bool) or not isinstance(ratio, (int, float)) or not 0 <= ratio <= 1:
                raise ValueError(f"{name} must be a number between 0 and 1, got {ratio!r}")
        for name in ("page_size", "history_limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        object.__setattr__(self, "date_layout", resolve_target_layout(self.date_layout).value)

    @property
    def thresholds(self) -> TypeThresholds:
        return TypeThresholds(self.mixed_numeric_ratio, self.mixed_date_ratio)

    @property
    def layout(self) -> DateLayout:
        return DateLayout(self.date_layout)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_from_dict(payload: dict[str, Any]) -> ProfilerConfig:
    known = {item.name for item in fields(ProfilerConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    return ProfilerConfig(**payload)


def load_config(path: Path | None) -> ProfilerConfig:
    if path is None:
        return ProfilerConfig()
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    if path.suffix.lower() not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError("Config must be a .json file")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not read config: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a JSON object.")
    return config_from_dict(payload)


def starter_config() -> dict[str, Any]:
    return ProfilerConfig().to_dict()
