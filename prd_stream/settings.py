"""Settings module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path


@dataclass(frozen=True)
class EngineSettings:
    sample_interval_s: float = 0.1
    min_complete_sections: int = 2
    placeholder_ratio: float = 0.5
    data_dir: Path = Path(".data/snapshots")
    store_backend: str = "memory"
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


def _int_env(name: str, default: int) -> int:
    raw = str(os.environ.get(name, "")).strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except Exception:
        return int(default)


def get_engine_settings() -> EngineSettings:
    sample_interval_s = max(0.0, _float_env("PRD_STREAM_SAMPLE_INTERVAL_S", 0.1))
    min_sections = max(1, _int_env("PRD_STREAM_MIN_SECTIONS", 2))
    ratio = _float_env("PRD_STREAM_PLACEHOLDER_RATIO", 0.5)
    if ratio <= 0 or ratio > 1:
        ratio = 0.5
    data_dir = Path(os.environ.get("PRD_STREAM_DATA_DIR", ".data/snapshots").strip() or ".data/snapshots")
    backend = os.environ.get("PRD_STREAM_STORE", "memory").strip().lower()
    if backend not in {"memory", "file"}:
        backend = "memory"
    log_level = os.environ.get("PRD_STREAM_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    return EngineSettings(
        sample_interval_s=sample_interval_s,
        min_complete_sections=min_sections,
        placeholder_ratio=ratio,
        data_dir=data_dir,
        store_backend=backend,
        log_level=log_level,
    )
