"""
Thresholds loader: JSON file -> frozen Thresholds dataclass, validated against JSON Schema.

Default values:      docs/config/thresholds.default.json
Schema:              docs/config/thresholds.schema.json

Profile overrides: place a partial JSON file named ``thresholds.{PROFILE}.json``
next to the default file (e.g. ``docs/config/thresholds.CONSERVATIVE.json``).
Only the keys you want to override need to be present; they are deep-merged
on top of the base file before schema validation. Ad hoc overrides (CLI
flags) are merged last.

Usage:
    from config.thresholds import load_thresholds
    th = load_thresholds()                                  # loads default
    th = load_thresholds(profile="conservative")            # merges thresholds.CONSERVATIVE.json
    th = load_thresholds(overrides={"classifier": {"stale_days": 14}})
    th.large_position_usd  # -> 50.0
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

logger = logging.getLogger("ledger.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml.

    When installed as a package pyproject.toml won't exist; fall back to CWD.
    """
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_THRESHOLDS_PATH = _PROJECT_ROOT / "docs" / "config" / "thresholds.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "thresholds.schema.json"


@dataclass(frozen=True)
class Thresholds:
    """Classifier and reconciler policy. Passed explicitly into every call."""

    position_epsilon: float = 0.001
    large_position_usd: float = 50.0
    stale_days: int = 30
    near_stale_window_days: int = 5
    dust_value_usd: float = 0.10
    dust_share_ceiling: float = 0.1
    large_loss_usd: float = -10.0
    max_skip_rate_pct: float = 50.0


# ---------------------------------------------------------------------------
# Deep merge for profile / CLI overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*."""
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class ThresholdsError(Exception):
    """Raised when thresholds loading or validation fails."""


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ThresholdsError(f"{label} {path.name} is not valid JSON: {exc}") from exc


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    if not schema_path.exists():
        raise ThresholdsError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ThresholdsError(f"Thresholds validation failed: {exc.message}") from exc


def _build_thresholds(data: dict[str, Any]) -> Thresholds:
    """Convert a validated raw dict into Thresholds; absent keys keep defaults."""
    defaults = Thresholds()
    cls_raw = data.get("classifier", {})
    rec_raw = data.get("reconciler", {})
    return Thresholds(
        position_epsilon=float(cls_raw.get("position_epsilon", defaults.position_epsilon)),
        large_position_usd=float(cls_raw.get("large_position_usd", defaults.large_position_usd)),
        stale_days=int(cls_raw.get("stale_days", defaults.stale_days)),
        near_stale_window_days=int(cls_raw.get("near_stale_window_days", defaults.near_stale_window_days)),
        dust_value_usd=float(cls_raw.get("dust_value_usd", defaults.dust_value_usd)),
        dust_share_ceiling=float(cls_raw.get("dust_share_ceiling", defaults.dust_share_ceiling)),
        large_loss_usd=float(rec_raw.get("large_loss_usd", defaults.large_loss_usd)),
        max_skip_rate_pct=float(rec_raw.get("max_skip_rate_pct", defaults.max_skip_rate_pct)),
    )


def load_thresholds(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    profile: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Thresholds:
    """Load and validate thresholds.

    Parameters
    ----------
    config_path:
        Path to a thresholds JSON file. Defaults to ``docs/config/thresholds.default.json``.
    schema_path:
        Path to the JSON Schema file. Defaults to ``docs/config/thresholds.schema.json``.
    profile:
        Optional profile name. When provided, ``thresholds.{PROFILE}.json`` in
        the same directory as the base file is deep-merged on top if it exists.
    overrides:
        Nested dict merged last (e.g. from CLI flags).

    Raises
    ------
    ThresholdsError
        If a file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_THRESHOLDS_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise ThresholdsError(f"Thresholds file not found: {cfg_path}")

    data = _read_json(cfg_path, "Thresholds file")

    if profile:
        profile_path = cfg_path.parent / f"thresholds.{profile.upper()}.json"
        if profile_path.exists():
            data = _deep_merge(data, _read_json(profile_path, "Profile file"))
            logger.info("Loaded thresholds profile: %s", profile_path.name)
        else:
            logger.debug("No thresholds profile found at %s; using defaults", profile_path)

    if overrides:
        data = _deep_merge(data, overrides)

    _validate_schema(data, sch_path)

    return _build_thresholds(data)
