"""
Read-only data access for the ledger dashboard.
Reads the run journal (data/ledger_journal.jsonl) and rebuilds positions from the fill log
using the same config.yaml settings as the CLI.
"""

import json
import os
from pathlib import Path
from typing import Any

from data import FillLog, FillLogError
from ledger_core import build_report, fold


def _root_dir() -> Path:
    return Path(__file__).resolve().parent.parent


def _data_dir() -> Path:
    """Base data dir: repo root / data, or LEDGER_DASHBOARD_DATA_DIR if set."""
    if env := os.environ.get("LEDGER_DASHBOARD_DATA_DIR"):
        return Path(env)
    return _root_dir() / "data"


def fill_log_path() -> Path:
    """Fill log CSV: LEDGER_FILL_LOG if set, else matches_optimized.csv at repo root."""
    if env := os.environ.get("LEDGER_FILL_LOG"):
        return Path(env)
    return _root_dir() / "matches_optimized.csv"


def get_journal_events(
    event_type: str | None = None,
    limit: int = 50,
    data_dir: Path | None = None,
) -> list[dict[str, Any]]:
    """
    Read last `limit` events from ledger_journal.jsonl.
    If event_type is set, filter to that event (reconciliation, warning).
    Returns list of parsed JSON objects (newest first).
    """
    path = (data_dir or _data_dir()) / "ledger_journal.jsonl"
    if not path.exists():
        return []
    lines: list[str] = []
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line:
                    lines.append(line)
    except OSError:
        return []
    chosen = lines[-limit:] if limit else lines
    chosen.reverse()
    out = []
    for line in chosen:
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            continue
        if event_type is None or obj.get("event") == event_type:
            out.append(obj)
    return out


def get_latest_run(data_dir: Path | None = None) -> dict[str, Any] | None:
    """Most recent reconciliation event, or None when nothing has been journaled."""
    runs = get_journal_events("reconciliation", limit=0, data_dir=data_dir)
    return runs[0] if runs else None


def config_path() -> Path | None:
    """Config file: LEDGER_CONFIG if set, else config.yaml at repo root when present."""
    if env := os.environ.get("LEDGER_CONFIG"):
        return Path(env)
    default = _root_dir() / "config.yaml"
    return default if default.exists() else None


def _settings(path: Path | None = None):
    """AppConfig the dashboard shares with the CLI. Defaults if it cannot be read."""
    from config import AppConfig, resolve_config

    path = path or config_path()
    if path is None:
        return AppConfig()
    try:
        return resolve_config(path)
    except (FileNotFoundError, ValueError):
        return AppConfig()


def _from_root(raw: str) -> Path:
    p = Path(raw)
    return p if p.is_absolute() else _root_dir() / p


def get_open_positions(path: Path | None = None, config: Path | None = None) -> list[dict[str, Any]]:
    """Open position rows (as dicts) rebuilt from the fill log. Empty if the log is missing.

    exclude_failed and the thresholds file/profile come from the same config
    file the CLI reads, so both show the same positions.
    """
    cfg = _settings(config)
    fill_log = FillLog(path or fill_log_path())
    if not fill_log.exists():
        return []
    try:
        parsed = fill_log.load()
    except FillLogError:
        return []
    snapshot = fold(parsed.records, defects=parsed.defects, exclude_failed=cfg.fill_log.exclude_failed)
    report = build_report(snapshot, _thresholds(cfg))
    return [row.to_dict() for row in report.open_rows()]


def _thresholds(cfg):
    from config import Thresholds, ThresholdsError, load_thresholds

    try:
        return load_thresholds(
            _from_root(cfg.thresholds.path) if cfg.thresholds.path else None,
            profile=cfg.thresholds.profile or None,
        )
    except ThresholdsError:
        return Thresholds()
