"""
Config loader: YAML file -> frozen dataclass tree.

The alert webhook URL may be supplied via LEDGER_ALERT_WEBHOOK_URL instead of
the config file. Thresholds live in their own JSON file (see config.thresholds).
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

WEBHOOK_ENV_VAR = "LEDGER_ALERT_WEBHOOK_URL"


@dataclass(frozen=True)
class FillLogConfig:
    path: str = "matches_optimized.csv"
    exclude_failed: bool = False


@dataclass(frozen=True)
class ThresholdsConfig:
    path: str = ""      # empty -> docs/config/thresholds.default.json
    profile: str = ""


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/ledger_journal.jsonl"
    enabled: bool = True
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = False
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    fill_log: FillLogConfig = FillLogConfig()
    thresholds: ThresholdsConfig = ThresholdsConfig()
    journal: JournalConfig = JournalConfig()
    alerting: AlertingConfig = AlertingConfig()
    account_label: str = ""


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    The webhook URL falls back to the LEDGER_ALERT_WEBHOOK_URL environment
    variable when the file leaves it empty.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    log_raw = raw.get("fill_log") or {}
    log_cfg = FillLogConfig(
        path=str(log_raw.get("path", "matches_optimized.csv")),
        exclude_failed=bool(log_raw.get("exclude_failed", False)),
    )

    th_raw = raw.get("thresholds") or {}
    th_cfg = ThresholdsConfig(
        path=str(th_raw.get("path", "") or ""),
        profile=str(th_raw.get("profile", "") or ""),
    )

    j_raw = raw.get("journal") or {}
    j_cfg = JournalConfig(
        path=str(j_raw.get("path", "data/ledger_journal.jsonl")),
        enabled=bool(j_raw.get("enabled", True)),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", False)),
        webhook_url=str(a_raw.get("webhook_url", "") or os.environ.get(WEBHOOK_ENV_VAR, "")),
    )

    return AppConfig(
        fill_log=log_cfg,
        thresholds=th_cfg,
        journal=j_cfg,
        alerting=a_cfg,
        account_label=str(raw.get("account_label", "") or ""),
    )


def resolve_config(path: str | Path | None) -> AppConfig:
    """Load *path* if it exists, otherwise return defaults.

    The CLI works without a config file; an explicitly named file that does
    not exist is still an error.
    """
    if path is None:
        default = Path("config.yaml")
        return load_config(default) if default.exists() else AppConfig()
    return load_config(path)
