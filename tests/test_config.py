"""Tests for config loader: YAML parsing, env var resolution, error cases."""

from pathlib import Path

import pytest

from config import AppConfig, load_config, resolve_config
from config.loader import WEBHOOK_ENV_VAR


def test_load_config_basic(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
fill_log:
  path: logs/matches.csv
  exclude_failed: true
thresholds:
  path: custom/thresholds.json
  profile: conservative
journal:
  path: out/journal.jsonl
  enabled: false
  echo_stdout: true
alerting:
  structured_logs: true
  webhook_url: https://hooks.example.com/abc
account_label: main
"""
    )
    cfg = load_config(path)
    assert cfg.fill_log.path == "logs/matches.csv"
    assert cfg.fill_log.exclude_failed is True
    assert cfg.thresholds.path == "custom/thresholds.json"
    assert cfg.thresholds.profile == "conservative"
    assert cfg.journal.path == "out/journal.jsonl"
    assert cfg.journal.enabled is False
    assert cfg.journal.echo_stdout is True
    assert cfg.alerting.structured_logs is True
    assert cfg.alerting.webhook_url == "https://hooks.example.com/abc"
    assert cfg.account_label == "main"


def test_empty_file_gives_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(WEBHOOK_ENV_VAR, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path) == AppConfig()


def test_partial_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("fill_log:\n  path: other.csv\njournal:\n")
    cfg = load_config(path)
    assert cfg.fill_log.path == "other.csv"
    assert cfg.fill_log.exclude_failed is False
    assert cfg.journal.path == "data/ledger_journal.jsonl"


def test_webhook_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WEBHOOK_ENV_VAR, "https://env.example.com/hook")
    path = tmp_path / "config.yaml"
    path.write_text("alerting:\n  structured_logs: true\n")
    assert load_config(path).alerting.webhook_url == "https://env.example.com/hook"


def test_file_webhook_wins_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WEBHOOK_ENV_VAR, "https://env.example.com/hook")
    path = tmp_path / "config.yaml"
    path.write_text("alerting:\n  webhook_url: https://file.example.com/hook\n")
    assert load_config(path).alerting.webhook_url == "https://file.example.com/hook"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)


def test_resolve_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(WEBHOOK_ENV_VAR, raising=False)
    assert resolve_config(None) == AppConfig()


def test_resolve_picks_up_local_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("fill_log:\n  path: local.csv\n")
    assert resolve_config(None).fill_log.path == "local.csv"


def test_resolve_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        resolve_config(tmp_path / "missing.yaml")
