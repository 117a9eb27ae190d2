"""Tests for the run journal. Append-only JSON lines."""

import json
from pathlib import Path

import pytest

from journal.writer import ReportJournal
from ledger_core.pipeline import run_pipeline


@pytest.fixture
def report(fill_log_text, now):
    _, report = run_pipeline(fill_log_text.splitlines(), now=now)
    return report


def _read(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_record_run(tmp_path: Path, report) -> None:
    path = tmp_path / "journal.jsonl"
    ReportJournal(path).record_run(report, source="fills.csv")
    events = _read(path)
    assert events[0]["event"] == "reconciliation"
    assert events[0]["source"] == "fills.csv"
    assert events[0]["trades"] == 6
    assert events[0]["open_positions"] == 3
    assert events[0]["warning_codes"] == ["FAILED_TRADES"]
    assert events[0]["generated_at"].startswith("2026-02-01")
    assert [e["event"] for e in events[1:]] == ["warning"]
    assert events[1]["code"] == "FAILED_TRADES"
    assert events[1]["count"] == 1


def test_append_only(tmp_path: Path, report) -> None:
    path = tmp_path / "journal.jsonl"
    journal = ReportJournal(path)
    journal.reconciliation(report, source="a")
    journal.reconciliation(report, source="b")
    assert [e["source"] for e in _read(path)] == ["a", "b"]


def test_creates_parent_dirs(tmp_path: Path, report) -> None:
    path = tmp_path / "nested" / "dir" / "journal.jsonl"
    ReportJournal(path).reconciliation(report, source="x", run_id=7)
    assert _read(path)[0]["run_id"] == 7


def test_echo_stdout(tmp_path: Path, report, capsys: pytest.CaptureFixture) -> None:
    ReportJournal(tmp_path / "j.jsonl", echo_stdout=True).reconciliation(report, source="x")
    out = capsys.readouterr().out
    assert json.loads(out)["event"] == "reconciliation"


def test_extra_fields_on_every_event(tmp_path: Path, report) -> None:
    path = tmp_path / "journal.jsonl"
    ReportJournal(path).record_run(report, source="x", account="main")
    assert all(e["account"] == "main" for e in _read(path))
