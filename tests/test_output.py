"""Tests for terminal formatting helpers."""

import pytest

from cli.output import format_pnl, format_positions, format_recent, format_stale, format_time, summarize_status
from config.thresholds import Thresholds
from ledger_core.pipeline import run_pipeline


@pytest.mark.parametrize("raw,expected", [
    ("2026-01-16 23:06:31.824", "23:06:31"),
    ("2026-01-16 23:06:31", "23:06:31"),
    ("2026-01-16", "2026-01-16"),
    (None, "?"),
])
def test_format_time(raw, expected) -> None:
    assert format_time(raw) == expected


class TestSummarizeStatus:
    def test_short_status_unchanged(self) -> None:
        assert summarize_status("200 OK") == "200 OK"

    def test_long_ok(self) -> None:
        assert summarize_status("200 OK " + "x" * 80) == "200 OK"

    def test_long_exec_fail(self) -> None:
        out = summarize_status("EXEC_FAIL:" + "not enough balance / allowance " * 3)
        assert out.startswith("EXEC_FAIL:not enough balance")
        assert out.endswith("...")
        assert len(out) == len("EXEC_FAIL:") + 38 + 3

    def test_long_skipped(self) -> None:
        out = summarize_status("SKIPPED: " + "spread too wide " * 5)
        assert out.startswith("SKIPPED: spread")
        assert out.endswith("...")

    def test_other_long_status_truncated(self) -> None:
        assert summarize_status("y" * 60) == "y" * 45 + "..."

    def test_missing(self) -> None:
        assert summarize_status(None) == "?"


def test_format_recent_newest_first(fill_log_text, now) -> None:
    parsed, _ = run_pipeline(fill_log_text.splitlines(), now=now)
    lines = format_recent(parsed.records, limit=2).splitlines()
    assert lines[0] == "Showing last 2 trades:"
    assert "09:00:00" in lines[5]
    assert "0.25" in lines[5]
    assert "EXEC_FAIL" in lines[6]


def test_format_recent_empty() -> None:
    assert format_recent([]) == "No trades found in history."


def test_format_positions(fill_log_text, now) -> None:
    _, report = run_pipeline(fill_log_text.splitlines(), now=now)
    out = format_positions(report)
    assert "Found 3 open position(s)" in out
    assert "TOTAL" in out


def test_format_pnl_lists_warnings(fill_log_text, now) -> None:
    _, report = run_pipeline(fill_log_text.splitlines(), now=now)
    out = format_pnl(report.reconciliation)
    assert "Realized P&L" in out
    assert "[WARN] Failed trades detected: 1" in out


def test_format_stale_none(fill_log_text, now) -> None:
    _, report = run_pipeline(fill_log_text.splitlines(), now=now)
    out = format_stale(report, Thresholds())
    assert "No stale positions found (threshold: 30 days old)" in out
    assert "Oldest position  : 19 days old" in out
