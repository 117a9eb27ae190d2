"""Tests for reading the CSV fill log from disk."""

import logging
from pathlib import Path

import pytest

from data import FillLog, FillLogError


def test_load(fill_log_file: Path) -> None:
    result = FillLog(fill_log_file).load()
    assert len(result.records) == 6
    assert result.records[0].instrument_id == "tok-a"


def test_summary(fill_log_file: Path) -> None:
    summary = FillLog(fill_log_file).summary()
    assert summary.exists
    assert summary.records == 6
    assert summary.defects == 0
    assert summary.size_bytes == fill_log_file.stat().st_size


def test_missing_file(tmp_path: Path) -> None:
    log = FillLog(tmp_path / "nope.csv")
    assert not log.exists()
    summary = log.summary()
    assert not summary.exists
    assert summary.records == 0


def test_unreadable_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FillLogError):
        FillLog(tmp_path).load()


def test_defects_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "log.csv"
    path.write_text(
        "timestamp,clob_asset_id,direction,shares,price_per_share,usd_value,order_status\n"
        "2026-01-10 09:00:00,tok-a,BUY,10,0.5,5.0,200 OK,extra\n"
    )
    with caplog.at_level(logging.WARNING, logger="ledger.data"):
        result = FillLog(path).load()
    assert len(result.defects) == 1
    assert "unreadable record" in caplog.text


def test_invalid_utf8_is_replaced(tmp_path: Path) -> None:
    path = tmp_path / "log.csv"
    path.write_bytes(
        b"timestamp,clob_asset_id,direction,shares,price_per_share,usd_value,order_status\n"
        b"2026-01-10 09:00:00,tok-\xff,BUY,10,0.5,5.0,200 OK\n"
    )
    result = FillLog(path).load()
    assert result.records[0].instrument_id == "tok-\ufffd"
