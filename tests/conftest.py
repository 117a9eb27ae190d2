"""Pytest fixtures: fill records and CSV fill logs for deterministic tests."""

from datetime import datetime, timezone
from typing import Callable

import pytest

from config.thresholds import Thresholds
from ledger_core.contracts import Direction, FillRecord, OrderStatus

HEADER = "timestamp,clob_asset_id,direction,shares,price_per_share,usd_value,order_status"


def _ts(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc)


def _fill(
    instrument_id: str = "tok-a",
    direction: Direction = Direction.BUY,
    shares: float = 10.0,
    price: float = 0.5,
    usd_value: float | None = None,
    status: OrderStatus = OrderStatus.EXECUTED,
    timestamp: datetime | None = None,
) -> FillRecord:
    return FillRecord(
        instrument_id=instrument_id,
        direction=direction,
        order_status=status,
        shares=shares,
        price_per_share=price,
        usd_value=shares * price if usd_value is None else usd_value,
        timestamp=timestamp,
    )


@pytest.fixture
def now() -> datetime:
    return _ts(2026, 2, 1)


@pytest.fixture
def ts() -> Callable[..., datetime]:
    return _ts


@pytest.fixture
def make_fill() -> Callable[..., FillRecord]:
    return _fill


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds()


@pytest.fixture
def scenario_a_fills() -> list[FillRecord]:
    """Buy 10 @0.50 then buy 10 @0.60 on one instrument."""
    return [
        _fill(shares=10, price=0.50, usd_value=5.00, timestamp=_ts(2026, 1, 20)),
        _fill(shares=10, price=0.60, usd_value=6.00, timestamp=_ts(2026, 1, 21)),
    ]


@pytest.fixture
def fill_log_text() -> str:
    """A small log: two instruments, one skip, one failure, one sell."""
    return "\n".join([
        HEADER,
        "2026-01-10 09:00:00.125,tok-a,BUY,10,0.50,5.00,200 OK",
        "2026-01-11 09:00:00,tok-a,BUY,10,0.60,6.00,200 OK",
        '2026-01-12 09:00:00,tok-b,BUY,100,0.40,40.00,"SKIPPED: price moved, spread too wide"',
        "2026-01-13 09:00:00,tok-a,SELL,5,0.70,3.50,200 OK",
        "2026-01-14 09:00:00,tok-c,BUY,200,0.30,60.00,EXEC_FAIL: not enough balance",
        "2026-01-15 09:00:00,tok-d,BUY,4,0.25,,200 OK",
    ]) + "\n"


@pytest.fixture
def fill_log_file(tmp_path, fill_log_text: str):
    path = tmp_path / "matches_optimized.csv"
    path.write_text(fill_log_text)
    return path
