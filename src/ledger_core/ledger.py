"""
Position Ledger: ordered FillRecords -> LedgerSnapshot.

Strict left-to-right fold. Order matters: last_price and last_fill_at
reflect the most recent qualifying fill only.

Per record:
    1. Outcome counters are updated. SKIPPED records stop here.
    2. The instrument's PositionState is located or lazily created.
    3. last_price = price_per_share and last_fill_at = timestamp
       (unconditionally; an unparsable timestamp resets age to unknown).
    4. BUY:  net_shares += shares, cost_basis += usd_value
       SELL: net_shares -= shares, cost_basis -= usd_value
       UNKNOWN direction: no quantity or cost change.

Cost basis is a single running net-cost figure, not FIFO lot tracking.
The fold never raises; malformed input degrades into zeroed contributions
that remain visible through TradeCounts.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from ledger_core.contracts import (
    Direction,
    FillRecord,
    LedgerSnapshot,
    OrderStatus,
    ParseDefect,
    PositionState,
    TradeCounts,
)


class PositionLedger:
    """Single-writer aggregator for one fold pass.

    Parameters
    ----------
    exclude_failed:
        When True, FAILED fills are counted but kept out of position math,
        like SKIPPED ones.
    """

    def __init__(self, *, exclude_failed: bool = False) -> None:
        self._exclude_failed = exclude_failed
        self._positions: dict[str, PositionState] = {}
        self._counts = TradeCounts()
        self._defects: list[ParseDefect] = []

    @property
    def counts(self) -> TradeCounts:
        return self._counts

    def _count(self, record: FillRecord) -> None:
        c = self._counts
        status = record.order_status
        applies = self._applies(record)
        self._counts = replace(
            c,
            total=c.total + 1,
            executed=c.executed + (status is OrderStatus.EXECUTED),
            skipped=c.skipped + (status is OrderStatus.SKIPPED),
            failed=c.failed + (status is OrderStatus.FAILED),
            unknown_status=c.unknown_status + (status is OrderStatus.UNKNOWN),
            buys=c.buys + (record.direction is Direction.BUY),
            sells=c.sells + (record.direction is Direction.SELL),
            unknown_direction=c.unknown_direction + (record.direction is Direction.UNKNOWN),
            total_buy_cost=c.total_buy_cost
            + (record.usd_value if applies and record.direction is Direction.BUY else 0.0),
            total_sell_proceeds=c.total_sell_proceeds
            + (record.usd_value if applies and record.direction is Direction.SELL else 0.0),
            numeric_fallbacks=c.numeric_fallbacks + record.numeric_fallbacks,
            out_of_range_prices=c.out_of_range_prices + (not record.price_in_range),
        )

    def _applies(self, record: FillRecord) -> bool:
        """Whether the record contributes to position math."""
        if record.order_status is OrderStatus.SKIPPED:
            return False
        if self._exclude_failed and record.order_status is OrderStatus.FAILED:
            return False
        return True

    def apply(self, record: FillRecord) -> None:
        """Fold one record into the ledger."""
        self._count(record)
        if not self._applies(record):
            return

        state = self._positions.get(record.instrument_id)
        if state is None:
            state = PositionState(instrument_id=record.instrument_id)
            self._positions[record.instrument_id] = state

        state.last_price = record.price_per_share
        state.last_fill_at = record.timestamp

        if record.direction is Direction.BUY:
            state.apply_buy(record.shares, record.usd_value)
        elif record.direction is Direction.SELL:
            state.apply_sell(record.shares, record.usd_value)

    def record_defects(self, defects: Iterable[ParseDefect]) -> None:
        self._defects.extend(defects)
        self._counts = replace(self._counts, parse_defects=len(self._defects))

    def snapshot(self) -> LedgerSnapshot:
        """Immutable copy of the current state."""
        return LedgerSnapshot(
            positions=self._positions,
            counts=self._counts,
            defects=tuple(self._defects),
        )


def fold(
    records: Iterable[FillRecord],
    *,
    defects: Sequence[ParseDefect] = (),
    exclude_failed: bool = False,
) -> LedgerSnapshot:
    """Fold records, in the order given, into a LedgerSnapshot."""
    ledger = PositionLedger(exclude_failed=exclude_failed)
    for record in records:
        ledger.apply(record)
    if defects:
        ledger.record_defects(defects)
    return ledger.snapshot()
