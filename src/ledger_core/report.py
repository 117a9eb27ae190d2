"""
Report rows: LedgerSnapshot + classifications + reconciliation -> LedgerReport.

One PositionRow per instrument, ranked by current value. Consumers (CLI,
journal, dashboard) render from this; nothing here formats text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ledger_core.contracts import (
    ParseDefect,
    PositionClassification,
    PositionLabel,
    PositionState,
    PositionView,
    ReconciliationResult,
)


@dataclass(frozen=True)
class PositionRow:
    """Per-instrument output row."""

    instrument_id: str
    net_shares: float
    average_price: float
    cost_basis: float
    last_price: float
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_pct: float
    buy_count: int
    sell_count: int
    labels: frozenset[PositionLabel] = frozenset()
    age_days: int | None = None
    last_fill_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return PositionLabel.OPEN in self.labels

    def has(self, label: PositionLabel) -> bool:
        return label in self.labels

    def to_dict(self) -> dict[str, Any]:
        return {
            "instrument_id": self.instrument_id,
            "net_shares": self.net_shares,
            "average_price": self.average_price,
            "cost_basis": self.cost_basis,
            "last_price": self.last_price,
            "current_value": self.current_value,
            "unrealized_pnl": self.unrealized_pnl,
            "unrealized_pnl_pct": self.unrealized_pnl_pct,
            "buy_count": self.buy_count,
            "sell_count": self.sell_count,
            "labels": sorted(label.value for label in self.labels),
            "age_days": self.age_days,
            "last_fill_at": self.last_fill_at.isoformat() if self.last_fill_at else None,
        }


def build_row(state: PositionView | PositionState, classification: PositionClassification) -> PositionRow:
    return PositionRow(
        instrument_id=state.instrument_id,
        net_shares=state.net_shares,
        average_price=classification.average_price,
        cost_basis=state.cost_basis,
        last_price=state.last_price,
        current_value=classification.current_value,
        unrealized_pnl=classification.unrealized_pnl,
        unrealized_pnl_pct=classification.unrealized_pnl_pct,
        buy_count=state.buy_count,
        sell_count=state.sell_count,
        labels=classification.labels,
        age_days=classification.age_days,
        last_fill_at=state.last_fill_at,
    )


@dataclass(frozen=True)
class LedgerReport:
    """Everything one run produces, ready for rendering."""

    generated_at: datetime
    rows: list[PositionRow]
    reconciliation: ReconciliationResult
    defects: list[ParseDefect] = field(default_factory=list)

    def _with(self, label: PositionLabel) -> list[PositionRow]:
        return [r for r in self.rows if label in r.labels]

    def open_rows(self) -> list[PositionRow]:
        return self._with(PositionLabel.OPEN)

    def large_rows(self) -> list[PositionRow]:
        return self._with(PositionLabel.LARGE)

    def stale_rows(self) -> list[PositionRow]:
        """Stale positions, oldest first."""
        rows = self._with(PositionLabel.STALE)
        return sorted(rows, key=lambda r: (-(r.age_days or 0), r.instrument_id))

    def near_stale_rows(self) -> list[PositionRow]:
        return self._with(PositionLabel.NEAR_STALE)

    def dust_rows(self) -> list[PositionRow]:
        return self._with(PositionLabel.DUST)

    def age_unknown_rows(self) -> list[PositionRow]:
        return self._with(PositionLabel.AGE_UNKNOWN)

    def aged_open_rows(self) -> list[PositionRow]:
        """Open positions with a known age, oldest first."""
        rows = [r for r in self.open_rows() if r.age_days is not None]
        return sorted(rows, key=lambda r: (-(r.age_days or 0), r.instrument_id))

    def to_dict(self) -> dict[str, Any]:
        rec = self.reconciliation
        counts = rec.counts
        return {
            "generated_at": self.generated_at.isoformat(),
            "positions": [r.to_dict() for r in self.rows],
            "reconciliation": {
                "total_buy_cost": rec.total_buy_cost,
                "total_sell_proceeds": rec.total_sell_proceeds,
                "net_cash_flow": rec.net_cash_flow,
                "cost_basis_open": rec.cost_basis_open,
                "current_value_open": rec.current_value_open,
                "realized_pnl": rec.realized_pnl,
                "unrealized_pnl": rec.unrealized_pnl,
                "total_pnl": rec.total_pnl,
                "open_positions": rec.open_positions,
            },
            "counts": {
                "total": counts.total,
                "executed": counts.executed,
                "skipped": counts.skipped,
                "failed": counts.failed,
                "unknown_status": counts.unknown_status,
                "buys": counts.buys,
                "sells": counts.sells,
                "unknown_direction": counts.unknown_direction,
                "numeric_fallbacks": counts.numeric_fallbacks,
                "out_of_range_prices": counts.out_of_range_prices,
                "parse_defects": counts.parse_defects,
            },
            "warnings": [
                {"code": w.code.value, "message": w.message, "count": w.count, "value": w.value}
                for w in rec.warnings
            ],
            "defects": [
                {"line_number": d.line_number, "reason": d.reason} for d in self.defects
            ],
        }
