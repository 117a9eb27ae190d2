"""
Data contracts for ledger-core: FillRecord, PositionState, LedgerSnapshot,
classification and reconciliation results.

ledger-core consumes FillRecords and produces snapshots, classifications and
reconciliation results. No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Direction(str, Enum):
    """Trade side derived from the free-text direction column."""

    BUY = "BUY"
    SELL = "SELL"
    UNKNOWN = "UNKNOWN"


class OrderStatus(str, Enum):
    """Outcome of a fill attempt, classified from the order_status column."""

    EXECUTED = "EXECUTED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


class PositionLabel(str, Enum):
    """Labels attached to a position by the classifier."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    LARGE = "LARGE"
    STALE = "STALE"
    NEAR_STALE = "NEAR_STALE"
    AGE_UNKNOWN = "AGE_UNKNOWN"
    DUST = "DUST"
    NEGATIVE_BASIS = "NEGATIVE_BASIS"
    ZERO_PRICE = "ZERO_PRICE"
    NEGATIVE_SHARES = "NEGATIVE_SHARES"
    PRICE_OUT_OF_RANGE = "PRICE_OUT_OF_RANGE"


class WarningCode(str, Enum):
    """Ledger-level data-quality conditions surfaced by the reconciler."""

    HIGH_SKIP_RATE = "HIGH_SKIP_RATE"
    FAILED_TRADES = "FAILED_TRADES"
    ZERO_PRICE_POSITIONS = "ZERO_PRICE_POSITIONS"
    LARGE_UNREALIZED_LOSS = "LARGE_UNREALIZED_LOSS"
    NEGATIVE_COST_BASIS = "NEGATIVE_COST_BASIS"
    DUST_POSITIONS = "DUST_POSITIONS"
    NEGATIVE_SHARES = "NEGATIVE_SHARES"
    PARSE_DEFECTS = "PARSE_DEFECTS"
    NUMERIC_FALLBACKS = "NUMERIC_FALLBACKS"
    PRICE_OUT_OF_RANGE = "PRICE_OUT_OF_RANGE"


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FillRecord:
    """One executed or attempted trade, as read from the fill log.

    Numeric fields that could not be parsed are 0.0; ``numeric_fallbacks``
    counts how many fields took that path. Prices outside [0, 1] are kept
    as-is and only flagged.
    """

    instrument_id: str
    direction: Direction
    order_status: OrderStatus
    shares: float = 0.0
    price_per_share: float = 0.0
    usd_value: float = 0.0
    timestamp: datetime | None = None
    line_number: int | None = None
    raw_direction: str | None = None
    raw_status: str | None = None
    raw_timestamp: str | None = None
    numeric_fallbacks: int = 0

    @property
    def price_in_range(self) -> bool:
        return 0.0 <= self.price_per_share <= 1.0

    @property
    def is_skipped(self) -> bool:
        return self.order_status is OrderStatus.SKIPPED


@dataclass(frozen=True)
class ParseDefect:
    """A raw record that could not be interpreted at all."""

    line_number: int | None
    reason: str
    raw: str = ""


# ---------------------------------------------------------------------------
# Ledger state
# ---------------------------------------------------------------------------


@dataclass
class PositionState:
    """Running position for one instrument. Owned by PositionLedger.

    ``cost_basis`` is the running net USD cost of the shares currently
    held, not cumulative spend.
    """

    instrument_id: str
    net_shares: float = 0.0
    cost_basis: float = 0.0
    last_price: float = 0.0
    buy_count: int = 0
    sell_count: int = 0
    last_fill_at: datetime | None = None

    def apply_buy(self, shares: float, usd_value: float) -> None:
        self.net_shares, self.cost_basis = self.net_shares + shares, self.cost_basis + usd_value
        self.buy_count += 1

    def apply_sell(self, shares: float, usd_value: float) -> None:
        self.net_shares, self.cost_basis = self.net_shares - shares, self.cost_basis - usd_value
        self.sell_count += 1

    def copy(self) -> PositionState:
        return replace(self)

    def freeze(self) -> PositionView:
        return PositionView(
            instrument_id=self.instrument_id,
            net_shares=self.net_shares,
            cost_basis=self.cost_basis,
            last_price=self.last_price,
            buy_count=self.buy_count,
            sell_count=self.sell_count,
            last_fill_at=self.last_fill_at,
        )


@dataclass(frozen=True)
class PositionView:
    """Immutable copy of a PositionState, as held by a LedgerSnapshot."""

    instrument_id: str
    net_shares: float = 0.0
    cost_basis: float = 0.0
    last_price: float = 0.0
    buy_count: int = 0
    sell_count: int = 0
    last_fill_at: datetime | None = None

    def to_state(self) -> PositionState:
        return PositionState(
            instrument_id=self.instrument_id,
            net_shares=self.net_shares,
            cost_basis=self.cost_basis,
            last_price=self.last_price,
            buy_count=self.buy_count,
            sell_count=self.sell_count,
            last_fill_at=self.last_fill_at,
        )


@dataclass(frozen=True)
class TradeCounts:
    """Trade-outcome counters accumulated during one fold."""

    total: int = 0
    executed: int = 0
    skipped: int = 0
    failed: int = 0
    unknown_status: int = 0
    buys: int = 0
    sells: int = 0
    unknown_direction: int = 0
    total_buy_cost: float = 0.0
    total_sell_proceeds: float = 0.0
    numeric_fallbacks: int = 0
    out_of_range_prices: int = 0
    parse_defects: int = 0

    @property
    def success_count(self) -> int:
        return self.total - self.skipped - self.failed

    @property
    def skip_rate_pct(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.skipped / self.total * 100.0

    @property
    def fail_rate_pct(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.failed / self.total * 100.0


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of the ledger at the end of a fold.

    Holds a frozen PositionView of every position (open and closed), the
    outcome counters and any parse defects collected upstream. ``get`` hands
    out a fresh mutable PositionState.
    """

    positions: Mapping[str, PositionState | PositionView]
    counts: TradeCounts = field(default_factory=TradeCounts)
    defects: tuple[ParseDefect, ...] = ()

    def __post_init__(self) -> None:
        frozen = {
            k: v.freeze() if isinstance(v, PositionState) else v
            for k, v in self.positions.items()
        }
        object.__setattr__(self, "positions", MappingProxyType(frozen))

    def get(self, instrument_id: str) -> PositionState | None:
        view = self.positions.get(instrument_id)
        return view.to_state() if view is not None else None

    def instrument_ids(self) -> list[str]:
        return sorted(self.positions)

    def __contains__(self, instrument_id: object) -> bool:
        return instrument_id in self.positions

    def __iter__(self) -> Iterator[PositionView]:
        return iter(self.positions.values())

    def __len__(self) -> int:
        return len(self.positions)


# ---------------------------------------------------------------------------
# Classifier / reconciler output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PositionClassification:
    """Derived values and labels for one instrument at a point in time."""

    instrument_id: str
    labels: frozenset[PositionLabel]
    effective_price: float
    average_price: float
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_pct: float
    age_days: int | None = None

    @property
    def is_open(self) -> bool:
        return PositionLabel.OPEN in self.labels

    def has(self, label: PositionLabel) -> bool:
        return label in self.labels


@dataclass(frozen=True)
class DataQualityWarning:
    """Ledger-level anomaly. Always surfaced, never corrected."""

    code: WarningCode
    message: str
    count: int = 0
    value: float | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Portfolio-level P&L totals and discrepancy diagnostics."""

    total_buy_cost: float
    total_sell_proceeds: float
    cost_basis_open: float
    current_value_open: float
    realized_pnl: float
    unrealized_pnl: float
    total_pnl: float
    open_positions: int
    counts: TradeCounts
    warnings: tuple[DataQualityWarning, ...] = ()

    @property
    def net_cash_flow(self) -> float:
        """Sell proceeds minus buy cost."""
        return self.total_sell_proceeds - self.total_buy_cost

    @property
    def pnl_if_closed(self) -> float:
        """P&L if every open position were closed at its current value."""
        return self.total_sell_proceeds + self.current_value_open - self.total_buy_cost

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def warning(self, code: WarningCode) -> DataQualityWarning | None:
        for w in self.warnings:
            if w.code is code:
                return w
        return None
