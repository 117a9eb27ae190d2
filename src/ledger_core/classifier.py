"""
Classifier: position (PositionView or PositionState) + Thresholds + now -> PositionClassification.

Pure function of its inputs. Labels:
    OPEN / CLOSED       net_shares > position_epsilon
    LARGE               open, current value >= large_position_usd
    STALE               open, age >= stale_days
    NEAR_STALE          open, within near_stale_window_days below stale_days
    AGE_UNKNOWN         open, no parsable fill timestamp (never STALE)
    DUST                epsilon < net_shares < dust_share_ceiling and value < dust_value_usd
    NEGATIVE_BASIS      open, cost_basis < 0
    ZERO_PRICE          open, no usable last price (value is a fallback or zero)
    NEGATIVE_SHARES     net_shares < -position_epsilon
    PRICE_OUT_OF_RANGE  last_price outside [0, 1]
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from config.thresholds import Thresholds
from ledger_core.contracts import PositionClassification, PositionLabel, PositionState, PositionView

# Below this many shares an average price is not computed.
_MIN_DIVISOR = 1e-12

_SECONDS_PER_DAY = 86_400


def is_open(state: PositionView | PositionState, thresholds: Thresholds) -> bool:
    return state.net_shares > thresholds.position_epsilon


def average_price(state: PositionView | PositionState) -> float:
    """cost_basis / net_shares, or 0.0 when there are no shares to divide by."""
    if state.net_shares > _MIN_DIVISOR:
        return state.cost_basis / state.net_shares
    return 0.0


def effective_price(state: PositionView | PositionState) -> float:
    """Last fill price, falling back to the average price, else 0.0."""
    if state.last_price > 0:
        return state.last_price
    return average_price(state)


def current_value(state: PositionView | PositionState) -> float:
    return state.net_shares * effective_price(state)


def has_zero_price(state: PositionView | PositionState) -> bool:
    """No usable last price, so any value is a fallback or zero."""
    return state.last_price <= 0 or effective_price(state) == 0


def is_dust(state: PositionView | PositionState, value: float, thresholds: Thresholds) -> bool:
    return state.net_shares < thresholds.dust_share_ceiling and value < thresholds.dust_value_usd


def position_age_days(state: PositionView | PositionState, now: datetime) -> int | None:
    """Whole days since the most recent fill, or None without a timestamp."""
    if state.last_fill_at is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - state.last_fill_at).total_seconds()
    return int(elapsed // _SECONDS_PER_DAY)


def classify(
    state: PositionView | PositionState,
    thresholds: Thresholds,
    now: datetime,
) -> PositionClassification:
    """Derive values and labels for one position."""
    labels: set[PositionLabel] = set()
    open_ = is_open(state, thresholds)
    price = effective_price(state)
    value = state.net_shares * price
    avg = average_price(state)
    age = position_age_days(state, now)

    pnl = value - state.cost_basis
    pnl_pct = pnl / state.cost_basis * 100.0 if state.cost_basis > 0 else 0.0

    if state.net_shares < -thresholds.position_epsilon:
        labels.add(PositionLabel.NEGATIVE_SHARES)
    if not 0.0 <= state.last_price <= 1.0:
        labels.add(PositionLabel.PRICE_OUT_OF_RANGE)

    if not open_:
        labels.add(PositionLabel.CLOSED)
        return PositionClassification(
            instrument_id=state.instrument_id,
            labels=frozenset(labels),
            effective_price=price,
            average_price=avg,
            current_value=value,
            unrealized_pnl=pnl,
            unrealized_pnl_pct=pnl_pct,
            age_days=age,
        )

    labels.add(PositionLabel.OPEN)

    if value >= thresholds.large_position_usd:
        labels.add(PositionLabel.LARGE)

    if age is None:
        labels.add(PositionLabel.AGE_UNKNOWN)
    elif age >= thresholds.stale_days:
        labels.add(PositionLabel.STALE)
    elif age >= thresholds.stale_days - thresholds.near_stale_window_days:
        labels.add(PositionLabel.NEAR_STALE)

    if is_dust(state, value, thresholds):
        labels.add(PositionLabel.DUST)

    if state.cost_basis < 0:
        labels.add(PositionLabel.NEGATIVE_BASIS)

    if has_zero_price(state):
        labels.add(PositionLabel.ZERO_PRICE)

    return PositionClassification(
        instrument_id=state.instrument_id,
        labels=frozenset(labels),
        effective_price=price,
        average_price=avg,
        current_value=value,
        unrealized_pnl=pnl,
        unrealized_pnl_pct=pnl_pct,
        age_days=age,
    )


def rank_positions(items: Iterable[PositionClassification]) -> list[PositionClassification]:
    """Descending current value; ties broken by instrument id."""
    return sorted(items, key=lambda c: (-c.current_value, c.instrument_id))
