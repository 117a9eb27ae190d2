"""
Reconciler: LedgerSnapshot + outcome counts -> ReconciliationResult.

    realized_pnl   = sell_proceeds - (buy_cost - cost_basis_open)
    unrealized_pnl = current_value_open - cost_basis_open
    total_pnl      = sell_proceeds + current_value_open - buy_cost

total_pnl is computed in cash-flow form so the accounting identity holds
exactly; realized + unrealized equals it up to float rounding. Realized P&L
is an approximation (no lot matching).

Discrepancy diagnostics are returned as DataQualityWarnings, never raised.
"""

from __future__ import annotations

from config.thresholds import Thresholds
from ledger_core.classifier import current_value, has_zero_price, is_dust, is_open
from ledger_core.contracts import (
    DataQualityWarning,
    LedgerSnapshot,
    ReconciliationResult,
    TradeCounts,
    WarningCode,
)


def _diagnose(
    counts: TradeCounts,
    unrealized_pnl: float,
    zero_price: list[str],
    negative_basis: list[str],
    dust: list[str],
    negative_shares: list[str],
    thresholds: Thresholds,
) -> list[DataQualityWarning]:
    warnings: list[DataQualityWarning] = []

    if counts.total > 0 and counts.skip_rate_pct > thresholds.max_skip_rate_pct:
        warnings.append(DataQualityWarning(
            WarningCode.HIGH_SKIP_RATE,
            f"High skip rate: {counts.skip_rate_pct:.1f}% of trades were skipped",
            count=counts.skipped,
            value=counts.skip_rate_pct,
        ))
    if counts.failed > 0:
        warnings.append(DataQualityWarning(
            WarningCode.FAILED_TRADES,
            f"Failed trades detected: {counts.failed} ({counts.fail_rate_pct:.1f}%)",
            count=counts.failed,
            value=counts.fail_rate_pct,
        ))
    if zero_price:
        warnings.append(DataQualityWarning(
            WarningCode.ZERO_PRICE_POSITIONS,
            f"{len(zero_price)} position(s) have no usable price data (last_price = 0)",
            count=len(zero_price),
        ))
    if unrealized_pnl < thresholds.large_loss_usd:
        warnings.append(DataQualityWarning(
            WarningCode.LARGE_UNREALIZED_LOSS,
            f"Significant unrealized losses: ${unrealized_pnl:.2f}",
            value=unrealized_pnl,
        ))
    if negative_basis:
        warnings.append(DataQualityWarning(
            WarningCode.NEGATIVE_COST_BASIS,
            f"Negative cost basis detected: {len(negative_basis)} position(s)",
            count=len(negative_basis),
        ))
    if dust:
        warnings.append(DataQualityWarning(
            WarningCode.DUST_POSITIONS,
            f"Dust positions detected: {len(dust)} position(s) with value < ${thresholds.dust_value_usd:.2f}",
            count=len(dust),
        ))
    if negative_shares:
        warnings.append(DataQualityWarning(
            WarningCode.NEGATIVE_SHARES,
            f"Negative share balance: {len(negative_shares)} instrument(s) sold more than bought",
            count=len(negative_shares),
        ))
    if counts.parse_defects:
        warnings.append(DataQualityWarning(
            WarningCode.PARSE_DEFECTS,
            f"{counts.parse_defects} unreadable record(s) skipped",
            count=counts.parse_defects,
        ))
    if counts.numeric_fallbacks:
        warnings.append(DataQualityWarning(
            WarningCode.NUMERIC_FALLBACKS,
            f"{counts.numeric_fallbacks} numeric field(s) could not be parsed and were treated as 0",
            count=counts.numeric_fallbacks,
        ))
    if counts.out_of_range_prices:
        warnings.append(DataQualityWarning(
            WarningCode.PRICE_OUT_OF_RANGE,
            f"{counts.out_of_range_prices} fill(s) priced outside [0, 1]",
            count=counts.out_of_range_prices,
        ))
    return warnings


def reconcile(
    snapshot: LedgerSnapshot,
    counts: TradeCounts | None = None,
    thresholds: Thresholds | None = None,
) -> ReconciliationResult:
    """Compute portfolio P&L and diagnostics for a snapshot.

    Parameters
    ----------
    snapshot:
        Ledger state after a fold.
    counts:
        Trade-outcome counters. Defaults to the counters captured in the
        snapshot.
    thresholds:
        Policy values; defaults to ``Thresholds()``.
    """
    counts = counts if counts is not None else snapshot.counts
    thresholds = thresholds or Thresholds()

    cost_basis_open = 0.0
    current_value_open = 0.0
    open_count = 0
    zero_price: list[str] = []
    negative_basis: list[str] = []
    dust: list[str] = []
    negative_shares: list[str] = []

    for iid in snapshot.instrument_ids():
        state = snapshot.positions[iid]
        if state.net_shares < -thresholds.position_epsilon:
            negative_shares.append(iid)
        if not is_open(state, thresholds):
            continue
        value = current_value(state)
        open_count += 1
        cost_basis_open += state.cost_basis
        current_value_open += value
        if has_zero_price(state):
            zero_price.append(iid)
        if state.cost_basis < 0:
            negative_basis.append(iid)
        if is_dust(state, value, thresholds):
            dust.append(iid)

    buy_cost = counts.total_buy_cost
    sell_proceeds = counts.total_sell_proceeds
    unrealized = current_value_open - cost_basis_open

    return ReconciliationResult(
        total_buy_cost=buy_cost,
        total_sell_proceeds=sell_proceeds,
        cost_basis_open=cost_basis_open,
        current_value_open=current_value_open,
        realized_pnl=sell_proceeds - (buy_cost - cost_basis_open),
        unrealized_pnl=unrealized,
        total_pnl=sell_proceeds + current_value_open - buy_cost,
        open_positions=open_count,
        counts=counts,
        warnings=tuple(_diagnose(
            counts, unrealized, zero_price, negative_basis, dust, negative_shares, thresholds,
        )),
    )
