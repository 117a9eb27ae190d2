"""
Human-readable ledger output for the terminal.

Every report command uses these formatters. The journal receives the same
numbers as structured data.
"""

from __future__ import annotations

from typing import Sequence

from config.thresholds import Thresholds
from ledger_core.contracts import FillRecord, ReconciliationResult, WarningCode
from ledger_core.report import LedgerReport, PositionRow

_RULE_WIDTH = 130

_WARNING_HINTS: dict[WarningCode, str] = {
    WarningCode.HIGH_SKIP_RATE: "This may indicate risk guard settings are too strict.",
    WarningCode.FAILED_TRADES: "Common causes: insufficient balance, allowance issues, or API errors.",
    WarningCode.ZERO_PRICE_POSITIONS: "Current value calculation may be inaccurate. Check market status.",
    WarningCode.LARGE_UNREALIZED_LOSS: "Consider reviewing open positions and market conditions.",
    WarningCode.NEGATIVE_COST_BASIS: "This may indicate data inconsistency in the fill log.",
    WarningCode.DUST_POSITIONS: "These may be difficult to close and could accumulate fees.",
    WarningCode.NEGATIVE_SHARES: "Sells exceed buys for these instruments; the log may be incomplete.",
    WarningCode.PARSE_DEFECTS: "Rows whose field count does not match the header were ignored.",
    WarningCode.NUMERIC_FALLBACKS: "Affected shares/prices/values count as 0 in every total.",
    WarningCode.PRICE_OUT_OF_RANGE: "Prediction-market share prices are expected in [0, 1].",
}


def _rule() -> str:
    return "-" * _RULE_WIDTH


def _short_id(instrument_id: str, limit: int = 18) -> str:
    if len(instrument_id) > limit:
        return f"{instrument_id[:limit - 3]}..."
    return instrument_id


def _signed(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.2f}"


def format_time(raw_timestamp: str | None) -> str:
    """Reduce '2026-01-16 23:06:31.824' to '23:06:31'."""
    if not raw_timestamp:
        return "?"
    if len(raw_timestamp) > 19:
        _, _, time_part = raw_timestamp.partition(" ")
        if time_part:
            return time_part.split(".")[0]
        return raw_timestamp
    if len(raw_timestamp) > 10:
        _, _, time_part = raw_timestamp.partition(" ")
        return time_part or raw_timestamp
    return raw_timestamp


def summarize_status(status: str | None, width: int = 48) -> str:
    """Shorten a long order_status while keeping the informative part."""
    if status is None:
        return "?"
    if len(status) <= width:
        return status
    if "200 OK" in status:
        return "200 OK"
    if "EXEC_FAIL" in status:
        head, sep, tail = status.partition("EXEC_FAIL:")
        fail_part = tail if sep else status
        if len(fail_part) > width - 5:
            return f"EXEC_FAIL:{fail_part[:width - 10]}..."
        return f"EXEC_FAIL:{fail_part}"
    if "SKIPPED" in status:
        _, _, reason = status.partition("SKIPPED")
        if len(reason) > width - 3:
            return f"SKIPPED{reason[:width - 8]}..."
        return status
    return f"{status[:width - 3]}..."


# ---------------------------------------------------------------------------
# fills stats / fills recent
# ---------------------------------------------------------------------------


def format_stats(records: Sequence[FillRecord], reconciliation: ReconciliationResult, recent: int = 5) -> str:
    counts = reconciliation.counts
    volume = sum(r.usd_value for r in records)
    executed_pct = counts.executed / counts.total * 100.0 if counts.total else 0.0
    lines = [
        "=== Trading Statistics ===",
        f"Total trades : {counts.total}",
        f"Buy trades   : {counts.buys}",
        f"Sell trades  : {counts.sells}",
        f"Executed     : {counts.executed} ({executed_pct:.1f}%)",
        f"Skipped      : {counts.skipped}",
        f"Failed       : {counts.failed}",
        f"Total volume : ${volume:.2f}",
    ]
    if records:
        shown = list(reversed(records[-recent:]))
        lines.append("")
        lines.append(f"Recent activity (last {len(shown)} trades):")
        for i, r in enumerate(shown, 1):
            lines.append(
                f"  {i}. {r.raw_direction or '?'} {r.shares:g} shares @ ${r.price_per_share:g} "
                f"(${r.usd_value:.2f}) - {summarize_status(r.raw_status, 50)}"
            )
    lines.append("===")
    return "\n".join(lines)


def format_recent(records: Sequence[FillRecord], limit: int = 20) -> str:
    if not records:
        return "No trades found in history."
    shown = list(reversed(records[-limit:]))
    lines = [
        f"Showing last {len(shown)} trades:",
        "",
        "-" * 120,
        f"{'#':<4} {'Time':<12} {'Direction':<12} {'Shares':<10} {'Price':<10} {'Value':<12} {'Status':<50}",
        "-" * 120,
    ]
    for i, r in enumerate(shown, 1):
        lines.append(
            f"{i:<4} {format_time(r.raw_timestamp):<12} {(r.raw_direction or '?'):<12} "
            f"{r.shares:<10g} {r.price_per_share:<10g} {r.usd_value:<12.2f} {summarize_status(r.raw_status):<50}"
        )
    lines.append("-" * 120)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Position tables
# ---------------------------------------------------------------------------


def _position_header(extra: str = "") -> list[str]:
    head = (
        f"{'Token ID':<20} {'Shares':<12} {'Avg Price':<12} {'Cost Basis':<12} "
        f"{'Last Price':<12} {'Current Val':<12} "
    )
    if extra:
        head += f"{extra:<12} "
    head += f"{'P&L':<12} {'Trades':<10}"
    return [_rule(), head, _rule()]


def _position_line(row: PositionRow, extra: str | None = None) -> str:
    line = (
        f"{_short_id(row.instrument_id):<20} {row.net_shares:<12.6f} {row.average_price:<12.4f} "
        f"{row.cost_basis:<12.2f} {row.last_price:<12.4f} {row.current_value:<12.2f} "
    )
    if extra is not None:
        line += f"{extra:<12} "
    line += f"{_signed(row.unrealized_pnl):<12} ({row.unrealized_pnl_pct:+.1f}%) {row.buy_count}B/{row.sell_count}S"
    return line


def _totals_line(rows: Sequence[PositionRow], with_extra: bool = False) -> str:
    total_cost = sum(r.cost_basis for r in rows)
    total_value = sum(r.current_value for r in rows)
    total_pnl = total_value - total_cost
    pct = total_pnl / total_cost * 100.0 if total_cost > 0 else 0.0
    line = f"{'TOTAL':<20} {'':<12} {'':<12} {total_cost:<12.2f} {'':<12} {total_value:<12.2f} "
    if with_extra:
        line += f"{'':<12} "
    line += f"{_signed(total_pnl):<12} ({pct:+.1f}%)"
    return line


def format_position_table(rows: Sequence[PositionRow], *, show_age: bool = False) -> str:
    lines = _position_header("Age (days)" if show_age else "")
    for row in rows:
        extra = f"{row.age_days} days" if show_age else None
        lines.append(_position_line(row, extra))
    lines.append(_rule())
    lines.append(_totals_line(rows, with_extra=show_age))
    lines.append(_rule())
    return "\n".join(lines)


def format_positions(report: LedgerReport) -> str:
    rows = report.open_rows()
    if not rows:
        return "No open positions found.\n  All positions have been closed or no successful trades yet."
    return "\n".join([
        f"Found {len(rows)} open position(s):",
        "",
        format_position_table(rows),
        "",
        "Note: current value uses the last fill price (average price when no price is known).",
    ])


def format_large(report: LedgerReport, thresholds: Thresholds) -> str:
    rows = report.large_rows()
    if not rows:
        return "\n".join([
            "No large positions found.",
            f"  Threshold: ${thresholds.large_position_usd:.2f} USD",
            "  All positions are below this threshold.",
        ])
    return "\n".join([
        f"Found {len(rows)} large position(s) (value >= ${thresholds.large_position_usd:.2f} USD):",
        "",
        format_position_table(rows),
    ])


def format_stale(report: LedgerReport, thresholds: Thresholds) -> str:
    open_rows = report.open_rows()
    aged = report.aged_open_rows()
    unknown = report.age_unknown_rows()
    stale = report.stale_rows()

    lines = [
        "Position analysis:",
        f"  Total open positions      : {len(open_rows)}",
        f"  Positions with timestamps : {len(aged)}",
    ]
    if unknown:
        lines.append(f"  Positions without timestamps: {len(unknown)} (cannot determine age)")
    lines.append("")

    if stale:
        lines.append(f"Found {len(stale)} stale position(s) (last trade >= {thresholds.stale_days} days ago):")
        lines.append("")
        lines.append(format_position_table(stale, show_age=True))
        return "\n".join(lines)

    lines.append(f"No stale positions found (threshold: {thresholds.stale_days} days old).")
    near = report.near_stale_rows()
    if near:
        low = max(thresholds.stale_days - thresholds.near_stale_window_days, 0)
        lines.append("")
        lines.append(
            f"{len(near)} position(s) approaching stale threshold ({low} - {thresholds.stale_days - 1} days old):"
        )
        for row in near[:5]:
            lines.append(f"  - {_short_id(row.instrument_id, 23)}: {row.age_days} days old ({row.net_shares:g} shares)")
        if len(near) > 5:
            lines.append(f"  ... and {len(near) - 5} more")
    if aged:
        oldest, youngest = aged[0], aged[-1]
        lines.append("")
        lines.append("Position age summary:")
        lines.append(f"  Oldest position  : {oldest.age_days} days old ({oldest.net_shares:g} shares)")
        lines.append(f"  Youngest position: {youngest.age_days} days old ({youngest.net_shares:g} shares)")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# P&L discrepancy report
# ---------------------------------------------------------------------------


def format_warnings(reconciliation: ReconciliationResult) -> str:
    if not reconciliation.warnings:
        return "No major discrepancies detected.\n  Trading data appears consistent."
    lines: list[str] = []
    for w in reconciliation.warnings:
        lines.append(f"[WARN] {w.message}")
        hint = _WARNING_HINTS.get(w.code)
        if hint:
            lines.append(f"       {hint}")
    return "\n".join(lines)


def format_pnl(reconciliation: ReconciliationResult) -> str:
    counts = reconciliation.counts
    lines = [
        "=== P&L Discrepancy Analysis ===",
        "",
        "Trade summary:",
        f"  Total trades      : {counts.total}",
        f"  Successful trades : {counts.success_count}",
        f"  Skipped trades    : {counts.skipped} (not executed)",
        f"  Failed trades     : {counts.failed} (execution errors)",
        f"  Open positions    : {reconciliation.open_positions}",
        "",
        "P&L breakdown:",
        f"  Total buy cost              : ${reconciliation.total_buy_cost:.2f}",
        f"  Total sell proceeds         : ${reconciliation.total_sell_proceeds:.2f}",
        f"  Net cash flow               : ${reconciliation.net_cash_flow:.2f}",
        f"  Cost basis (open positions) : ${reconciliation.cost_basis_open:.2f}",
        f"  Current value (open)        : ${reconciliation.current_value_open:.2f}",
        f"  Realized P&L                : ${reconciliation.realized_pnl:.2f}",
        f"  Unrealized P&L              : ${reconciliation.unrealized_pnl:.2f}",
        f"  Total P&L                   : ${reconciliation.total_pnl:.2f}",
        f"  P&L if all closed           : ${reconciliation.pnl_if_closed:.2f}",
        "",
        "Discrepancy analysis:",
        format_warnings(reconciliation),
        "===",
    ]
    return "\n".join(lines)
