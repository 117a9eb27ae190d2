"""
Pipeline orchestrator: chains Parser -> Ledger -> Classifier -> Reconciler -> Report.

Single entry point for turning a fill log into a LedgerReport.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from config.thresholds import Thresholds
from ledger_core.classifier import classify, rank_positions
from ledger_core.contracts import FillRecord, LedgerSnapshot
from ledger_core.ledger import fold
from ledger_core.parser import ParseResult, parse_log
from ledger_core.reconciler import reconcile
from ledger_core.report import LedgerReport, build_row


def build_report(
    snapshot: LedgerSnapshot,
    thresholds: Thresholds,
    now: datetime | None = None,
) -> LedgerReport:
    """Classify every position in *snapshot* and reconcile the whole ledger."""
    if now is None:
        now = datetime.now(timezone.utc)

    classified = {
        state.instrument_id: classify(state, thresholds, now) for state in snapshot
    }
    rows = [
        build_row(snapshot.positions[c.instrument_id], c)
        for c in rank_positions(classified.values())
    ]
    return LedgerReport(
        generated_at=now,
        rows=rows,
        reconciliation=reconcile(snapshot, thresholds=thresholds),
        defects=list(snapshot.defects),
    )


def run_pipeline(
    lines: Iterable[str],
    thresholds: Thresholds | None = None,
    *,
    now: datetime | None = None,
    exclude_failed: bool = False,
) -> tuple[ParseResult, LedgerReport]:
    """Parse a CSV fill log and build the full report.

    Stages:
        1. Record Parser:  lines -> FillRecord[] + ParseDefect[]
        2. Ledger:         FillRecord[] -> LedgerSnapshot (input order)
        3. Classifier:     per-instrument labels and values
        4. Reconciler:     portfolio P&L + warnings

    Returns the parse result alongside the report so callers can show raw
    trade history without parsing twice.
    """
    thresholds = thresholds or Thresholds()
    parsed = parse_log(lines)
    snapshot = fold(parsed.records, defects=parsed.defects, exclude_failed=exclude_failed)
    return parsed, build_report(snapshot, thresholds, now)


def report_from_records(
    records: Iterable[FillRecord],
    thresholds: Thresholds | None = None,
    *,
    now: datetime | None = None,
    exclude_failed: bool = False,
) -> LedgerReport:
    """Same as run_pipeline for already-parsed records."""
    snapshot = fold(records, exclude_failed=exclude_failed)
    return build_report(snapshot, thresholds or Thresholds(), now)
