"""
ledger-core: pure fill-log position ledger.

No I/O, no network, no side effects. Consumes fill-log rows, produces
position snapshots, classifications and reconciliation results. Fully
deterministic and unit-testable.
"""

from ledger_core.classifier import classify, rank_positions
from ledger_core.contracts import (
    DataQualityWarning,
    Direction,
    FillRecord,
    LedgerSnapshot,
    OrderStatus,
    ParseDefect,
    PositionClassification,
    PositionLabel,
    PositionState,
    PositionView,
    ReconciliationResult,
    TradeCounts,
    WarningCode,
)
from ledger_core.ledger import PositionLedger, fold
from ledger_core.parser import ParseResult, parse_log, parse_row
from ledger_core.pipeline import build_report, run_pipeline
from ledger_core.reconciler import reconcile
from ledger_core.report import LedgerReport, PositionRow

__all__ = [
    "build_report",
    "classify",
    "DataQualityWarning",
    "Direction",
    "FillRecord",
    "fold",
    "LedgerReport",
    "LedgerSnapshot",
    "OrderStatus",
    "ParseDefect",
    "ParseResult",
    "parse_log",
    "parse_row",
    "PositionClassification",
    "PositionLabel",
    "PositionLedger",
    "PositionRow",
    "PositionState",
    "PositionView",
    "rank_positions",
    "reconcile",
    "ReconciliationResult",
    "run_pipeline",
    "TradeCounts",
    "WarningCode",
]
