"""
Run journal: append-only JSON lines. One ``reconciliation`` event per report
run, followed by one ``warning`` event per data-quality warning.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from ledger_core.contracts import DataQualityWarning
from ledger_core.report import LedgerReport


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(_serialize(x) for x in obj)
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class ReportJournal:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def reconciliation(self, report: LedgerReport, source: str, **extra: Any) -> None:
        rec = report.reconciliation
        self._write(
            "reconciliation",
            {
                "source": source,
                "generated_at": report.generated_at,
                "trades": rec.counts.total,
                "open_positions": rec.open_positions,
                "total_buy_cost": rec.total_buy_cost,
                "total_sell_proceeds": rec.total_sell_proceeds,
                "cost_basis_open": rec.cost_basis_open,
                "current_value_open": rec.current_value_open,
                "realized_pnl": rec.realized_pnl,
                "unrealized_pnl": rec.unrealized_pnl,
                "total_pnl": rec.total_pnl,
                "warning_codes": [w.code for w in rec.warnings],
                **extra,
            },
        )

    def warning(self, warning: DataQualityWarning, source: str, **extra: Any) -> None:
        self._write(
            "warning",
            {"source": source, "code": warning.code, "message": warning.message, "count": warning.count, "value": warning.value, **extra},
        )

    def record_run(self, report: LedgerReport, source: str, **extra: Any) -> None:
        """Write the reconciliation event and one event per warning."""
        self.reconciliation(report, source, **extra)
        for w in report.reconciliation.warnings:
            self.warning(w, source, **extra)
