"""
Data access: open the CSV fill log and feed it to ledger_core in file order.

Depends on ledger_core for parsing; no dependency from ledger_core back to data.
"""

from data.fill_log import FillLog, FillLogError, FillLogSummary

__all__ = [
    "FillLog",
    "FillLogError",
    "FillLogSummary",
]
