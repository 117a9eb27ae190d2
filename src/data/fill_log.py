"""
Read the agent's append-only CSV fill log from disk.

The log itself is produced by the external execution pipeline; this module
only opens it and hands lines to ledger_core.parser in file order.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ledger_core.parser import ParseResult, parse_log

logger = logging.getLogger("ledger.data")


class FillLogError(Exception):
    """Raised when the fill log exists but cannot be read."""


@dataclass(frozen=True)
class FillLogSummary:
    """Quick facts about a log file, for health checks."""

    path: str
    exists: bool
    size_bytes: int = 0
    records: int = 0
    defects: int = 0


class FillLog:
    """Read-only handle on one fill log file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> ParseResult:
        """Parse the whole file. Records keep their order in the file."""
        try:
            with open(self._path, newline="", encoding="utf-8", errors="replace") as f:
                result = parse_log(f)
        except OSError as exc:
            raise FillLogError(f"Cannot read fill log {self._path}: {exc}") from exc
        if result.defects:
            logger.warning(
                "%d unreadable record(s) in %s (first at line %s: %s)",
                len(result.defects),
                self._path,
                result.defects[0].line_number,
                result.defects[0].reason,
            )
        logger.debug("Parsed %d record(s) from %s", len(result.records), self._path)
        return result

    def summary(self) -> FillLogSummary:
        if not self.exists():
            return FillLogSummary(path=str(self._path), exists=False)
        result = self.load()
        return FillLogSummary(
            path=str(self._path),
            exists=True,
            size_bytes=self._path.stat().st_size,
            records=len(result.records),
            defects=len(result.defects),
        )
