"""
Record Parser: raw delimited rows -> FillRecord | ParseDefect.

Field policy:
    direction     contains "BUY" -> BUY, contains "SELL" -> SELL, else UNKNOWN
    order_status  missing -> UNKNOWN, "SKIPPED" -> SKIPPED,
                  "EXEC_FAIL" or "error" (case-sensitive) -> FAILED, else EXECUTED
    numerics      unparseable -> 0.0 (counted in FillRecord.numeric_fallbacks)
    usd_value     absent -> shares * price_per_share (non-finite product -> 0.0,
                  counted as a fallback)

Only a structurally unreadable row (wrong field count, CSV syntax error)
becomes a ParseDefect. A single bad field never drops a record.
"""

from __future__ import annotations

import csv
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping

from ledger_core.contracts import Direction, FillRecord, OrderStatus, ParseDefect

UNKNOWN_INSTRUMENT = "unknown"

# Logical column -> accepted header names (first match wins).
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "timestamp": ("timestamp",),
    "direction": ("direction",),
    "shares": ("shares",),
    "price_per_share": ("price_per_share",),
    "order_status": ("order_status",),
    "usd_value": ("usd_value",),
    "instrument_id": ("instrument_id", "clob_asset_id", "token_id", "asset_id"),
}

_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)


@dataclass(frozen=True)
class ParseResult:
    """Output of parse_log: records in input order plus defects."""

    records: list[FillRecord] = field(default_factory=list)
    defects: list[ParseDefect] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        return len(self.records) + len(self.defects)


# ---------------------------------------------------------------------------
# Field classification
# ---------------------------------------------------------------------------


def classify_direction(raw: str | None) -> Direction:
    if not raw:
        return Direction.UNKNOWN
    if "BUY" in raw:
        return Direction.BUY
    if "SELL" in raw:
        return Direction.SELL
    return Direction.UNKNOWN


def classify_status(raw: str | None) -> OrderStatus:
    if raw is None:
        return OrderStatus.UNKNOWN
    if "SKIPPED" in raw:
        return OrderStatus.SKIPPED
    if "EXEC_FAIL" in raw or "error" in raw:
        return OrderStatus.FAILED
    return OrderStatus.EXECUTED


def parse_number(raw: str | None) -> tuple[float | None, bool]:
    """Parse a numeric cell.

    Returns (value, ok). An absent cell gives (None, True); a present but
    unreadable or non-finite cell gives (0.0, False).
    """
    if raw is None:
        return None, True
    try:
        value = float(raw)
    except ValueError:
        return 0.0, False
    if not math.isfinite(value):
        return 0.0, False
    return value, True


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse 'YYYY-MM-DD HH:MM:SS[.fff]' or ISO 8601. Naive values are UTC."""
    if not raw:
        return None
    parsed: datetime | None = None
    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt)
            break
        except ValueError:
            continue
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _cell(row: Mapping[str | None, object], column: str) -> str | None:
    """Look up a logical column; empty or missing cells are None."""
    for name in COLUMN_ALIASES[column]:
        value = row.get(name)
        if isinstance(value, str):
            value = value.strip()
            if value:
                return value
    return None


# ---------------------------------------------------------------------------
# Row / log parsing
# ---------------------------------------------------------------------------


def parse_row(row: Mapping[str | None, object], line_number: int | None = None) -> FillRecord | ParseDefect:
    """Turn one header-keyed row into a FillRecord.

    Rows produced by csv.DictReader carry extra cells under the ``None`` key
    and pad short rows with ``None`` values; both mean the row does not match
    the header and yield a ParseDefect.
    """
    if row.get(None):
        return ParseDefect(line_number, "more fields than header", _raw_row(row))
    if any(v is None for k, v in row.items() if k is not None):
        return ParseDefect(line_number, "fewer fields than header", _raw_row(row))

    fallbacks = 0

    shares, ok = parse_number(_cell(row, "shares"))
    fallbacks += not ok
    price, ok = parse_number(_cell(row, "price_per_share"))
    fallbacks += not ok
    usd_value, ok = parse_number(_cell(row, "usd_value"))
    fallbacks += not ok

    shares = shares or 0.0
    price = price or 0.0
    if usd_value is None:
        usd_value = shares * price
        if not math.isfinite(usd_value):
            usd_value = 0.0
            fallbacks += 1

    raw_direction = _cell(row, "direction")
    raw_status = _cell(row, "order_status")
    raw_timestamp = _cell(row, "timestamp")

    return FillRecord(
        instrument_id=_cell(row, "instrument_id") or UNKNOWN_INSTRUMENT,
        direction=classify_direction(raw_direction),
        order_status=classify_status(raw_status),
        shares=shares,
        price_per_share=price,
        usd_value=usd_value,
        timestamp=parse_timestamp(raw_timestamp),
        line_number=line_number,
        raw_direction=raw_direction,
        raw_status=raw_status,
        raw_timestamp=raw_timestamp,
        numeric_fallbacks=fallbacks,
    )


def _raw_row(row: Mapping[str | None, object]) -> str:
    cells: list[str] = []
    for key, value in row.items():
        if key is None and isinstance(value, list):
            cells.extend(str(v) for v in value)
        elif value is not None:
            cells.append(str(value))
    return ",".join(cells)


def parse_log(lines: Iterable[str]) -> ParseResult:
    """Parse a header-driven CSV fill log.

    Records come back in input order. Blank lines are ignored; a log with
    no header produces an empty result.
    """
    result = ParseResult()
    reader = csv.DictReader(lines)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            result.defects.append(ParseDefect(reader.line_num, f"unreadable row: {exc}"))
            continue
        parsed = parse_row(row, reader.line_num)
        if isinstance(parsed, ParseDefect):
            result.defects.append(parsed)
        else:
            result.records.append(parsed)
    return result


def parse_text(text: str) -> ParseResult:
    """Convenience wrapper for an in-memory CSV document."""
    return parse_log(text.splitlines())
