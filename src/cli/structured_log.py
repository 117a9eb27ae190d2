"""
Structured JSON event logger for ledger runs.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert-level events (data_quality_warning,
error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("ledger.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        source: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._source = source
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "data_quality_warning",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "source": self._source,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def ledger_built(self, records: int, defects: int, instruments: int) -> dict:
        return self._emit(
            "ledger_built",
            records=records,
            defects=defects,
            instruments=instruments,
        )

    def parse_defect(self, line_number: int | None, reason: str) -> dict:
        return self._emit("parse_defect", line=line_number, reason=reason)

    def data_quality_warning(
        self,
        code: str,
        message: str,
        count: int = 0,
    ) -> dict:
        return self._emit(
            "data_quality_warning",
            code=code,
            message=message,
            count=count,
        )

    def report_complete(self, command: str, open_positions: int, warnings: int) -> dict:
        return self._emit(
            "report_complete",
            command=command,
            open_positions=open_positions,
            warnings=warnings,
        )

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
