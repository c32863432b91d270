"""JSON log formatter for pipeline log collectors.

Emits each log record as a single-line JSON object so that CI systems and
log aggregators can index runs without regex parsing.

Output schema per line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "check_engine.orchestrator",
        "message": "Executed 18 checks ...",
        "check": "orders_not_empty",   // present when passed via extra=
        "exc_info": "Traceback ..."    // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        check_name = getattr(record, "check", None)
        if check_name is not None:
            payload["check"] = check_name

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)
