from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Mapping

from ..middlewares import division_ctx_var, principal_ctx_var, request_id_ctx_var

# Request-scoped fields copied onto every line emitted while a request runs.
CONTEXT_FIELDS = (
    ("request_id", request_id_ctx_var),
    ("principal", principal_ctx_var),
    ("division", division_ctx_var),
)

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "multipart")


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the request that produced it."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field, var in CONTEXT_FIELDS:
            value = var.get()
            if value:
                payload[field] = value
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
