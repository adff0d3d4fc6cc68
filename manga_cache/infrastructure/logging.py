from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from manga_cache.application.request_context import request_id_var

# Structured fields passed as ``extra={"cache": {...}}``.
STRUCTURED_FIELDS = ("cache",)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s - %(name)s - %(levelname)s - %(request_id)s - %(message)s"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {
            field: getattr(record, field)
            for field in STRUCTURED_FIELDS
            if getattr(record, field, None) is not None
        }
        if fields:
            line = f"{line} {json.dumps(fields, ensure_ascii=False, default=str)}"
        return line


def configure_logging(log_level: str, log_format: str = "text") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())

    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(TextFormatter())

    logging.basicConfig(level=level, handlers=[handler], force=True)
