from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone

from app.core.config import IS_PROD
from app.core.request_context import get_request_id, get_user_id

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(password\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(secret\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
]

_EXTRA_FIELDS = ("endpoint", "method", "status_code", "duration_ms")


def mask_sensitive(value: str) -> str:
    masked = value
    for pattern in _SENSITIVE_PATTERNS:
        masked = pattern.sub(r"\1***", masked)
    return masked


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "user_id": getattr(record, "user_id", None) or get_user_id(),
            "module": record.name,
            "message": mask_sensitive(record.getMessage()),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = mask_sensitive(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Formato legível para desenvolvimento local."""

    def format(self, record: logging.LogRecord) -> str:
        line = mask_sensitive(super().format(record))
        details = [f"{field}={getattr(record, field)}" for field in _EXTRA_FIELDS if getattr(record, field, None) is not None]
        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            details.insert(0, f"request_id={request_id}")
        if details:
            line = f"{line} ({' '.join(details)})"
        return line


def configure_logging(*, json_output: bool | None = None) -> None:
    use_json = IS_PROD if json_output is None else json_output

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(LOG_LEVEL)

    handler = logging.StreamHandler()
    formatter: logging.Formatter = JsonFormatter("%(message)s") if use_json else TextFormatter(TEXT_FORMAT)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(LOG_LEVEL)
