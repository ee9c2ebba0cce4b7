"""
Structured JSON logging for the gateway.

Every record is one JSON object on stdout and, unless `log_file` is empty,
in a size-rotated file. The current request id and transcription job id are
read from context variables, so they follow a request across awaits without
being passed around.
"""

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List

from agri_gateway.config import get_settings

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_job_id_var: ContextVar[str] = ContextVar("job_id", default="")

# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


def new_request_id() -> str:
    rid = uuid.uuid4().hex[:8]
    _request_id_var.set(rid)
    return rid


@contextmanager
def job_context(job_id: str) -> Iterator[None]:
    """Tag records emitted inside the block with `job_id`, then restore the outer value."""
    token = _job_id_var.set(job_id)
    try:
        yield
    finally:
        _job_id_var.reset(token)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = vars(record)
        payload: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "request_id": _request_id_var.get() or fields.get("request_id", ""),
            "job_id": _job_id_var.get() or fields.get("job_id", ""),
            "msg": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in fields.items()
            if key not in _STANDARD_ATTRS and key not in payload and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_handlers() -> List[logging.Handler]:
    settings = get_settings()
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=settings.log_file,
                maxBytes=settings.log_rotation_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
        )
    return handlers


def configure_logging() -> None:
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()

    formatter = JsonFormatter()
    for handler in _build_handlers():
        handler.setFormatter(formatter)
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
