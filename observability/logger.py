"""Structured event logging for interview sessions.

Every event is written twice: a short human line (console and
``*-human.log``) and, when file logs are enabled, one JSON object per line
in ``LOG_FILE``.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any, Callable

from config.settings import settings

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
HUMAN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Fields promoted onto the human line, in this order.
HUMAN_FIELDS = ("ordinal", "tier", "status", "score", "source", "component", "reason", "action", "node", "ms", "outcome")

_WARN_KINDS = {"backend_degraded"}

_logger = logging.getLogger("interview")
_logger.propagate = False


def _is_json(record: logging.LogRecord) -> bool:
    return getattr(record, "is_json", False) is True


def _human_only(record: logging.LogRecord) -> bool:
    return not _is_json(record)


def _attach(handler: logging.Handler, fmt: str, accept: Callable[[logging.LogRecord], bool]) -> None:
    handler.setLevel(settings.LOG_LEVEL.upper())
    handler.setFormatter(logging.Formatter(fmt, datefmt=HUMAN_DATEFMT))
    handler.addFilter(accept)
    _logger.addHandler(handler)


def human_log_path(log_file: str) -> str:
    root, _ = os.path.splitext(log_file)
    return f"{root}-human.log"


def _ensure_handlers() -> None:
    if _logger.handlers:
        return
    _logger.setLevel(settings.LOG_LEVEL.upper())
    _attach(logging.StreamHandler(stream=sys.stdout), HUMAN_FORMAT, _human_only)

    if not settings.ENABLE_FILE_LOGS:
        return
    log_dir = os.path.dirname(settings.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    rotation = {"maxBytes": settings.LOG_MAX_BYTES, "backupCount": settings.LOG_BACKUP_COUNT}
    _attach(logging.handlers.RotatingFileHandler(settings.LOG_FILE, **rotation), "%(message)s", _is_json)
    _attach(
        logging.handlers.RotatingFileHandler(human_log_path(settings.LOG_FILE), **rotation),
        HUMAN_FORMAT,
        _human_only,
    )


def _format_human(evt: dict[str, Any]) -> str:
    parts = [f"session={evt.get('session_id')}", f"kind={evt.get('kind')}"]
    parts.extend(f"{key}={evt[key]}" for key in HUMAN_FIELDS if key in evt)
    return " ".join(parts)


def _emit(level: int, message: str, *, is_json: bool) -> None:
    record = _logger.makeRecord(_logger.name, level, "", 0, message, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _logger.handle(record)


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Record one session event; degraded-backend events log at WARNING."""

    _ensure_handlers()
    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "session_id": session_id,
        **fields,
    }
    level = logging.WARNING if kind in _WARN_KINDS else logging.INFO
    _emit(level, _format_human(payload), is_json=False)
    if settings.ENABLE_FILE_LOGS:
        _emit(level, json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["log_event", "human_log_path"]
