from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


EVENT_LOGGER_NAME = "options.events"

# Log rotation settings (configurable via environment)
MAX_LOG_BYTES = int(os.getenv("OPTIONS_LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB default
LOG_BACKUP_COUNT = int(os.getenv("OPTIONS_LOG_BACKUP_COUNT", 5))  # Keep 5 backups

_event_logger = logging.getLogger(EVENT_LOGGER_NAME)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_event_log(path: str | Path, level: str = "DEBUG") -> RotatingFileHandler:
    """
    Attach a rotating JSONL file handler to the event logger.

    Nothing is written to disk until this is called; the engine itself
    never touches the filesystem. The event logger is opened down to
    ``level`` so INFO and DEBUG events reach the file regardless of the
    root logger's level.

    Args:
        path: Target .jsonl file (parent directories are created)
        level: Lowest event level persisted

    Returns:
        The handler that was attached
    """
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    _event_logger.setLevel(_LEVELS.get(level.upper(), logging.DEBUG))

    for existing in _event_logger.handlers:
        if isinstance(existing, RotatingFileHandler) and existing.baseFilename == os.path.abspath(log_file):
            return existing

    handler = RotatingFileHandler(
        str(log_file),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    _event_logger.addHandler(handler)
    return handler


def format_event(event: str, level: str = "INFO", **fields: Any) -> str:
    """Render one structured event as a single JSON line."""
    rec: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        **fields,
    }
    return json.dumps(rec, default=str)


def jlog(event: str, level: str = "INFO", **fields: Any) -> None:
    """
    Emit a structured JSON log entry on the event logger.

    Args:
        event: Event name/type
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **fields: Additional fields to include in the log entry
    """
    levelno = _LEVELS.get(level.upper(), logging.INFO)
    if not _event_logger.isEnabledFor(levelno):
        return
    _event_logger.log(levelno, format_event(event, level.upper(), **fields))


def configure_from_settings() -> Optional[RotatingFileHandler]:
    """Attach the file handler named by logging.event_log, if any."""
    from config.settings_loader import get_event_log_level, get_event_log_path

    path = get_event_log_path()
    if not path:
        return None
    return configure_event_log(path, level=get_event_log_level())
