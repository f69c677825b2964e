"""Logging for the admin client.

Two sinks hang off the ``shopadmin`` logger: a colored console for the
operator and a daily JSONL audit file. Mutations are recorded through
``log_admin_event`` so each line of the audit file names what changed
(``product_deleted``, ``stock_updated``, ...) with the ids involved.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from shopadmin.config import LOG_DIR

__all__ = [
    "setup_logging",
    "get_logger",
    "log_admin_event",
    "LOG_DIR",
]

ROOT_LOGGER = "shopadmin"

# Never written to any sink
_REDACTED_KEYS = frozenset({"password", "token"})


class AuditFileHandler(logging.Handler):
    """Appends one JSON object per record to ``<prefix>_YYYYMMDD.jsonl``."""

    def __init__(self, log_dir: Path, prefix: str = "admin"):
        super().__init__()
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir = log_dir
        self.prefix = prefix

    def path_for(self, when: datetime) -> Path:
        return self.log_dir / f"{self.prefix}_{when:%Y%m%d}.jsonl"

    @staticmethod
    def to_entry(record: logging.LogRecord, when: datetime) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": when.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type
        entry.update(getattr(record, "event_data", None) or {})
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        now = datetime.now()
        try:
            line = json.dumps(self.to_entry(record, now), ensure_ascii=False, default=str)
            with self.path_for(now).open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Colors whole lines by level when writing to a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        isatty = getattr(self.stream, "isatty", None)
        if isatty is None or not isatty():
            return text
        return f"{self.COLORS.get(record.levelno, '')}{text}{self.RESET}"


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Attach the console and audit-file sinks to the ``shopadmin`` logger.

    Calling it again replaces the previous handlers. Console output goes to
    stderr so CLI output on stdout stays pipeable. The audit file always
    records DEBUG and up, whatever ``level`` the console uses.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_to_file else level)

    if log_to_console:
        console = ColoredConsoleHandler(sys.stderr)
        console.setLevel(level)
        console.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S")
        )
        root.addHandler(console)

    if log_to_file:
        root.addHandler(AuditFileHandler(log_dir or LOG_DIR))

    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Module logger under the ``shopadmin`` namespace, e.g. ``shopadmin.api``."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_admin_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> None:
    """Record one admin action.

    ``data`` becomes top-level fields of the audit entry; a ``message`` key
    replaces the default message (the event type). Credentials are dropped.
    """
    fields = {k: v for k, v in data.items() if k not in _REDACTED_KEYS}
    message = fields.pop("message", event_type)
    get_logger(logger_name).log(
        level,
        message,
        extra={"event_type": event_type, "event_data": fields},
    )
