"""
Logging setup for the resolver.

Console output always, plus an optional rotating log file. Records render
as plain text or as one JSON object per line.
"""

import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT_ENV = "LOG_FORMAT"
SERVICE_NAME = "msku-resolver"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(levelname)s %(name)s %(module)s %(funcName)s %(lineno)d %(message)s"
JSON_RENAMES = {
    "levelname": "level",
    "name": "logger",
    "funcName": "function",
    "lineno": "line",
}

QUIET_LOGGERS = ("httpx", "multipart", "openpyxl")


def build_formatter(log_format: str) -> logging.Formatter:
    """Formatter for "text" or "json" output."""
    if log_format.lower() == "json":
        return JsonFormatter(
            JSON_FORMAT,
            rename_fields=JSON_RENAMES,
            static_fields={"service": SERVICE_NAME},
            timestamp=True,
        )
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[Path] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name, case-insensitive.
        log_format: "text" or "json". $LOG_FORMAT wins when set.
        log_file: Optional path for a rotating log file.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
    """
    log_format = os.environ.get(LOG_FORMAT_ENV, log_format)
    formatter = build_formatter(log_format)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging configured: level={level.upper()}, format={log_format}")


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """
    Attach fields to every log record created inside the block.

    JSON output shows them as top-level keys, e.g. ``file_name`` for an upload.
    """
    previous_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = previous_factory(*args, **kwargs)
        for key, value in fields.items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(record_factory)
    try:
        yield
    finally:
        logging.setLogRecordFactory(previous_factory)
