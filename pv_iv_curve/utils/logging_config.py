"""
Logging Configuration for the PV I-V curve simulator.

Console logging for the command-line script, an optional rotating log
file, and text or JSON records selected by LOG_FORMAT.
"""

import functools
import json
import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def get_log_level(level_str: str) -> int:
    """Map a level name to its logging constant; unknown names give INFO."""
    level = logging.getLevelName(level_str.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the root logger for a simulation run.

    Arguments left as None fall back to the LOG_LEVEL, LOG_FILE and
    LOG_FORMAT environment variables (defaults: INFO, console only, text).

    Args:
        log_level: Logging level name
        log_file: Path of a rotating log file
        log_format: 'json' or 'text'
        max_size_mb: Size in MB at which the log file rotates
        backup_count: Number of rotated files to keep

    Returns:
        Root logger instance
    """
    level = get_log_level(log_level or os.getenv("LOG_LEVEL", "INFO"))
    log_file = log_file or os.getenv("LOG_FILE")
    log_format = (log_format or os.getenv("LOG_FORMAT", "text")).lower()

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=max_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return root_logger


def log_execution_time(logger: logging.Logger):
    """
    Decorator logging a function's wall time at DEBUG level.

    Usage:
        @log_execution_time(logger)
        def run_calibration(...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - start_time
            logger.debug(f"{func.__name__} executed in {elapsed:.3f}s")
            return result
        return wrapper
    return decorator
