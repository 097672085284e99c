"""
Centralized Logging Configuration
==================================
One configured logger per module, shared format across the engines.

Design Decisions:
- Python's built-in logging, console handler always on
- Optional file handler (``PREPFLOW_LOG_FILE`` or explicit ``log_file``)
- Level taken from ``PREPFLOW_LOG_LEVEL`` when not passed explicitly

Usage:
    from prepflow.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Prep plan started")
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.environ.get('PREPFLOW_LOG_LEVEL', 'INFO')
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        # getLevelName returns "Level X" for unknown names
        return value if isinstance(value, int) else logging.INFO
    return level


def get_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[Union[int, str]] = None
) -> logging.Logger:
    """
    Create and configure a logger instance.

    Parameters
    ----------
    name : str
        Logger name (typically __name__ of the calling module)
    log_file : str, optional
        Path to log file. Falls back to ``PREPFLOW_LOG_FILE``; console only
        when neither is set.
    level : int or str, optional
        Logging level. Falls back to ``PREPFLOW_LOG_LEVEL``, then INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance

    Example
    -------
    >>> logger = get_logger(__name__)
    >>> logger.info("Forecast generated")
    2026-02-04 10:30:00 | INFO     | prepflow.forecaster | Forecast generated
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = log_file or os.environ.get('PREPFLOW_LOG_FILE')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(resolved)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def log_sales_frame_info(logger: logging.Logger, location_id, df) -> None:
    """
    Log row count and date span of a location's sales-history frame.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance
    location_id : Any
        Location the frame belongs to
    df : pd.DataFrame
        Frame with ``date`` and ``total_sales`` columns
    """
    if df is None or len(df) == 0:
        logger.warning(f"Sales history for location {location_id} is empty")
        return

    logger.info(
        f"Sales history for location {location_id}: {len(df):,} days "
        f"({df['date'].min()} to {df['date'].max()})"
    )

    missing_count = int(df['total_sales'].isnull().sum())
    if missing_count > 0:
        logger.warning(
            f"Sales history for location {location_id} has {missing_count:,} missing totals"
        )


class LogContext:
    """
    Context manager for structured logging of operations.

    Usage:
        with LogContext(logger, "Prep plan for 2026-03-01"):
            # ... operation code ...
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation} ({elapsed:.2f}s)")
        else:
            self.logger.error(f"Failed: {self.operation} ({elapsed:.2f}s) - {exc_val}")

        return False
