"""
Logging configuration for the EventOps framework.

This module provides centralized logging setup with environment-specific
configuration and structured logging capabilities.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional
import json


_RESERVED_RECORD_ATTRIBUTES = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'taskName',
    'message', 'getMessage',
])


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        # Add exception information if present
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Add extra fields from record (e.g. record_id passed via extra=)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(environment: str = "development",
                  log_level: str = "INFO",
                  log_dir: Optional[str] = None) -> None:
    """
    Set up logging configuration for the EventOps tooling.

    Args:
        environment: Environment name (development/production)
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR)
        log_dir: Directory for log files (optional)
    """
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

    # Configure root logger
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter(environment))
    logger.addHandler(console_handler)

    if log_dir:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, f"eventops_{environment}.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(_build_formatter(environment))
        logger.addHandler(file_handler)

    # The event loop logs every slow callback at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _build_formatter(environment: str) -> logging.Formatter:
    """JSON for production, human-readable lines everywhere else."""
    if environment == "production":
        return JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')
    return logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_performance(func):
    """
    Decorator to log function execution time.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function with performance logging
    """
    import time
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.time()

        logger.debug(f"Starting {func.__name__}")
        try:
            result = func(*args, **kwargs)
            duration = time.time() - start_time
            logger.debug(f"Completed {func.__name__} in {duration:.3f}s")
            return result
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"Failed {func.__name__} after {duration:.3f}s: {str(e)}")
            raise

    return wrapper
