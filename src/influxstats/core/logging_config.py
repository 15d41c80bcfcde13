"""
Structured Logging Configuration
=================================

Provides logging configuration for applications embedding influxstats.
Supports both JSON structured logging (for production) and human-readable
format (for development).

The library itself only creates module-level loggers; nothing here runs on
import. Call setup_logging() from the application entry point.

Features:
- JSON structured logs for production
- Color-coded console logs for development
- Optional file output
- Timing of InfluxDB operations
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional
import json
from datetime import datetime, timezone

from influxstats.core.config import settings


# =================================================================
# LOG FORMATTERS
# =================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON structured logging formatter for production.

    Outputs logs in JSON format with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level (INFO, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - module: Python module name
    - function: Function name
    - line: Line number
    - database: Target database (if attached to the record)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "database"):
            log_data["database"] = record.database

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Color-coded console formatter for development.

    - DEBUG: Gray
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Red background
    """

    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{levelname:8}{self.RESET}"
            )

        formatted = super().format(record)

        # Reset levelname for other handlers
        record.levelname = levelname

        return formatted


# =================================================================
# LOG HANDLERS
# =================================================================

def get_console_handler(environment: Optional[str] = None) -> logging.StreamHandler:
    """
    Get console handler with appropriate formatter.

    Args:
        environment: Deployment environment, defaults to settings.ENVIRONMENT

    Returns:
        StreamHandler: Console handler for stdout
    """
    handler = logging.StreamHandler(sys.stdout)

    if (environment or settings.ENVIRONMENT) == "production":
        formatter = StructuredFormatter()
    else:
        formatter = ColoredFormatter(
            fmt="%(asctime)s - %(name)-30s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    return handler


def get_file_handler(log_file: Path) -> Optional[logging.FileHandler]:
    """
    Get file handler with JSON formatter.

    Returns None when the log directory cannot be created.
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logging.getLogger(__name__).warning(
            f"Could not create log directory: {e}. File logging disabled."
        )
        return None

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(StructuredFormatter())

    return handler


# =================================================================
# LOGGER SETUP
# =================================================================

def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = False
) -> None:
    """
    Configure the root logger for an application using influxstats.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                  Defaults to settings.LOG_LEVEL
        log_file: Path to log file. Defaults to ./logs/influxstats.log
        enable_file_logging: Whether to enable file logging

    Example:
        >>> setup_logging(log_level="DEBUG")
        >>> logger = logging.getLogger(__name__)
        >>> logger.info("Collector started")
    """
    level = log_level or settings.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    root_logger.addHandler(get_console_handler())

    if enable_file_logging:
        if log_file is None:
            log_file = Path("logs/influxstats.log")

        file_handler = get_file_handler(log_file)
        if file_handler:
            root_logger.addHandler(file_handler)

    # Reduce noise from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"🔧 Logging configured: level={level}, environment={settings.ENVIRONMENT}")
    if enable_file_logging:
        logger.info(f"📝 File logging enabled: {log_file}")


# =================================================================
# PERFORMANCE LOGGING
# =================================================================

class PerformanceLogger:
    """
    Context manager for performance logging.

    Logs execution time of code blocks.

    Example:
        >>> with PerformanceLogger("write_points"):
        ...     executor.write(points, "metrics", "", Consistency.ONE)
    """

    def __init__(self, operation_name: str, logger_name: Optional[str] = None):
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name or __name__)
        self.start_time: Optional[float] = None
        self.elapsed: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"⏱️  Started: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type:
            self.logger.error(
                f"❌ Failed: {self.operation_name} ({self.elapsed:.2f}s): {exc_val}"
            )
        else:
            self.logger.debug(
                f"✅ Completed: {self.operation_name} ({self.elapsed:.2f}s)"
            )


# =================================================================
# UTILITY FUNCTIONS
# =================================================================

def log_influx_call(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    status_code: int,
    elapsed_ms: float,
    **extra_data
):
    """
    Log an InfluxDB HTTP call with structured data.

    Example:
        >>> log_influx_call(
        ...     logger,
        ...     method="POST",
        ...     endpoint="/write",
        ...     status_code=204,
        ...     elapsed_ms=12.5,
        ...     points=50
        ... )
    """
    log_data = {
        "influx_call": {
            "method": method,
            "endpoint": endpoint,
            "status_code": status_code,
            "elapsed_ms": elapsed_ms,
            **extra_data
        }
    }

    level = logging.DEBUG if status_code < 400 else logging.ERROR
    logger.log(
        level,
        f"InfluxDB call: {method} {endpoint} [{status_code}] ({elapsed_ms:.1f}ms)",
        extra={"extra_data": log_data}
    )
