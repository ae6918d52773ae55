"""
Separate logging configuration to avoid circular dependencies.

This module is responsible for:
- Setting up Loguru's handlers (sinks)
- Configuring the InterceptHandler for standard library logging
- Defining the core logging setup (setup_logging function)

It does NOT:
- Provide a logger instance directly (to avoid circular imports)
- Contain any application-specific logging logic
"""
import logging
import sys
from typing import Any, Dict, Optional
from pathlib import Path

from loguru import logger
from vtype.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message} | {extra}"


class InterceptHandler(logging.Handler):
    """
    Intercept standard logging messages and route them to Loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record.
        """
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(log_dir: Optional[Path] = None, console_log_level: Optional[str] = None) -> None:
    """
    Configure Loguru logging.

    Intercepts standard logging and adds custom sinks:
    - Console output (stdout)
    - File-based logging with rotation

    Args:
        log_dir: The directory to store log files.
        console_log_level: The log level for console output.
    """

    # Remove default handler
    logger.remove()

    log_directory = Path(log_dir or settings.LOG_DIR)
    if console_log_level is None:
        console_log_level = "DEBUG" if settings.ENVIRONMENT == "testing" else settings.LOG_LEVEL

    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=console_log_level,
        colorize=True,
        backtrace=True,
        diagnose=settings.ENVIRONMENT != "production",
    )

    log_directory.mkdir(parents=True, exist_ok=True)

    # Common log configuration
    log_config: Dict[str, Any] = {
        "rotation": "1 day",  # Rotate logs daily
        "retention": "7 days",  # Keep logs for 7 days
        "compression": "zip",  # Compress old log files
        "backtrace": True,
        "diagnose": False,
    }

    logger.add(
        log_directory / "vtype.log",
        format=LOG_FORMAT,
        level="DEBUG",
        **log_config,
    )

    logger.add(
        log_directory / "error.log",
        format=LOG_FORMAT,
        level="ERROR",
        **log_config,
    )

    # Configure standard library logging interception
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Uvicorn and SQLAlchemy install their own handlers; route them through loguru only
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine"):
        std_logger = logging.getLogger(logger_name)
        std_logger.handlers = []
        std_logger.propagate = True
