"""
QueryGate Logging Configuration

Provides centralized logging with:
- Console output
- Rotating file logs (prevents logs from growing too large)
- A dedicated audit logger for executed queries
- A dedicated LLM logger for model calls
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from querygate.core.config import settings

# Default log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

AUDIT_LOGGER_NAME = "audit"
LLM_LOGGER_NAME = "llm"


def create_rotating_file_handler(
    log_path: str,
    max_bytes: int = None,
    backup_count: int = None,
    level: int = logging.DEBUG
) -> RotatingFileHandler:
    """
    Create a rotating file handler with size limits.

    Args:
        log_path: Path to the log file
        max_bytes: Maximum size per log file (default from settings)
        backup_count: Number of backup files to keep (default from settings)
        level: Logging level for this handler

    Returns:
        Configured RotatingFileHandler
    """
    max_bytes = max_bytes or settings.log_max_bytes
    backup_count = backup_count or settings.log_backup_count

    log_file = Path(log_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)

    return handler


def setup_logging(log_level: str | None = None) -> None:
    """
    Configure application logging with rotation.

    Args:
        log_level: Override log level from settings
    """
    level = log_level or settings.log_level

    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )

    if settings.log_to_file:
        file_handler = create_rotating_file_handler(
            settings.log_file_path,
            level=getattr(logging, level)
        )
        logging.getLogger().addHandler(file_handler)

    # Suppress verbose HTTP/database logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.info(
        f"{settings.app_name} logging initialized at {level} level "
        f"(file logging: {'on' if settings.log_to_file else 'off'}, "
        f"audit: {'on' if settings.audit_log_enabled else 'off'})"
    )


def setup_audit_logging(log_path: str | None = None) -> logging.Logger:
    """
    Set up the dedicated audit logger.

    Audit records always go to the application log stream; when file logging
    is enabled they are also written to their own rotating file.

    Args:
        log_path: Path to the audit log file (default from settings)

    Returns:
        Configured audit logger
    """
    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logger.setLevel(logging.INFO)

    if settings.log_to_file and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        handler = create_rotating_file_handler(log_path or settings.audit_log_path, level=logging.INFO)
        logger.addHandler(handler)

    return logger


def get_audit_logger() -> logging.Logger:
    """
    Get the audit logger instance, initializing if needed.

    Returns:
        Logger instance for the audit trail
    """
    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    if logger.level == logging.NOTSET:
        setup_audit_logging()
    return logger


def get_llm_logger() -> logging.Logger:
    """
    Get the LLM logger instance.

    Logs prompt sizes, timings and generated SQL for every model call.

    Returns:
        Logger instance for LLM logging
    """
    logger = logging.getLogger(LLM_LOGGER_NAME)
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
