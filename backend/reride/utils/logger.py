"""
Logging utilities.

WHAT: Centralized logging configuration
WHY: Offer and message traces need their own verbosity apart from the app
HOW: Python logging with file and console handlers, per-package levels
"""

import logging
import sys
from pathlib import Path

from ..core.config import settings

CHAT_LOGGER = "reride.chat"

# Chatty third-party loggers kept at WARNING unless DEBUG is on
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging():
    """
    Configure application logging.

    WHAT: Root logger with file and console handlers
    WHY: Logs go to the file in full and to the console at INFO
    HOW: LOG_LEVEL for the root, CHAT_LOG_LEVEL for reride.chat
    """
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(_level(settings.LOG_LEVEL))

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(file_handler)

    logging.getLogger(CHAT_LOGGER).setLevel(_level(settings.CHAT_LOG_LEVEL))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if settings.DEBUG else logging.WARNING)

    root_logger.info(
        f"Logging initialized (level={settings.LOG_LEVEL}, "
        f"chat={settings.CHAT_LOG_LEVEL}, file={log_file})"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
