"""Centralized logging configuration."""

import logging
from typing import Dict, Optional

from backcountry_chat.config import DEBUG, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log on their own handler, with their level
LIBRARY_LOG_LEVELS: Dict[str, int] = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.INFO,
    "uvicorn.error": logging.INFO,
    "fastapi": logging.INFO,
    # httpx logs every request line, which includes the Twilio account SID
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "twilio": logging.WARNING,
}


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: Optional[str] = None):
    """
    Install one console handler on the root logger and give the server and
    provider SDK loggers the same format.

    Args:
        level: Level name for application loggers. Defaults to LOG_LEVEL,
            or DEBUG when the DEBUG flag is set.
    """
    level_name = (level or ("DEBUG" if DEBUG else LOG_LEVEL)).upper()
    app_level = logging.getLevelName(level_name)
    if not isinstance(app_level, int):
        app_level = logging.INFO

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(app_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(_console_handler(app_level, formatter))

    for logger_name, library_level in LIBRARY_LOG_LEVELS.items():
        library_logger = logging.getLogger(logger_name)
        library_logger.setLevel(min(library_level, app_level))
        for handler in library_logger.handlers[:]:
            library_logger.removeHandler(handler)
        library_logger.propagate = False
        library_logger.addHandler(_console_handler(library_logger.level, formatter))
