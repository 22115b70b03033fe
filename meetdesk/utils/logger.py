"""
Logging configuration

Every MeetDesk logger hangs off the "meetdesk" logger, which owns the single
stdout handler. Loggers for modules outside the package get their own handler.
"""
import logging
import sys
from meetdesk.config import get_settings

settings = get_settings()

ROOT_LOGGER_NAME = "meetdesk"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level() -> int:
    if settings.DEBUG:
        return logging.DEBUG
    return getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)


def _attach_handler(logger: logging.Logger) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        # uvicorn configures the root logger too; avoid printing twice
        logger.propagate = False
    logger.setLevel(_level())


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance"""
    logger = logging.getLogger(name)

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        _attach_handler(logging.getLogger(ROOT_LOGGER_NAME))
    else:
        _attach_handler(logger)
    return logger
