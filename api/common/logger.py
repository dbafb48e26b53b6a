"""
Logging setup shared by the whole application.
"""
import logging

from api.common.config import LOG_LEVEL

LOGGER_NAME = "sales_api"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """
    Configure the application logger with a console handler.

    Calling this more than once does not add duplicate handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.debug("Logger initialized")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger for the given module name."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
