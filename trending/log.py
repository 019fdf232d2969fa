"""Console + daily file logging for the trending pipeline.

Modules log through child loggers (``trending.extraction``, ``trending.store``
...) so the file log shows which stage and which worker thread wrote a line.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from .config import LOGS_DIR

LOGGER_NAME = "trending"
CONSOLE_FORMAT = "  %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"

_logger = None


def log_file_for(day: datetime | None = None) -> Path:
    return LOGS_DIR / f"trending_{(day or datetime.now()):%Y%m%d}.log"


def _file_handler() -> logging.Handler | None:
    """Daily DEBUG file handler, or None when the log directory is not writable."""
    try:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file_for(), encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _configure() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    file_handler = _file_handler()
    if file_handler is not None:
        logger.addHandler(file_handler)
    return logger


def get_logger(component: str | None = None) -> logging.Logger:
    """The ``trending`` logger, or its child for one component."""
    global _logger
    if _logger is None:
        _logger = _configure()
    return _logger.getChild(component) if component else _logger


def set_verbose(verbose: bool = True):
    """Switch console output to DEBUG level."""
    for handler in get_logger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(logging.DEBUG if verbose else logging.INFO)


def log(msg: str):
    """Progress line on the console, INFO level."""
    get_logger().info(msg)
