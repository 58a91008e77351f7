"""
Logging configuration for the application.

``setup_logging`` attaches a console handler and an optional file
handler to the root logger and sets the level of the application's
own ``store_ratings_api`` logger.  Third party loggers keep their
defaults.  Handlers added here are tagged, so building several apps
in one process (as the tests do) adds each handler only once while
the latest level still takes effect.
"""

import logging
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "store_ratings_api"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_TAG = "_store_ratings_handler"


def _tagged(handler: logging.Handler, key: str) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, key)
    return handler


def _has_handler(logger: logging.Logger, key: str) -> bool:
    return any(getattr(h, _HANDLER_TAG, None) == key for h in logger.handlers)


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Configure application logging and return the application logger.

    Parameters
    ----------
    level : str
        Level name for the ``store_ratings_api`` logger (e.g.
        ``"DEBUG"``).  Case insensitive; unknown names fall back to INFO.
    logfile : Optional[str]
        Path of a file to also write records to.  Missing parent
        directories are created.
    """
    root = logging.getLogger()
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if not _has_handler(root, "console"):
        console_handler = _tagged(logging.StreamHandler(), "console")
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        key = f"file:{log_path}"
        if not _has_handler(root, key):
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = _tagged(logging.FileHandler(log_path, encoding="utf-8"), key)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    return app_logger
