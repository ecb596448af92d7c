"""
Centralized logging configuration for contextchat.

Configures the ``contextchat`` parent logger so every child logger
(contextchat.context.selector, contextchat.session.manager, ...)
inherits handlers and level automatically.
"""

import logging
import logging.handlers
from pathlib import Path

LOGGER_NAME = "contextchat"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    console: bool = True,
) -> None:
    """Configure contextchat logging with console and optional file output.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to a rotating log file, ``None`` to disable.
        console: Attach a stderr handler. The TUI turns this off since
            stderr writes would corrupt the screen.
    """
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    parent_logger = logging.getLogger(LOGGER_NAME)
    parent_logger.setLevel(numeric_level)
    parent_logger.propagate = False

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        stream = logging.StreamHandler()
        stream.setLevel(numeric_level)
        stream.setFormatter(fmt)
        parent_logger.addHandler(stream)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(fmt)
        parent_logger.addHandler(file_handler)

    if not parent_logger.handlers:
        parent_logger.addHandler(logging.NullHandler())
