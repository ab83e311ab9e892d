"""
Logging configuration for the application.

``setup_logging`` attaches a console handler (and optionally a file
handler) to the root logger the first time it is called.  Later calls,
for example when tests build several apps, only adjust the level.

Reminder notifications are emitted through the ``REMINDER_LOGGER``
logger.  They always reach the root handlers; when a reminder log file
is configured they are also appended to it, one notification per line.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

REMINDER_LOGGER = "event_planner_api.reminders"
REMINDER_FORMAT = "%(asctime)s %(message)s"


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    reminder_logfile: Optional[str] = None,
) -> None:
    """Configure the root logger and the reminder notification log.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.  Paths are resolved relative to the
        current working directory.
    reminder_logfile : Optional[str]
        Path to a file that receives only reminder notifications.
    """
    logger = logging.getLogger()
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)
    if reminder_logfile:
        _route_reminders(Path(reminder_logfile).resolve())
    if logger.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def _route_reminders(log_path: Path) -> None:
    reminder_logger = logging.getLogger(REMINDER_LOGGER)
    # Notifications are INFO records; keep them even under a WARNING root.
    reminder_logger.setLevel(logging.INFO)
    for handler in reminder_logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(log_path):
            return
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=REMINDER_FORMAT, datefmt=DATE_FORMAT))
    reminder_logger.addHandler(handler)
