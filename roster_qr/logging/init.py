from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logger with one-word level labels.

Every line the tool prints starts with INFO, WARN, ERROR or SUMMARY (DEBUG
with --debug), for example

    INFO roster read: record.xlsx [夥伴名單] rows=42 rejected=1
    WARN image skipped: image not found: member_qrcode/E004.png
    SUMMARY passes=2/2 generated=80/80 inserted=80/80 ...

Components take a logger argument; get_logger() supplies the shared one when
none is given.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "enable_debug",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "roster_qr"

# between INFO (20) and WARNING (30)
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """'<LABEL> <message>'; unknown levels fall back to the level name."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Configure the application logger once; later calls return it unchanged.

    Output goes to ``stream`` (default: the current sys.stdout) through a
    single handler, and is not propagated to the root logger.
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    _logger = logger
    return logger


def enable_debug(logger: logging.Logger | None = None) -> None:
    """Lower the logger and all of its handlers to DEBUG."""
    log = logger or get_logger()
    log.setLevel(logging.DEBUG)
    for handler in log.handlers:
        handler.setLevel(logging.DEBUG)


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str, logger: logging.Logger | None = None) -> None:
    (logger or get_logger()).log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _logger
    _logger = None
