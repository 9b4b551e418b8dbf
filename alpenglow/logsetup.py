"""Logging setup with a compact, colourised one-line format."""

from __future__ import annotations

import logging
import os
import sys

TRACE = 5
ENV_VAR = "ALPENGLOW_LOG"
HANDLER_NAME = "alpenglow"

_LEVEL_NAMES = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}

_COLORS = {
    "ERROR": "\x1b[31m",
    "WARN": "\x1b[33m",
    "INFO": "\x1b[32m",
    "DEBUG": "\x1b[34m",
    "TRACE": "\x1b[35m",
}
_RESET = "\x1b[0m"


def _label(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    if levelno >= logging.DEBUG:
        return "DEBUG"
    return "TRACE"


class MinimalFormatter(logging.Formatter):
    """Formats records as a right-aligned level followed by the message."""

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        label = _label(record.levelno)
        level = f"{label:>5}"
        if self.color:
            level = f"{_COLORS[label]}{level}{_RESET}"
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{level} {message}"


def _level_from_env() -> int:
    value = os.environ.get(ENV_VAR, "").strip().lower()
    return _LEVEL_NAMES.get(value, logging.ERROR)


def _install(formatter: logging.Formatter) -> logging.Handler:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.name == HANDLER_NAME]:
        root.removeHandler(existing)
    level = _level_from_env()
    handler = logging.StreamHandler(sys.stderr)
    handler.name = HANDLER_NAME
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)
    return handler


def enable_logging() -> logging.Handler:
    """Log to stderr in the minimal coloured format; level from ``ALPENGLOW_LOG``."""
    return _install(MinimalFormatter())


def enable_logging_stderr() -> logging.Handler:
    """Log to stderr in a detailed format; level from ``ALPENGLOW_LOG``."""
    return _install(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))