"""Logging configuration and helpers."""

import logging
from enum import StrEnum

from src import settings


class ConsoleFormat(StrEnum):
    """ANSI escape codes for console logging.

    <https://en.wikipedia.org/wiki/ANSI_escape_code#Select_Graphic_Rendition_parameters>
    """

    RESET = "\033[0m"
    BLACK = "\033[30m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    LIGHT_GREY = "\033[37m"
    HIGHLIGHT_RED = "\033[41m"
    BOLD = "\033[1m"


class DefaultConsoleFormatter(logging.Formatter):
    """Plain console formatter."""

    fmt = "{asctime} - {name} - {levelname} - {message}"

    def __init__(self) -> None:
        super().__init__(self.fmt, style="{", validate=True)

    def _template_for(self, record: logging.LogRecord) -> str:
        return self.fmt

    def format(self, record: logging.LogRecord) -> str:
        """Format the specified log record as text."""
        formatter = logging.Formatter(self._template_for(record), style="{", validate=True)
        return formatter.format(record)


class ColourConsoleFormatter(DefaultConsoleFormatter):
    """Console formatter that colours each line by level."""

    COLOURS = {
        logging.DEBUG: ConsoleFormat.LIGHT_GREY,
        logging.INFO: ConsoleFormat.BLUE,
        logging.WARNING: ConsoleFormat.YELLOW,
        logging.ERROR: ConsoleFormat.RED,
        logging.CRITICAL: ConsoleFormat.BOLD + ConsoleFormat.HIGHLIGHT_RED + ConsoleFormat.BLACK,
    }

    def _template_for(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelno, ConsoleFormat.RESET)
        return f"{colour}{self.fmt}{ConsoleFormat.RESET}"


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(settings.LOG_LEVEL)
    if settings.LOG_COLOUR_ENABLED:  # pragma: nocover
        handler.setFormatter(ColourConsoleFormatter())
    else:  # pragma: nocover
        handler.setFormatter(DefaultConsoleFormatter())
    return handler


def get_logger(component: str) -> logging.Logger:
    """Child of the engine logger, e.g. ``cql-engine.reconciler``."""
    return LOGGER.getChild(component)


LOGGER = logging.getLogger(settings.LOGGER_NAME)
LOGGER.setLevel(settings.LOG_LEVEL)
if not LOGGER.handlers:
    LOGGER.addHandler(_build_handler())
