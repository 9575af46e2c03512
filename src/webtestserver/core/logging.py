"""Console logging for webtestserver.

Provides unified logging with 4 verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info
- DEBUG (3): Everything including internal state

Usage:
    from webtestserver.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)  # VERBOSE

    logger.debug("Internal state")
    logger.verbose("Listing tests/cases")
    logger.info("Static file server running")
    logger.warning("Unknown browser")
    logger.error("Failed to launch browser")
"""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import TextIO


class VerbosityLevel(IntEnum):
    """Verbosity levels for webtestserver."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}

# Global verbosity level
_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL

# Color support
_USE_COLORS: bool = True


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3, level name, or VerbosityLevel enum)
    """
    global _VERBOSITY

    if isinstance(level, str):
        level = LEVEL_NAMES[level.strip().lower()]
    elif isinstance(level, int):
        level = VerbosityLevel(level)

    _VERBOSITY = level


def get_verbosity() -> VerbosityLevel:
    """Get current verbosity level."""
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    """Enable or disable colored output."""
    global _USE_COLORS
    _USE_COLORS = enabled


# tag -> ANSI color
_TAG_COLORS = {
    "debug": "\033[36m",
    "verbose": "\033[34m",
    "info": "\033[32m",
    "warning": "\033[33m",
    "error": "\033[31m",
}
_RESET = "\033[0m"


class WebTestServerLogger:
    """Named console logger gated by the module-wide verbosity.

    Lines look like ``[info] message``. Errors bypass the verbosity gate
    and go to stderr; everything else goes to stdout.
    """

    def __init__(self, name: str):
        self.name = name

    def _emit(self, tag: str, message: str, stream: TextIO) -> None:
        prefix = f"[{tag}]"
        if _USE_COLORS and stream.isatty():
            prefix = f"{_TAG_COLORS[tag]}{prefix}{_RESET}"
        print(f"{prefix} {message}", file=stream, flush=True)

    def _gated(self, min_level: VerbosityLevel, tag: str, message: str) -> None:
        if _VERBOSITY >= min_level:
            self._emit(tag, message, sys.stdout)

    def debug(self, message: str) -> None:
        self._gated(VerbosityLevel.DEBUG, "debug", message)

    def verbose(self, message: str) -> None:
        """Per-request tracing, shown from VERBOSE up."""
        self._gated(VerbosityLevel.VERBOSE, "verbose", message)

    def info(self, message: str) -> None:
        self._gated(VerbosityLevel.NORMAL, "info", message)

    def warning(self, message: str) -> None:
        self._gated(VerbosityLevel.QUIET, "warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message, sys.stderr)


# Logger registry
_LOGGERS: dict[str, WebTestServerLogger] = {}


def get_logger(name: str = __name__) -> WebTestServerLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = WebTestServerLogger(name)

    return _LOGGERS[name]
