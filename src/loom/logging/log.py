"""
Leveled logging facility injectable as the ``$L`` built-in.

Wraps the standard library logging module, adding the TRACE and VERBOSE
levels. ``get_logger(name)`` returns a named logger exposing exactly the
same leveled methods as the root facility.
"""

import logging
from typing import Any, Dict

from loom.error.application_error import IllegalValueError

TRACE = 5
VERBOSE = 15
_NONE = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LEVELS: Dict[str, int] = {
    "TRACE": TRACE,
    "VERBOSE": VERBOSE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "NONE": _NONE,
    "ALL": 1,
}


class LeveledLogger:
    """Leveled log methods over a standard library logger."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def trace(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.log(TRACE, message, *args, **kwargs)

    def verbose(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.log(VERBOSE, message, *args, **kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(message, *args, **kwargs)

    def warn(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(message, *args, **kwargs)

    def critical(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.critical(message, *args, **kwargs)


class Log(LeveledLogger):
    """Root logging facility of one application."""

    TRACE = "TRACE"
    VERBOSE = "VERBOSE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    NONE = "NONE"
    ALL = "ALL"

    def __init__(self, root_name: str):
        super().__init__(logging.getLogger(root_name))

    def set_level(self, level: str) -> None:
        """
        Set the level of the application's root logger.

        Raises:
            IllegalValueError: If the level is unknown
        """
        if not isinstance(level, str) or level.upper() not in LEVELS:
            raise IllegalValueError(
                f"Unknown log level {level!r}, expected one of {sorted(LEVELS)}"
            )
        self._logger.setLevel(LEVELS[level.upper()])

    def get_level(self) -> int:
        return self._logger.getEffectiveLevel()

    def get_logger(self, name: str) -> LeveledLogger:
        """Named child logger with the same leveled methods."""
        return LeveledLogger(self._logger.getChild(name))
