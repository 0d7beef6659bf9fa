from __future__ import annotations

import logging
import os
import sys
from typing import NoReturn, Optional, Union

import colorlog
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL_ENV = "LOG_LEVEL"
TRACE = 5


class AppLogger(logging.Logger):
    def error_raise(
        self,
        message: str,
        *,
        exc: Optional[Union[BaseException, type[BaseException]]] = None,
    ) -> NoReturn:
        """
        Log ``message`` at ERROR level, then raise.
        ``exc`` may be an exception class (instantiated with ``message``) or an
        instance; without it a RuntimeError is raised.
        """
        self.error(message)
        if exc is None:
            raise RuntimeError(message)
        if isinstance(exc, type):
            raise exc(message)
        raise exc

    def trace(self, message: str, *args, **kwargs) -> None:
        """Log at the TRACE level (5), below DEBUG; enabled with LOG_LEVEL=TRACE."""
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.classname = record.module
        record.funcname = record.funcName
        return True


def _determine_level() -> int:
    raw_level = (os.getenv(LOG_LEVEL_ENV) or "").upper()
    return {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
        "TRACE": TRACE,
    }.get(raw_level, logging.INFO)


def _build_formatter() -> logging.Formatter:
    base_format = "[%(levelname)s] %(asctime)s - %(classname)s:%(lineno)d %(funcname)s(): %(message)s"
    return colorlog.ColoredFormatter(
        fmt="%(log_color)s" + base_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "TRACE": "white",
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
    )


def setup_logger(name: str) -> AppLogger:
    logging.addLevelName(TRACE, "TRACE")
    previous_class = logging.getLoggerClass()
    logging.setLoggerClass(AppLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous_class)
    if getattr(logger, "_logger_initialized", False):  # type: ignore[attr-defined]
        return logger  # type: ignore[return-value]

    logger.setLevel(_determine_level())
    logger.propagate = False

    formatter = _build_formatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.NOTSET)
    stdout_handler.addFilter(lambda record: record.levelno < logging.ERROR)
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.addFilter(ContextFilter())
    logger._logger_initialized = True  # type: ignore[attr-defined]
    return logger  # type: ignore[return-value]


logger: AppLogger = setup_logger("mlutil")

__all__ = ["logger", "setup_logger", "AppLogger", "TRACE"]
