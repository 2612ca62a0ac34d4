"""
Logging for the GOAP kernel.

Usage:
    from goap_kernel.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Plan found", extra={"goal": "doorOpen", "length": 1})

Nothing is configured on import. Applications call setup_logging() once,
or attach their own handlers to the "goap_kernel" logger.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, TextIO, Tuple

ROOT_LOGGER_NAME = "goap_kernel"
DEFAULT_LOG_LEVEL = logging.INFO


class GoapLogFormatter(logging.Formatter):
    """[TIMESTAMP] [LEVEL] [COMPONENT] MESSAGE | key=value ..."""

    def __init__(self, include_extra: bool = True) -> None:
        self.include_extra = include_extra
        fmt = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if self.include_extra and getattr(record, "extra_info", None):
            extra = " | ".join(f"{k}={v}" for k, v in record.extra_info.items())
            message += f" | {extra}"
        return message


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that keeps `extra` together as record.extra_info."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> Tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.get("extra", {})
        if extra:
            kwargs["extra"] = {"extra_info": extra}
        return msg, kwargs


def setup_logging(
    level: int = DEFAULT_LOG_LEVEL,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a single console handler to the package logger.

    Calling it again replaces the handler rather than adding another one.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_goap_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(GoapLogFormatter())
    handler._goap_handler = True
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for a component, usually get_logger(__name__)."""
    return StructuredLogger(logging.getLogger(name), {})
