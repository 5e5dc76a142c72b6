# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Factory functions for creating logger instances."""

import logging
import os

from .logger import Logger
from .silent_logger import SilentLogger
from .stderr_logger import StderrLogger


def _default(value: str | None, env_var: str, fallback: str) -> str:
    """Pick an explicit value, then env var, then fallback."""
    return (value or os.getenv(env_var) or fallback)


def create_logger(
    logger_type: str | None = None,
    level: str | None = None,
    name: str | None = None,
) -> Logger:
    """Create a logger instance.

    Args:
        logger_type: "stderr" or "silent". Defaults to LOG_TYPE env or "stderr".
        level: DEBUG, INFO, WARNING or ERROR. Defaults to LOG_LEVEL env or "INFO".
        name: Logger name. Defaults to LOG_NAME env or "azurekv".

    Returns:
        Logger instance

    Raises:
        ValueError: If logger_type is not recognized
    """
    logger_type = _default(logger_type, "LOG_TYPE", "stderr").lower()
    level = _default(level, "LOG_LEVEL", "INFO").upper()
    name = _default(name, "LOG_NAME", "azurekv")

    if logger_type == "stderr":
        return StderrLogger(level=level, name=name)
    elif logger_type == "silent":
        return SilentLogger(level=level, name=name)
    else:
        raise ValueError(
            f"Unknown logger_type: {logger_type}. "
            f"Must be one of: stderr, silent"
        )


class _SdkLogHandler(logging.Handler):
    """Stdlib handler that re-emits Azure SDK records as DEBUG entries."""

    def __init__(self, target: Logger):
        super().__init__(level=logging.DEBUG)
        self.target = target

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        self.target.debug(message, sdk_logger=record.name, sdk_level=record.levelname)


def forward_azure_sdk_logs(target: Logger, sdk_logger_name: str = "azure") -> logging.Handler:
    """Route the Azure SDK's stdlib logs through ``target`` at DEBUG.

    ``create_reconciler`` calls this when the provider log level is DEBUG.
    A handler installed by an earlier call is replaced, so the SDK's records
    are forwarded once.

    Returns:
        The installed handler, so callers can remove it again
    """
    sdk_logger = logging.getLogger(sdk_logger_name)
    for existing in list(sdk_logger.handlers):
        if isinstance(existing, _SdkLogHandler):
            sdk_logger.removeHandler(existing)
    handler = _SdkLogHandler(target)
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(logging.DEBUG)
    # Keep SDK records out of the root handlers; the target logger re-emits them
    sdk_logger.propagate = False
    return handler
