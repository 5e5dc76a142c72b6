# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Stderr logger emitting JSON lines the orchestrator's plugin host understands."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .logger import Logger


class StderrLogger(Logger):
    """Logger that writes structured JSON logs to stderr.

    A plugin's stdout carries the handshake with the orchestrator, so logs
    must go to stderr. Entries use the ``@level``/``@message``/``@module``
    keys so the host can re-level them; structured fields are flattened into
    the entry.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize stderr logger.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR)
            name: Optional logger name, reported as ``@module``
        """
        self.level = level.upper()
        self.name = name or "azurekv"

        self._level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
        }

        if self.level not in self._level_map:
            raise ValueError(f"Invalid log level: {level}. Must be one of {list(self._level_map.keys())}")

        # Configure a stdlib logger so caplog and handlers can capture records
        self._stdlib_logger = logging.getLogger(self.name)
        self._stdlib_logger.setLevel(logging.NOTSET)

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        """Format and write one log entry.

        Args:
            level: Log level
            message: The log message
            **kwargs: Additional structured data to log
        """
        if self._level_map[level] < self._level_map[self.level]:
            return

        exc_info = kwargs.pop("exc_info", None)

        log_entry: dict[str, Any] = {
            "@timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "@level": level.lower() if level != "WARNING" else "warn",
            "@module": self.name,
            "@message": message,
        }
        for key, value in kwargs.items():
            log_entry.setdefault(key, value)

        try:
            print(json.dumps(log_entry, default=str), file=sys.stderr, flush=True)
        except (TypeError, ValueError) as e:
            print(f"[{level}] {message} (JSON serialization failed: {e})", file=sys.stderr, flush=True)

        extra = {"extra": kwargs} if kwargs else None
        self._stdlib_logger.log(self._level_map[level], message, exc_info=exc_info, extra=extra)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message with exception context."""
        kwargs.setdefault("exc_info", True)
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)
