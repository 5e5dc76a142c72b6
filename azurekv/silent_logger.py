# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Silent logger implementation for testing."""

from typing import Any

from .logger import Logger


class SilentLogger(Logger):
    """Logger that keeps entries in memory without output.

    Does not filter by level; every entry is captured so tests can assert on
    decisions logged at DEBUG.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        self.level = level.upper()
        self.name = name or "azurekv"
        self.logs: list[dict[str, Any]] = []

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        log_entry: dict[str, Any] = {
            "level": level,
            "message": message,
        }

        if kwargs:
            log_entry["extra"] = kwargs

        self.logs.append(log_entry)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def clear_logs(self) -> None:
        """Clear all stored log messages."""
        self.logs.clear()

    def get_logs(self, level: str | None = None) -> list[dict[str, Any]]:
        """Get stored entries, optionally filtered by level."""
        if level is None:
            return self.logs
        return [log for log in self.logs if log["level"] == level]

    def has_log(self, message: str, level: str | None = None) -> bool:
        """Check whether an entry containing ``message`` was logged.

        Args:
            message: Substring to search for
            level: Optional log level to filter by

        Returns:
            True if message is found, False otherwise
        """
        logs_to_search = self.get_logs(level) if level else self.logs
        return any(message in log["message"] for log in logs_to_search)
