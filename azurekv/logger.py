# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Abstract logger interface."""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract base class for structured loggers."""

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning-level message."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message."""
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug-level message."""
        pass

    @abstractmethod
    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message from inside an exception handler."""
        pass

    def bind(self, **fields: Any) -> "Logger":
        """Return a logger that adds ``fields`` to every entry.

        Example:
            >>> log = logger.bind(resource_id=record.id)
            >>> log.debug("Reading secret")
        """
        return BoundLogger(self, fields)


class BoundLogger(Logger):
    """Logger wrapper carrying a fixed set of structured fields."""

    def __init__(self, parent: Logger, fields: dict[str, Any]):
        self._parent = parent
        self.fields = dict(fields)

    def _merge(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        # Per-call fields win over bound ones
        return {**self.fields, **kwargs}

    def info(self, message: str, **kwargs: Any) -> None:
        self._parent.info(message, **self._merge(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._parent.warning(message, **self._merge(kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._parent.error(message, **self._merge(kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._parent.debug(message, **self._merge(kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        self._parent.exception(message, **self._merge(kwargs))

    def bind(self, **fields: Any) -> Logger:
        return BoundLogger(self._parent, {**self.fields, **fields})
