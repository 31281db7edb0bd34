"""Chart load and write exceptions."""

from __future__ import annotations


class ChartError(Exception):
    """Base exception for chart handling.

    Attributes:
        message: Human-readable error message.
        source: URI or path of the chart involved (if applicable).
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.source:
            return f"{self.message} [{self.source}]"
        return self.message


class ChartLoadError(ChartError):
    """Raised when a chart cannot be read from its source."""


class ChartWriteError(ChartError):
    """Raised when a chart cannot be serialized to an archive."""
