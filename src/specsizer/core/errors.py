from __future__ import annotations


class SizingError(Exception):
    """Base class for failures that abort a sizing query."""


class ConfigError(SizingError):
    """Contradictory or out-of-range configuration."""


class FetchError(SizingError):
    """Network failure, timeout or non-success response from the results site."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ParseError(SizingError):
    """The downloaded table is malformed as a whole."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
