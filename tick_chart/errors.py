"""Exceptions raised inside the ingestion pipeline."""

from __future__ import annotations


class TickParseError(ValueError):
    """A single wire frame could not be turned into (price, timestamp).

    Dropped by the chart; never surfaced to callers.
    """


class StreamConnectionError(ConnectionError):
    """Socket-level failure, handed to ``on_error`` callbacks."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url
