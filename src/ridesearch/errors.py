"""Exceptions raised by the ride matching engine."""

from __future__ import annotations


class RideSearchError(Exception):
    """Base class for ride search failures."""


class InvalidSearchRequestError(RideSearchError, ValueError):
    """A search request field is missing or outside its allowed range."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class SearchCancelledError(RideSearchError):
    """Ranking was aborted because the caller signalled cancellation."""
