"""Exception types raised by the backlink pipeline."""

from __future__ import annotations


class BacklinkerError(Exception):
    """Base class for pipeline failures."""


class FetchError(BacklinkerError):
    """A page could not be fetched (network error, timeout or non-2xx)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class OracleError(BacklinkerError):
    """The language model call failed or returned an unusable response."""


class StoreError(BacklinkerError):
    """A database read or write failed."""
