"""Exception hierarchy shared by all lazydocs components."""

from __future__ import annotations

from typing import Optional


class LazydocsError(Exception):
    """Base class for errors raised by lazydocs."""


class NetworkError(LazydocsError):
    """Transport failure, non-success HTTP status or malformed payload."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(LazydocsError):
    """A docset, bundle or entry does not exist."""


class ConversionError(LazydocsError):
    """A single page could not be converted to text."""


class StorageError(LazydocsError):
    """Reading, writing or deleting files on disk failed."""


class TransactionError(LazydocsError):
    """An index write failed and was rolled back."""


class InvalidBundleError(LazydocsError):
    """A raw bundle is not a JSON object mapping paths to markup."""


class QueryError(LazydocsError):
    """A read query against the index failed."""
