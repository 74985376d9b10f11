"""Error taxonomy shared by the API, the local dispatcher and the client."""
from __future__ import annotations


class WebFitError(Exception):
    """Base class for errors surfaced to callers as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WebFitError):
    """A required field is missing or a value is out of range."""

    status_code = 400


class NotFoundError(WebFitError):
    """The referenced record does not exist."""

    status_code = 404


class StorageError(WebFitError):
    """The backing store failed to read or write."""

    status_code = 500
