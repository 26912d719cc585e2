"""Domain errors raised by the core and rendered by the API error handlers."""
from __future__ import annotations
from typing import Dict


class BackendResourcesError(Exception):
    """Base domain error carrying a message and the HTTP status to answer with.

    Attributes:
        message: Human-readable message returned to the caller
        status: HTTP status code (default: 500)
    """

    status = 500

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(BackendResourcesError):
    """Malformed user payload. Never reaches the identity provider."""

    status = 400

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("Validation failed: " + ", ".join(sorted(self.errors)))


class ProviderError(BackendResourcesError):
    """The identity provider raised or answered with a non-success status."""
    pass


class NotFoundError(ProviderError):
    """The requested user does not exist in the realm."""

    status = 404
