"""Domain exceptions raised by services and rendered by the API layer."""

from __future__ import annotations

from typing import Any


class DomainError(RuntimeError):
    """Base exception for failures that map to a client-facing response."""

    status_code: int = 400

    def __init__(self, message: str, *, detail: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationFailed(DomainError):
    """Raised when input is missing or malformed."""

    status_code = 400


class AuthenticationFailed(DomainError):
    """Raised when credentials or tokens cannot be verified."""

    status_code = 401


class PermissionDenied(DomainError):
    """Raised when the principal may not act on the requested resource."""

    status_code = 403


class NotFound(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a write would violate a uniqueness rule."""

    status_code = 400


class InvalidTransition(DomainError):
    """Raised when a status change is not permitted from the current state."""

    status_code = 400

    def __init__(self, entity: str, current_status: str, requested_status: str) -> None:
        super().__init__(f"Cannot transition {entity} from {current_status} to {requested_status}")
        self.current_status = current_status
        self.requested_status = requested_status


__all__ = [
    "AuthenticationFailed",
    "ConflictError",
    "DomainError",
    "InvalidTransition",
    "NotFound",
    "PermissionDenied",
    "ValidationFailed",
]
