"""Shared exceptions for the chat API."""
from typing import Any, Dict, Optional


class DbChatException(Exception):
    """Base exception for chat operations."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DbChatException):
    """Raised when a domain rule rejects the input."""

    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(DbChatException):
    """Raised when a resource is missing or soft-deleted."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(
            message, "NOT_FOUND", {"resource": resource, "identifier": str(identifier)}
        )


class AuthorizationError(DbChatException):
    """Raised by the host boundary when the caller lacks membership."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "FORBIDDEN", details)


class ConflictError(DbChatException):
    """Raised when there's a conflict with existing data."""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFLICT", details)
