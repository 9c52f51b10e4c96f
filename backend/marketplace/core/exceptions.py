"""
Marketplace Domain Exceptions

Error taxonomy shared by services, repositories and the HTTP layer.
Each class carries a stable error code and the HTTP status it maps to.
"""

from typing import Optional, Any, Dict


class MarketplaceException(Exception):
    """Base exception for all marketplace errors.

    Services raise these; the API layer translates them into responses.
    Never swallow them - always preserve context.
    """

    status_code: int = 500
    default_code: str = "MARKETPLACE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(MarketplaceException):
    """Raised for malformed input (bad email, out-of-range discount, ...)."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class AuthenticationError(MarketplaceException):
    """Raised when credentials are missing or invalid."""

    status_code = 401
    default_code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Invalid credentials", **kwargs):
        super().__init__(message, **kwargs)


class AuthorizationError(MarketplaceException):
    """Raised when an authenticated user may not perform an action."""

    status_code = 403
    default_code = "AUTHORIZATION_ERROR"


class NotFoundError(MarketplaceException):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str,
        identifier: Optional[Any] = None,
        message: Optional[str] = None,
    ):
        details = {"resource": resource}
        if identifier is not None:
            details["identifier"] = str(identifier)
        super().__init__(message or f"{resource} not found", details=details)


class ConflictError(MarketplaceException):
    """Raised on duplicates and unique-constraint violations."""

    status_code = 409
    default_code = "CONFLICT"


class InfrastructureError(MarketplaceException):
    """Raised when the persistence layer is unreachable or fails."""

    status_code = 500
    default_code = "INFRASTRUCTURE_ERROR"

    def __init__(
        self,
        message: str = "Database error",
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error_type"] = type(original_error).__name__
        super().__init__(message, details=details)
        if original_error:
            self.__cause__ = original_error
