"""
LocalMarket Backend: Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the error taxonomy of the API.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py translate them into
       structured JSON responses with the matching HTTP status code.
Who:   Raised by services, the authorization interceptor and the external
       service adapters; caught by the global handlers.

Exception Hierarchy:
    LocalMarketError (base)
    ├── ValidationError        → 400 Bad Request
    ├── AuthenticationError    → 401 Unauthorized
    ├── AuthorizationError     → 403 Forbidden
    ├── NotFoundError          → 404 Not Found
    ├── DatabaseError          → 500 Internal Server Error
    └── ExternalServiceError   → 500 Internal Server Error

The context dict is logged server-side and only returned to the client for
400-class errors, where it names the offending field.
"""

from typing import Any, Dict, Optional


class LocalMarketError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LocalMarketError):
    """
    Raised when client input fails validation.

    When:    Malformed identifier, missing required field, value outside its
             enumeration, or a request that breaks a business rule (e.g.
             cashing out a parcel twice).
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(LocalMarketError):
    """
    Raised when the bearer credential is missing or rejected.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized access",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(LocalMarketError):
    """
    Raised when an authenticated caller lacks the role or ownership a route
    requires.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Forbidden access",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(LocalMarketError):
    """
    Raised when no document matched the given identifier.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(LocalMarketError):
    """
    Raised when a datastore operation fails unexpectedly.

    HTTP:    500 Internal Server Error. The response message is always
             generic; the context is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(LocalMarketError):
    """
    Raised when a delegated third-party service fails.

    What:    The payment gateway, the mail relay, or the identity provider's
             key endpoint returned an error or could not be reached.
    HTTP:    500 Internal Server Error. There is no retry and no circuit
             breaking; the failure surfaces immediately to the caller.

    Attributes:
        service: Name of the failing dependency ("payment_gateway", ...)
    """

    def __init__(
        self,
        service: str,
        message: str = "An external service failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service
