"""
Shared Todo Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions carrying an HTTP status and an API code.
How:   Each exception carries a message, a machine-readable `code`, optional
       client-facing `details` and an internal `context` dict. Global exception
       handlers (registered in main.py) turn them into the response envelope:

           {"success": false, "error": {"code": ..., "message": ..., "details": ...}}

Who:   Raised by services, the credential service and the auth dependency;
       caught by global handlers.

Exception Hierarchy:
    SharedTodoError (base)               → 500
    ├── ValidationError                  → 400 VALIDATION_ERROR
    ├── BadRequestError                  → 400 (code supplied by caller)
    ├── AuthenticationError              → 401 AUTHENTICATION_ERROR
    │   ├── InvalidTokenError            → 401 INVALID_TOKEN
    │   └── TokenExpiredError            → 401 TOKEN_EXPIRED
    ├── AuthorizationError               → 403 AUTHORIZATION_ERROR
    ├── NotFoundError                    → 404 NOT_FOUND
    ├── ConflictError                    → 409 CONFLICT
    ├── RateLimitExceededError           → 429 RATE_LIMIT_EXCEEDED
    └── DatabaseError                    → 500 DATABASE_ERROR

Permission failures on existing-but-inaccessible notes and tasks are raised
as NotFoundError so they cannot be told apart from absence.
"""

from typing import Any, Dict, List, Optional


class SharedTodoError(Exception):
    """
    Base exception for all Shared Todo application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        code:     Machine-readable error code for the envelope
        details:  Client-facing structured details (validation errors only)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    default_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        code: Optional[str] = None,
        details: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SharedTodoError):
    """
    Raised when client input fails validation.

    `details` is a list of ``{"field": ..., "message": ...}`` entries; it is
    the only error payload surfaced to the client beyond code/message.
    """

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details or [], context=context)


class BadRequestError(SharedTodoError):
    """A well-formed request that breaks a business rule (INVALID_ASSIGNEE, ...)."""

    status_code = 400
    default_code = "BAD_REQUEST"


class AuthenticationError(SharedTodoError):
    """Missing, malformed or rejected credentials."""

    status_code = 401
    default_code = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str = "Authentication required",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, context=context)


class InvalidTokenError(AuthenticationError):
    default_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid authentication token", **kwargs):
        super().__init__(message=message, **kwargs)


class TokenExpiredError(AuthenticationError):
    default_code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Authentication token has expired", **kwargs):
        super().__init__(message=message, **kwargs)


class AuthorizationError(SharedTodoError):
    """
    Raised when an identified caller is not allowed to act.

    Only used where existence is already known to the caller (for example an
    invitation addressed by its token). Note and task permission failures use
    NotFoundError instead.
    """

    status_code = 403
    default_code = "AUTHORIZATION_ERROR"

    def __init__(
        self,
        message: str = "Insufficient permissions",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, context=context)


class NotFoundError(SharedTodoError):
    """
    Raised when a requested resource does not exist or is not visible.

    SQLAlchemy returns None for rows filtered out by the access predicate;
    services convert that None into this exception.
    """

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, code=code, context=ctx)


class ConflictError(SharedTodoError):
    """Duplicate email, duplicate collaborator, duplicate pending invitation."""

    status_code = 409
    default_code = "CONFLICT"


class RateLimitExceededError(SharedTodoError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header with the seconds until the
    oldest request leaves the window.
    """

    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(SharedTodoError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQL error is
    logged server-side only.
    """

    status_code = 500
    default_code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
