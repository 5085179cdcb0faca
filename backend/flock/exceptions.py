"""
Flock Backend — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Services signal failures by raising; global handlers (registered in
       main.py) turn them into JSON responses with the right status code.
How:   Each exception class carries a short client-facing message and an
       optional context dict that is logged but never returned.
Who:   Raised by services and the session dependency; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    FlockError (base)
    ├── ValidationError     → 400 Bad Request (client can fix)
    ├── UnauthorizedError   → 401 Unauthorized (no/invalid session, bad credentials, not owner)
    ├── NotFoundError       → 404 Not Found
    ├── ImageStorageError   → 500 Internal Server Error
    └── DatabaseError       → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class FlockError(Exception):
    """
    Base exception for all Flock application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FlockError):
    """
    Raised when client input fails a business rule.

    When:    Malformed email, taken username, short password, empty post or comment.
    HTTP:    400 Bad Request

    Schema-level problems (missing JSON fields, wrong types) are caught earlier
    by FastAPI and rendered with the same 400 shape.
    """

    code = "validation_error"

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


class UnauthorizedError(FlockError):
    """
    Raised when the caller is not allowed to perform the request.

    When:    Missing/invalid/expired session cookie, session for a deleted
             account, bad login credentials, wrong current password, or an
             attempt to delete someone else's post or notification.
    HTTP:    401 Unauthorized

    Login failures always use the same message so the response does not reveal
    whether the username exists.
    """

    code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FlockError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    The message is "<Resource> not found" ("User not found", "Post not found").
    The identifier is kept in the context for logs only.
    """

    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message or f"{resource.capitalize()} not found", context=ctx)


class ImageStorageError(FlockError):
    """
    Raised when an image cannot be written to the image host.

    HTTP:    500 Internal Server Error

    Deleting images never raises this: destroy is best-effort and only logs.
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "Failed to store image. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(FlockError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Driver errors
        (SQL text, constraint names) are logged server-side only.
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
