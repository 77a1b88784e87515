"""
CareLink Services — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and stores; caught by global handlers.
When:  During request processing when a request cannot be completed.

Exception Hierarchy:
    CareLinkError (base)         → 500 Internal Server Error
    ├── ValidationError          → 400 Bad Request (missing required field)
    ├── NotFoundError            → 404 Not Found
    ├── AuthorizationError       → 403 Forbidden (record owned by another patient)
    └── DependencyError          → 500 Internal Server Error (document store failed)

Audit-log failures are deliberately absent: AuditLogger catches and logs them
and never lets them reach a handler.
"""

from typing import Any, Dict, Iterable, Optional


class CareLinkError(Exception):
    """
    Base exception for all CareLink application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where a handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CareLinkError):
    """
    Raised when a required request field is missing or empty.

    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "id and patientId are required",
            "details": {"fields": ["id"]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[Iterable[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        field_list = list(fields or [])
        if field_list:
            ctx["fields"] = field_list
        super().__init__(message=message, context=ctx)
        self.fields = field_list


class NotFoundError(CareLinkError):
    """
    Raised when a referenced record or code does not exist.

    HTTP:    404 Not Found

    Callers may pass a ready-made message (partner codes use
    "Invalid or expired partner code"); otherwise one is built from the
    resource name.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AuthorizationError(CareLinkError):
    """
    Raised when a caller acts on a record that belongs to another patient.

    When:    The stored caretaker's patientId differs from the supplied one.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DependencyError(CareLinkError):
    """
    Raised when a document store operation fails.

    HTTP:    500 Internal Server Error

    The store's own error text is kept in context["reason"]. The handler in
    main.py returns it to the caller only when settings.expose_error_details
    is enabled.
    """

    def __init__(
        self,
        message: str = "A document store error occurred",
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason is not None:
            ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason
