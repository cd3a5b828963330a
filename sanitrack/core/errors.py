"""
Application error taxonomy.

Every domain failure raised by the services is an AppError subclass carrying
an HTTP status and a stable error code. The API layer renders them as
{"error": code, "detail": message}.
"""

from typing import Optional


class AppError(Exception):
    """Base application error with HTTP status code."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.error_code, "detail": self.message}


class ValidationError(AppError):
    """Malformed input or a violated domain invariant (e.g. wrong case status)."""

    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Actor is not permitted to perform the operation."""

    status_code = 403
    error_code = "authorization_error"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        if resource_id:
            message = f"{resource} with id {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(AppError):
    """Uniqueness violation or unresolved write contention."""

    status_code = 409
    error_code = "conflict"
