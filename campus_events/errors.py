"""
Application errors.

Every rejection raised by a service or a route carries an HTTP status, a
human-readable message and a short machine-checkable ``reason``. The
exception handlers registered in ``main.py`` turn them into the uniform
response envelope ``{success, message, reason, errors?}``.
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "bad_request"

    def __init__(self, message: str, reason: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        body = {"success": False, "message": self.message, "reason": self.reason}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailed(AppError):
    reason = "validation_failed"

    def __init__(self, errors: List[Dict[str, Any]], message: str = "Validation failed"):
        super().__init__(message, errors=errors)

    @classmethod
    def field(cls, field: str, message: str) -> "ValidationFailed":
        return cls([{"field": field, "message": message}])


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "not_authenticated"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"


class StateConflict(AppError):
    """A precondition of a state transition does not hold (duplicate, full, already done...)."""
    reason = "state_conflict"
