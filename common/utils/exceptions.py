"""
HTTP exceptions carrying a stable error code.

Every subclass fixes its status and default text; raise sites pass the
user-facing message and a code such as ``DUPLICATE_EMAIL``. The error
handlers render ``exc.message`` into the page, or into ``error_response``
for ``/api/`` paths.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException


class APIException(HTTPException):
    """Base class: ``detail`` is ``{"message", "code"?, "details"?}``."""

    status: int = 500
    default_message: str = "Something went wrong. Please try again."
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        detail: Dict[str, Any] = {
            "message": message or self.default_message,
            "code": code or self.default_code,
        }
        if details is not None:
            detail["details"] = details
        super().__init__(status_code=self.status, detail=detail, headers=headers)

    @property
    def message(self) -> str:
        return self.detail["message"]

    @property
    def code(self) -> str:
        return self.detail["code"]

    @property
    def details(self) -> Optional[Any]:
        return self.detail.get("details")


class BadRequestException(APIException):
    status = 400
    default_message = "Bad request."
    default_code = "BAD_REQUEST"


class ValidationException(BadRequestException):
    """400 with the list of failed form rules in ``details.errors``."""

    default_message = "Please correct the errors below."
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ):
        super().__init__(message, code, {"errors": list(errors)} if errors else None)

    @property
    def errors(self) -> List[str]:
        details = self.details
        return details.get("errors", []) if isinstance(details, dict) else []


class AuthenticationException(APIException):
    """401 from a failed login: unknown user, inactive, unverified or wrong password."""

    status = 401
    default_message = "Login failed."
    default_code = "AUTHENTICATION_FAILED"


class UnauthorizedException(APIException):
    """401: no authenticated session."""

    status = 401
    default_message = "You must be logged in to access this page."
    default_code = "UNAUTHENTICATED"


class ForbiddenException(APIException):
    """403: a session exists but lacks the role."""

    status = 403
    default_message = "Access denied. Admin privileges required."
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    status = 404
    default_message = "Not found."
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    status = 409
    default_message = "Conflict."
    default_code = "CONFLICT"


class InternalServerException(APIException):
    status = 500
