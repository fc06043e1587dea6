"""
JSON envelopes, coded HTTP exceptions and password rules.
"""

from common.utils.exceptions import (
    APIException,
    AuthenticationException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from common.utils.password import validate_password
from common.utils.responses import error_response, success_response

__all__ = [
    "APIException",
    "AuthenticationException",
    "BadRequestException",
    "ConflictException",
    "ForbiddenException",
    "InternalServerException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "error_response",
    "success_response",
    "validate_password",
]
