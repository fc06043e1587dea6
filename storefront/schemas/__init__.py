"""
Form schemas.
"""

from storefront.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ProfileUpdateRequest,
    AdminUserUpdateRequest,
    parse_form,
    validation_messages,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ProfileUpdateRequest",
    "AdminUserUpdateRequest",
    "parse_form",
    "validation_messages",
]
