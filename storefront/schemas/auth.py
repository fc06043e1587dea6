"""
Pydantic models for auth form validation.

Forms are posted url-encoded; routes build these models from the
submitted fields so validation failures can be re-rendered inline.
Surrounding whitespace is dropped from names, emails and profile text
but never from passwords.
"""

from typing import Annotated, Any, List, Mapping, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, ValidationError

from common.utils.exceptions import ValidationException

FormT = TypeVar("FormT", bound=BaseModel)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# Text fields are trimmed; passwords are kept exactly as typed
Trimmed = Annotated[str, BeforeValidator(_strip)]
TrimmedEmail = Annotated[EmailStr, BeforeValidator(_strip)]


class RegisterRequest(BaseModel):
    """Registration form."""
    firstName: Trimmed = Field(..., min_length=1, max_length=50)
    lastName: Trimmed = Field(..., min_length=1, max_length=50)
    email: TrimmedEmail
    # Checked by the auth flow so an empty password lists every failed rule
    password: str = ""


class LoginRequest(BaseModel):
    """Login form."""
    email: Trimmed = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: TrimmedEmail


class ResetPasswordRequest(BaseModel):
    password: str = ""
    passwordConfirm: str = ""


class ProfileUpdateRequest(BaseModel):
    address: Trimmed = Field(default="", max_length=200)
    contactNumber: Trimmed = Field(default="", max_length=30)


class AdminUserUpdateRequest(BaseModel):
    role: Trimmed
    accountStatus: Trimmed


FIELD_LABELS = {
    "firstName": "First name",
    "lastName": "Last name",
    "email": "Email",
    "password": "Password",
    "passwordConfirm": "Password confirmation",
    "address": "Address",
    "contactNumber": "Contact number",
    "role": "Role",
    "accountStatus": "Status",
}


def validation_messages(exc: ValidationError) -> List[str]:
    """One readable line per failing field."""
    messages = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else ""
        label = FIELD_LABELS.get(field, field)
        messages.append(f"{label}: {error['msg']}" if label else error["msg"])
    return messages


def parse_form(model: Type[FormT], data: Mapping[str, str]) -> FormT:
    """
    Build a form model from submitted fields.

    Raises:
        ValidationException: A field is missing or malformed
    """
    try:
        return model.model_validate({key: data[key] for key in model.model_fields if key in data})
    except ValidationError as e:
        raise ValidationException(
            "Please correct the errors below.",
            code="INVALID_FORM",
            errors=validation_messages(e),
        ) from e
