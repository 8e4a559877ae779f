"""Auth domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import check_password_strength
from ...shared.validators import validate_choice, validate_email, validate_url
from ..users.schemas import UserDetailResponse

SOCIAL_PROVIDERS = ("google", "facebook", "github")


def _strong_password(v: str) -> str:
    error = check_password_strength(v)
    if error:
        raise ValueError(error)
    return v


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    password: str
    photoURL: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _strong_password(v)

    @field_validator("photoURL")
    @classmethod
    def validate_photo(cls, v):
        return validate_url(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class SocialLoginRequest(BaseModel):
    email: str
    name: str = Field(..., min_length=2, max_length=50)
    photoURL: Optional[str] = None
    provider: str = "google"

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v):
        return validate_choice(v.lower(), SOCIAL_PROVIDERS, "Provider")

    @field_validator("photoURL")
    @classmethod
    def validate_photo(cls, v):
        return validate_url(v)


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=10)
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_password(cls, v):
        return _strong_password(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str
    confirmPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_password(cls, v):
        return _strong_password(v)


class AuthResponse(BaseModel):
    user: UserDetailResponse
    token: str


class TokenResponse(BaseModel):
    token: str


class RoleResponse(BaseModel):
    role: str
    status: str
