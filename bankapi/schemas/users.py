"""Request/response schemas for user registration, activation and profile updates."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, SecretStr, model_validator

from bankapi.core.security import (
    PASSWORD_MIN_LEN,
    PASSWORD_TOO_LONG,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    password_too_long,
)
from bankapi.schemas.auth import EMAIL_PATTERN, TokenResponse


def _check_password_length(v: SecretStr) -> SecretStr:
    if len(v.get_secret_value()) < PASSWORD_MIN_LEN:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LEN} characters long")
    if password_too_long(v.get_secret_value()):
        raise ValueError(PASSWORD_TOO_LONG)
    return v


Password = Annotated[SecretStr, AfterValidator(_check_password_length)]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: Password


class ActivateRequest(BaseModel):
    token: str = Field(..., description="Activation token plaintext")


class UpdateUserRequest(BaseModel):
    """
    Partial profile update. version must be the one the client last saw;
    a stale version is rejected with 409 and the client should reload.
    """

    version: int = Field(..., ge=1)
    name: str | None = Field(default=None, min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    password: Password | None = None

    @model_validator(mode="after")
    def require_change(self) -> "UpdateUserRequest":
        if self.name is None and self.email is None and self.password is None:
            raise ValueError("at least one of name, email or password must be provided")
        return self


class UserResponse(BaseModel):
    """Public view of a user: never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = Field(validation_alias="username")
    email: str
    activated: bool
    version: int
    created_at: datetime


class UserEnvelope(BaseModel):
    user: UserResponse


class UsersListResponse(BaseModel):
    users: list[UserResponse]


class RegisterResponse(BaseModel):
    user: UserResponse
    activation_token: TokenResponse
