"""Request/response schemas for token endpoints and the resolved identity."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, SecretStr

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginRequest(BaseModel):
    """Credentials for issuing an authentication token."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN, description="Email")
    password: SecretStr = Field(..., description="Password")


class TokenResponse(BaseModel):
    """Issued token. The plaintext appears here once and is never returned again."""

    token: str = Field(..., description="Bearer token plaintext")
    expiry: datetime = Field(..., description="Expiry (UTC)")


class AuthenticationTokenResponse(BaseModel):
    """Response for POST /tokens/authentication and /tokens/jwt."""

    authentication_token: TokenResponse


class CurrentUser(BaseModel):
    """Authenticated user snapshot for dependency injection (no password hash)."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    username: str
    email: str
    activated: bool
    version: int
