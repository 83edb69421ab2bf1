"""Pydantic request/response schemas."""

from bankapi.schemas.auth import (
    AuthenticationTokenResponse,
    CurrentUser,
    LoginRequest,
    TokenResponse,
)
from bankapi.schemas.health import HealthResponse, SystemInfo
from bankapi.schemas.users import (
    ActivateRequest,
    RegisterRequest,
    RegisterResponse,
    UpdateUserRequest,
    UserEnvelope,
    UserResponse,
    UsersListResponse,
)

__all__ = [
    "ActivateRequest",
    "AuthenticationTokenResponse",
    "CurrentUser",
    "HealthResponse",
    "SystemInfo",
    "LoginRequest",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    "UpdateUserRequest",
    "UserEnvelope",
    "UserResponse",
    "UsersListResponse",
]
