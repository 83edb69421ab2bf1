"""User endpoints: registration, activation, own profile and admin listing."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status

from bankapi.api.deps import get_mailer, get_store, require_activated_user, require_permission
from bankapi.api.errors import http_error
from bankapi.core.config import Settings, get_settings
from bankapi.core.errors import AccountError
from bankapi.schemas.auth import TokenResponse
from bankapi.schemas.users import (
    ActivateRequest,
    RegisterRequest,
    RegisterResponse,
    UpdateUserRequest,
    UserEnvelope,
    UserResponse,
    UsersListResponse,
)
from bankapi.services.accounts import activate_user, register_user, update_user_profile
from bankapi.services.authentication import Identity
from bankapi.services.mailer import Mailer
from bankapi.services.store import AccountStore

router = APIRouter()

PERMISSION_USERS_READ = "users:read"


@router.post("", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    store: Annotated[AccountStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> RegisterResponse:
    """
    Register an inactive user and return the activation token. The token is
    also mailed to the user after the response is sent.
    """
    try:
        user, token = register_user(
            store, settings, body.name, body.email, body.password.get_secret_value()
        )
    except AccountError as e:
        raise http_error(e) from e
    background_tasks.add_task(
        mailer.send_activation, user.id, user.email, user.username, token.plaintext
    )
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        activation_token=TokenResponse(token=token.plaintext, expiry=token.expiry),
    )


@router.put("/activated", response_model=UserEnvelope)
def activate(
    body: ActivateRequest,
    store: Annotated[AccountStore, Depends(get_store)],
) -> UserEnvelope:
    """Activate the account owning an activation token. Tokens are single-use."""
    try:
        user = activate_user(store, body.token)
    except AccountError as e:
        raise http_error(e) from e
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserEnvelope)
def get_me(
    identity: Annotated[Identity, Depends(require_activated_user)],
    store: Annotated[AccountStore, Depends(get_store)],
) -> UserEnvelope:
    try:
        user = store.get_user_by_id(identity.user.id)
    except AccountError as e:
        raise http_error(e) from e
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.patch("/me", response_model=UserEnvelope)
def update_me(
    body: UpdateUserRequest,
    identity: Annotated[Identity, Depends(require_activated_user)],
    store: Annotated[AccountStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserEnvelope:
    """Update own profile. Send the version from the last read; 409 means reload and retry."""
    try:
        user = update_user_profile(
            store,
            settings,
            identity.user.id,
            body.version,
            name=body.name,
            email=body.email,
            password=body.password.get_secret_value() if body.password is not None else None,
        )
    except AccountError as e:
        raise http_error(e) from e
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get("", response_model=UsersListResponse)
def list_users(
    _identity: Annotated[Identity, Depends(require_permission(PERMISSION_USERS_READ))],
    store: Annotated[AccountStore, Depends(get_store)],
) -> UsersListResponse:
    """List all users (requires the users:read permission)."""
    try:
        users = store.list_users()
    except AccountError as e:
        raise http_error(e) from e
    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])
