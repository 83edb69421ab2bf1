"""Account flows: registration, activation, login, logout and profile updates."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from bankapi.core.errors import (
    DuplicateEmailError,
    EditConflictError,
    InvalidCredentialsError,
    InvalidInputError,
    RecordNotFoundError,
)
from bankapi.core.security import check_dummy_password, hash_password, password_matches
from bankapi.models import User
from bankapi.services.tokens import (
    SCOPE_ACTIVATION,
    SCOPE_AUTHENTICATION,
    IssuedToken,
    TokenFormatError,
    TokenIssuer,
    ttl_for_scope,
    validate_token_plaintext,
)

if TYPE_CHECKING:
    from bankapi.core.config import Settings
    from bankapi.core.security import SignedClaims
    from bankapi.services.store import AccountStore

logger = logging.getLogger(__name__)

INVALID_ACTIVATION_TOKEN = "invalid token"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(
    store: "AccountStore",
    settings: "Settings",
    name: str,
    email: str,
    password: str,
) -> tuple[User, IssuedToken]:
    """
    Create an inactive user, grant the default permissions and issue an
    activation token. The returned token carries the only copy of its plaintext.

    All three writes share one transaction: if any of them fails nothing is
    kept, so the email stays free for another attempt.
    """
    user = User(
        username=name.strip(),
        email=normalize_email(email),
        password_hash=hash_password(password, settings.BCRYPT_ROUNDS),
        activated=False,
    )
    try:
        with store.atomic():
            store.insert_user(user)
            if settings.DEFAULT_PERMISSIONS:
                store.grant_permissions(user.id, *settings.DEFAULT_PERMISSIONS)
            token = TokenIssuer(store).new(
                user.id, ttl_for_scope(SCOPE_ACTIVATION, settings), SCOPE_ACTIVATION
            )
    except DuplicateEmailError as e:
        raise InvalidInputError(e.message) from e
    logger.info("User registered", extra={"user_id": user.id})
    return user, token


def activate_user(store: "AccountStore", plaintext: str) -> User:
    """
    Activate the owner of an activation token and delete every activation
    token of that user, so the same token cannot be replayed.
    """
    try:
        validate_token_plaintext(plaintext)
        user = store.get_user_for_token(SCOPE_ACTIVATION, plaintext)
    except (TokenFormatError, RecordNotFoundError) as e:
        raise InvalidInputError(INVALID_ACTIVATION_TOKEN) from e

    user.activated = True
    with store.atomic():
        store.update_user(user)
        store.delete_tokens_for_user(SCOPE_ACTIVATION, user.id)
    logger.info("User activated", extra={"user_id": user.id})
    return user


def authenticate_credentials(store: "AccountStore", email: str, password: str) -> User:
    """
    Return the user owning email/password. Unknown email and wrong password
    fail identically.
    """
    try:
        user = store.get_user_by_email(normalize_email(email))
    except RecordNotFoundError as e:
        check_dummy_password(password)
        logger.info("Login failed", extra={"reason": "credentials"})
        raise InvalidCredentialsError() from e

    if not password_matches(user.password_hash, password):
        logger.info("Login failed", extra={"reason": "credentials"})
        raise InvalidCredentialsError()
    return user


def issue_authentication_token(
    store: "AccountStore",
    settings: "Settings",
    user_id: int,
) -> IssuedToken:
    token = TokenIssuer(store).new(
        user_id, ttl_for_scope(SCOPE_AUTHENTICATION, settings), SCOPE_AUTHENTICATION
    )
    logger.info("Authentication token issued", extra={"user_id": user_id})
    return token


def issue_signed_claim(claims: "SignedClaims", user_id: int) -> tuple[str, datetime]:
    encoded, expiry = claims.issue(user_id)
    logger.info("Signed claim issued", extra={"user_id": user_id})
    return encoded, expiry


def revoke_authentication_tokens(store: "AccountStore", user_id: int) -> int:
    """Delete all authentication tokens of a user (logout everywhere)."""
    deleted = store.delete_tokens_for_user(SCOPE_AUTHENTICATION, user_id)
    logger.info(
        "Authentication tokens revoked",
        extra={"user_id": user_id, "tokens_deleted": deleted},
    )
    return deleted


def update_user_profile(
    store: "AccountStore",
    settings: "Settings",
    user_id: int,
    version: int,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> User:
    """
    Apply a partial update on top of the version the caller last read.

    A mismatch between version and the stored row raises EditConflictError;
    the caller is expected to reload and reapply. Changing the password
    revokes every authentication token of the user.
    """
    try:
        user = store.get_user_by_id(user_id)
    except RecordNotFoundError as e:
        raise EditConflictError() from e
    if user.version != version:
        raise EditConflictError()

    if name is not None:
        user.username = name.strip()
    if email is not None:
        user.email = normalize_email(email)
    if password is not None:
        user.password_hash = hash_password(password, settings.BCRYPT_ROUNDS)

    try:
        with store.atomic():
            store.update_user(user)
            if password is not None:
                revoke_authentication_tokens(store, user.id)
    except DuplicateEmailError as e:
        raise InvalidInputError(e.message) from e
    logger.info("User updated", extra={"user_id": user.id, "version": user.version})
    return user
