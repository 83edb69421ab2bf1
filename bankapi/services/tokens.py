"""Opaque token issuance: random plaintext, SHA-256 lookup hash, scope and expiry."""

import base64
import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from bankapi.core.errors import InvalidCredentialsError

if TYPE_CHECKING:
    from bankapi.core.config import Settings
    from bankapi.services.store import AccountStore

SCOPE_AUTHENTICATION = "authentication"
SCOPE_ACTIVATION = "activation"

TOKEN_RANDOM_BYTES = 16
# 16 bytes of base-32 without padding.
TOKEN_LENGTH = 26


class TokenFormatError(InvalidCredentialsError):
    """Raised when a candidate plaintext token cannot possibly be one we issued."""


@dataclass(frozen=True)
class IssuedToken:
    """
    A freshly generated token.

    plaintext is handed to the client exactly once; hash, user_id and scope
    are what the store persists and must never be serialized back.
    """

    plaintext: str
    hash: bytes
    user_id: int
    expiry: datetime
    scope: str


def hash_token(plaintext: str) -> bytes:
    """SHA-256 of the plaintext; a fast hash is enough for 128 random bits."""
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def validate_token_plaintext(plaintext: str | None) -> str:
    """Cheap format gate applied before any store lookup."""
    if not plaintext or len(plaintext) != TOKEN_LENGTH:
        raise TokenFormatError()
    return plaintext


def generate_token(
    user_id: int,
    ttl: timedelta,
    scope: str,
    now: datetime | None = None,
) -> IssuedToken:
    now = now or datetime.now(UTC)
    random_bytes = secrets.token_bytes(TOKEN_RANDOM_BYTES)
    plaintext = base64.b32encode(random_bytes).decode("ascii").rstrip("=")
    return IssuedToken(
        plaintext=plaintext,
        hash=hash_token(plaintext),
        user_id=user_id,
        expiry=now + ttl,
        scope=scope,
    )


def ttl_for_scope(scope: str, settings: "Settings") -> timedelta:
    """Policy default lifetime for a scope (activation 72h, authentication 24h)."""
    if scope == SCOPE_ACTIVATION:
        return timedelta(hours=settings.ACTIVATION_TOKEN_TTL_HOURS)
    if scope == SCOPE_AUTHENTICATION:
        return timedelta(hours=settings.AUTH_TOKEN_TTL_HOURS)
    raise ValueError(f"unknown token scope: {scope}")


class TokenIssuer:
    """Generates tokens and persists their hash through the account store."""

    def __init__(self, store: "AccountStore") -> None:
        self.store = store

    def new(self, user_id: int, ttl: timedelta, scope: str) -> IssuedToken:
        token = generate_token(user_id, ttl, scope)
        self.store.insert_token(token)
        return token
