"""Request authentication: Authorization header -> Identity.

Terminal outcomes per request:
  - no header                    -> ANONYMOUS
  - malformed header/token       -> InvalidCredentialsError
  - unknown/expired/wrong scope  -> InvalidAuthenticationTokenError
  - active credential            -> Authenticated(user)

Opaque-token mode and signed-claim mode reach the same outcomes, so the
authorization gates never need to know which one produced the identity.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import jwt

from bankapi.core.errors import (
    InvalidAuthenticationTokenError,
    InvalidCredentialsError,
    RecordNotFoundError,
)
from bankapi.schemas.auth import CurrentUser
from bankapi.services.tokens import SCOPE_AUTHENTICATION, validate_token_plaintext

if TYPE_CHECKING:
    from bankapi.core.security import SignedClaims
    from bankapi.models import User
    from bankapi.services.store import AccountStore

logger = logging.getLogger(__name__)

AuthMode = Literal["token", "jwt"]


@dataclass(frozen=True)
class Anonymous:
    """No identity. Never satisfies an authenticated check."""

    kind: Literal["anonymous"] = "anonymous"

    @property
    def is_anonymous(self) -> bool:
        return True


@dataclass(frozen=True)
class Authenticated:
    """A resolved user, snapshotted from the store for the rest of the request."""

    user: CurrentUser
    kind: Literal["authenticated"] = "authenticated"

    @property
    def is_anonymous(self) -> bool:
        return False


Identity = Anonymous | Authenticated

ANONYMOUS = Anonymous()


def parse_bearer(header: str) -> str:
    """Return the credential from 'Bearer <credential>' or raise InvalidCredentialsError."""
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise InvalidCredentialsError()
    return parts[1]


class AuthenticationResolver:
    """Turns an Authorization header into an Identity using the account store."""

    def __init__(
        self,
        store: "AccountStore",
        mode: AuthMode = "token",
        claims: "SignedClaims | None" = None,
    ) -> None:
        if mode == "jwt" and claims is None:
            raise ValueError("signed-claim mode requires a SignedClaims instance")
        self.store = store
        self.mode = mode
        self.claims = claims

    def resolve(self, authorization: str | None) -> Identity:
        if not authorization:
            return ANONYMOUS
        credential = parse_bearer(authorization)
        if self.mode == "jwt":
            user = self._user_for_claim(credential)
        else:
            user = self._user_for_token(credential)
        return Authenticated(user=CurrentUser.model_validate(user))

    def _user_for_token(self, plaintext: str) -> "User":
        validate_token_plaintext(plaintext)
        try:
            return self.store.get_user_for_token(SCOPE_AUTHENTICATION, plaintext)
        except RecordNotFoundError as e:
            logger.info("Rejected authentication token", extra={"reason": "not_active"})
            raise InvalidAuthenticationTokenError() from e

    def _user_for_claim(self, credential: str) -> "User":
        try:
            payload = self.claims.verify(credential)
        except jwt.ExpiredSignatureError as e:
            # Expired claims are rejected; the client has to log in again.
            logger.info("Rejected signed claim", extra={"reason": "expired"})
            raise InvalidAuthenticationTokenError() from e
        except jwt.PyJWTError as e:
            logger.info("Rejected signed claim", extra={"reason": type(e).__name__})
            raise InvalidAuthenticationTokenError() from e
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidAuthenticationTokenError() from e
        try:
            return self.store.get_user_by_id(user_id)
        except RecordNotFoundError as e:
            raise InvalidAuthenticationTokenError() from e
