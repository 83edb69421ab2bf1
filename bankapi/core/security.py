"""Password hashing and signed-claim (JWT) creation/verification."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from bankapi.core.config import Settings, settings
from bankapi.core.errors import InvalidInputError, PasswordHashError

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8

# bcrypt ignores everything past 72 bytes, so longer passwords are refused outright.
PASSWORD_MAX_BYTES = 72
PASSWORD_TOO_LONG = f"password must not be more than {PASSWORD_MAX_BYTES} bytes long"


def password_too_long(plain_password: str) -> bool:
    return len(plain_password.encode("utf-8")) > PASSWORD_MAX_BYTES


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    if password_too_long(plain_password):
        raise InvalidInputError(PASSWORD_TOO_LONG)
    cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    try:
        salt = bcrypt.gensalt(rounds=cost)
        return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise PasswordHashError() from e


def password_matches(hashed: str, plain_password: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Returns False for an ordinary mismatch. Raises PasswordHashError when the
    stored hash cannot be checked at all (empty or malformed), so callers can
    tell "wrong password" apart from a broken credential.
    """
    if not hashed:
        raise PasswordHashError()
    if password_too_long(plain_password):
        # Nothing over the limit was ever hashed.
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError) as e:
        raise PasswordHashError() from e


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("unused-password-for-timing", settings.BCRYPT_ROUNDS)


def check_dummy_password(plain_password: str) -> None:
    """
    Pay for one bcrypt verification without a stored hash, so a lookup miss
    takes as long as a wrong password.
    """
    password_matches(_dummy_hash(), plain_password)


class SignedClaims:
    """
    Issue and verify self-contained signed claims (sub, iss, iat, nbf, exp).

    Built from settings and handed to whoever needs it; the secret never
    lives in a mutable module global.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "bankapi",
        ttl: timedelta = timedelta(hours=24),
    ) -> None:
        if not secret:
            raise ValueError("signing secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.ttl = ttl

    @classmethod
    def from_settings(cls, s: Settings) -> "SignedClaims":
        return cls(
            secret=s.JWT_SECRET.get_secret_value(),
            algorithm=s.JWT_ALGORITHM,
            issuer=s.JWT_ISSUER,
            ttl=timedelta(minutes=s.JWT_EXPIRE_MINUTES),
        )

    def issue(self, user_id: int, now: datetime | None = None) -> tuple[str, datetime]:
        """Return (encoded claim, expiry) for the given user."""
        now = now or datetime.now(UTC)
        expiry = now + self.ttl
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iss": self.issuer,
            "iat": now,
            "nbf": now,
            "exp": expiry,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm), expiry

    def verify(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a claim; return its payload.
        Raises jwt.PyJWTError on a bad signature, wrong issuer, or an expired
        or not-yet-valid claim.
        """
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={"require": ["sub", "iss", "exp", "nbf"]},
        )
