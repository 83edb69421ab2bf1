"""Account store: users, tokens and permissions over a SQLAlchemy session.

Every method is one bounded round-trip (timeouts are configured on the
engine). "Not found" is reported as RecordNotFoundError; anything the
database itself fails at, timeouts included, is a StoreError.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from bankapi.core.errors import (
    DuplicateEmailError,
    EditConflictError,
    RecordNotFoundError,
    StoreError,
)
from bankapi.models import Permission, Token, User, users_permissions
from bankapi.services.tokens import IssuedToken, hash_token

logger = logging.getLogger(__name__)


class AccountStore:
    """Persistence operations required by the authentication engine."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._atomic = False

    @contextmanager
    def _round_trip(self) -> Iterator[None]:
        """Roll back and re-raise database failures as StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Store operation failed: %s", type(e).__name__)
            raise StoreError() from e

    def _commit(self) -> None:
        """Commit, or only flush while an atomic block owns the transaction."""
        if self._atomic:
            self.session.flush()
        else:
            self.session.commit()

    @contextmanager
    def atomic(self) -> Iterator["AccountStore"]:
        """
        Run several store calls as one transaction. Each call only flushes;
        the block commits once at the end, and any exception rolls back every
        write made inside it. Nested blocks join the outer one.
        """
        if self._atomic:
            yield self
            return
        self._atomic = True
        try:
            yield self
            with self._round_trip():
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._atomic = False

    # Users

    def get_user_by_id(self, user_id: int) -> User:
        with self._round_trip():
            user = self.session.get(User, user_id)
        if user is None:
            raise RecordNotFoundError()
        return user

    def get_user_by_email(self, email: str) -> User:
        with self._round_trip():
            user = self.session.execute(
                select(User).where(User.email == email)
            ).scalars().first()
        if user is None:
            raise RecordNotFoundError()
        return user

    def get_user_for_token(
        self,
        scope: str,
        plaintext: str,
        now: datetime | None = None,
    ) -> User:
        """Owner of an unexpired token with this scope; expiry must be strictly after now."""
        now = now or datetime.now(UTC)
        stmt = (
            select(User)
            .join(Token, Token.user_id == User.id)
            .where(
                Token.hash == hash_token(plaintext),
                Token.scope == scope,
                Token.expiry > now,
            )
        )
        with self._round_trip():
            user = self.session.execute(stmt).scalars().first()
        if user is None:
            raise RecordNotFoundError()
        return user

    def list_users(self) -> list[User]:
        with self._round_trip():
            return list(self.session.execute(select(User).order_by(User.id)).scalars())

    def insert_user(self, user: User) -> User:
        """Persist a new user; id, created_at and version=1 are assigned here."""
        try:
            self.session.add(user)
            self._commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError() from e
        with self._round_trip():
            self.session.refresh(user)
        return user

    def update_user(self, user: User) -> User:
        """
        Write the user back, bumping version by one.

        The UPDATE is conditioned on the version the user was loaded at; if
        another writer got there first the write fails with EditConflictError
        and nothing is changed. A user deleted in the meantime also conflicts.
        """
        # Always emit the UPDATE so each call advances the version exactly once.
        flag_modified(user, "username")
        try:
            self._commit()
        except StaleDataError as e:
            self.session.rollback()
            raise EditConflictError() from e
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError() from e
        with self._round_trip():
            self.session.refresh(user)
        return user

    # Tokens

    def insert_token(self, token: IssuedToken) -> None:
        with self._round_trip():
            self.session.add(
                Token(
                    hash=token.hash,
                    user_id=token.user_id,
                    expiry=token.expiry,
                    scope=token.scope,
                )
            )
            self._commit()

    def delete_tokens_for_user(self, scope: str, user_id: int) -> int:
        with self._round_trip():
            result = self.session.execute(
                delete(Token).where(Token.scope == scope, Token.user_id == user_id)
            )
            self._commit()
        return result.rowcount

    def delete_expired_tokens(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        with self._round_trip():
            result = self.session.execute(delete(Token).where(Token.expiry <= now))
            self._commit()
        return result.rowcount

    # Permissions

    def get_permissions_for_user(self, user_id: int) -> frozenset[str]:
        stmt = (
            select(Permission.code)
            .join(users_permissions, users_permissions.c.permission_id == Permission.id)
            .where(users_permissions.c.user_id == user_id)
        )
        with self._round_trip():
            return frozenset(self.session.execute(stmt).scalars())

    def grant_permissions(self, user_id: int, *codes: str) -> None:
        """Grant codes to a user. Unknown codes are created; existing grants are kept."""
        wanted = set(codes)
        if not wanted:
            return
        with self._round_trip():
            existing = {
                p.code: p
                for p in self.session.execute(
                    select(Permission).where(Permission.code.in_(wanted))
                ).scalars()
            }
            for code in sorted(wanted - existing.keys()):
                permission = Permission(code=code)
                self.session.add(permission)
                existing[code] = permission
            self.session.flush()

            granted = set(
                self.session.execute(
                    select(users_permissions.c.permission_id).where(
                        users_permissions.c.user_id == user_id
                    )
                ).scalars()
            )
            rows = [
                {"user_id": user_id, "permission_id": p.id}
                for p in existing.values()
                if p.id not in granted
            ]
            if rows:
                self.session.execute(insert(users_permissions), rows)
            self._commit()
