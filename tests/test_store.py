"""Tests for bankapi.services.store against a real SQLite database."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from bankapi.core.errors import (
    DuplicateEmailError,
    EditConflictError,
    RecordNotFoundError,
    StoreError,
)
from bankapi.models import User
from bankapi.services.store import AccountStore
from bankapi.services.tokens import SCOPE_ACTIVATION, SCOPE_AUTHENTICATION, generate_token
from tests.util import DatabaseTestCase


class TestInsertAndGetUser(DatabaseTestCase):
    """insert_user assigns id, created_at and version 1; lookups report not-found distinctly."""

    def test_insert_assigns_identity_fields(self) -> None:
        user = self.make_user()
        self.assertIsNotNone(user.id)
        self.assertIsNotNone(user.created_at)
        self.assertEqual(user.version, 1)
        self.assertFalse(user.activated)

    def test_get_by_id_and_email(self) -> None:
        user = self.make_user()
        self.assertEqual(self.store.get_user_by_id(user.id).email, "alice@example.com")
        self.assertEqual(self.store.get_user_by_email("alice@example.com").id, user.id)

    def test_missing_user_raises_not_found(self) -> None:
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_by_id(999)
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_by_email("nobody@example.com")

    def test_duplicate_email_rejected(self) -> None:
        self.make_user()
        with self.assertRaises(DuplicateEmailError):
            self.make_user(username="alice2")
        # The session is still usable after the failed insert.
        self.assertEqual(len(self.store.list_users()), 1)


class TestUpdateUser(DatabaseTestCase):
    """update_user bumps version once and refuses stale writes."""

    def test_update_increments_version_once(self) -> None:
        user = self.make_user()
        user.activated = True
        self.store.update_user(user)
        self.assertEqual(user.version, 2)
        user.username = "alice-renamed"
        self.store.update_user(user)
        self.assertEqual(user.version, 3)

    def test_update_without_changes_still_increments(self) -> None:
        user = self.make_user()
        self.store.update_user(user)
        self.assertEqual(user.version, 2)

    def test_concurrent_update_conflicts(self) -> None:
        user_id = self.make_user().id
        first, second = self.new_store(), self.new_store()
        u1 = first.get_user_by_id(user_id)
        u2 = second.get_user_by_id(user_id)
        self.assertEqual(u1.version, u2.version)

        u1.activated = True
        first.update_user(u1)

        u2.username = "mallory"
        with self.assertRaises(EditConflictError):
            second.update_user(u2)

        fresh = self.new_store().get_user_by_id(user_id)
        self.assertEqual(fresh.version, 2)
        self.assertTrue(fresh.activated)
        self.assertEqual(fresh.username, "alice")

    def test_update_to_taken_email_rejected(self) -> None:
        self.make_user()
        bob = self.make_user(email="bob@example.com", username="bob")
        bob.email = "alice@example.com"
        with self.assertRaises(DuplicateEmailError):
            self.store.update_user(bob)


class TestAtomic(DatabaseTestCase):
    """Writes inside atomic() land together or not at all."""

    def _new_user(self) -> User:
        return User(username="alice", email="alice@example.com", password_hash="x", activated=False)

    def test_commits_once_at_end(self) -> None:
        with self.store.atomic():
            user = self.store.insert_user(self._new_user())
            self.store.grant_permissions(user.id, "accounts:read")
            self.store.insert_token(
                generate_token(user.id, timedelta(hours=1), SCOPE_ACTIVATION)
            )
        other = self.new_store()
        self.assertEqual(other.get_user_by_email("alice@example.com").id, user.id)
        self.assertEqual(other.get_permissions_for_user(user.id), frozenset({"accounts:read"}))

    def test_exception_rolls_back_every_write(self) -> None:
        with self.assertRaises(RuntimeError):
            with self.store.atomic():
                user = self.store.insert_user(self._new_user())
                self.store.grant_permissions(user.id, "accounts:read")
                raise RuntimeError("boom")
        self.assertEqual(self.new_store().list_users(), [])
        # The store is usable again afterwards.
        self.assertIsNotNone(self.store.insert_user(self._new_user()).id)


class TestTokens(DatabaseTestCase):
    """Token lookup: own hash only, strict expiry, scope isolation."""

    def setUp(self) -> None:
        super().setUp()
        self.user = self.make_user()
        self.now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

    def _issue(self, scope: str = SCOPE_AUTHENTICATION, ttl: timedelta = timedelta(hours=24)):
        token = generate_token(self.user.id, ttl, scope, now=self.now)
        self.store.insert_token(token)
        return token

    def test_token_resolves_to_owner(self) -> None:
        token = self._issue()
        found = self.store.get_user_for_token(SCOPE_AUTHENTICATION, token.plaintext, now=self.now)
        self.assertEqual(found.id, self.user.id)

    def test_token_matches_only_itself(self) -> None:
        bob = self.make_user(email="bob@example.com", username="bob")
        alice_token = self._issue()
        bob_token = generate_token(bob.id, timedelta(hours=24), SCOPE_AUTHENTICATION, now=self.now)
        self.store.insert_token(bob_token)
        self.assertEqual(
            self.store.get_user_for_token(SCOPE_AUTHENTICATION, alice_token.plaintext, now=self.now).id,
            self.user.id,
        )
        self.assertEqual(
            self.store.get_user_for_token(SCOPE_AUTHENTICATION, bob_token.plaintext, now=self.now).id,
            bob.id,
        )
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_for_token(SCOPE_AUTHENTICATION, "A" * 26, now=self.now)

    def test_expiry_is_strict(self) -> None:
        token = self._issue(ttl=timedelta(seconds=1))
        expiry = token.expiry
        # one second before expiry: still valid
        self.assertEqual(
            self.store.get_user_for_token(
                SCOPE_AUTHENTICATION, token.plaintext, now=expiry - timedelta(seconds=1)
            ).id,
            self.user.id,
        )
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_for_token(SCOPE_AUTHENTICATION, token.plaintext, now=expiry)

    def test_scope_isolation(self) -> None:
        activation = self._issue(scope=SCOPE_ACTIVATION)
        authentication = self._issue(scope=SCOPE_AUTHENTICATION)
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_for_token(SCOPE_AUTHENTICATION, activation.plaintext, now=self.now)
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_for_token(SCOPE_ACTIVATION, authentication.plaintext, now=self.now)

    def test_delete_tokens_for_user_only_touches_scope(self) -> None:
        activation = self._issue(scope=SCOPE_ACTIVATION)
        authentication = self._issue(scope=SCOPE_AUTHENTICATION)
        deleted = self.store.delete_tokens_for_user(SCOPE_ACTIVATION, self.user.id)
        self.assertEqual(deleted, 1)
        with self.assertRaises(RecordNotFoundError):
            self.store.get_user_for_token(SCOPE_ACTIVATION, activation.plaintext, now=self.now)
        self.store.get_user_for_token(SCOPE_AUTHENTICATION, authentication.plaintext, now=self.now)

    def test_delete_expired_tokens(self) -> None:
        self._issue(ttl=timedelta(hours=1))
        live = self._issue(ttl=timedelta(hours=48))
        deleted = self.store.delete_expired_tokens(now=self.now + timedelta(hours=1))
        self.assertEqual(deleted, 1)
        self.store.get_user_for_token(SCOPE_AUTHENTICATION, live.plaintext, now=self.now)


class TestPermissions(DatabaseTestCase):
    """Permissions resolve through the users_permissions relation."""

    def test_no_permissions_is_empty_set(self) -> None:
        user = self.make_user()
        self.assertEqual(self.store.get_permissions_for_user(user.id), frozenset())

    def test_grant_and_read_back(self) -> None:
        alice = self.make_user()
        bob = self.make_user(email="bob@example.com", username="bob")
        self.store.grant_permissions(alice.id, "accounts:read", "users:read")
        self.store.grant_permissions(bob.id, "accounts:read")
        self.assertEqual(
            self.store.get_permissions_for_user(alice.id),
            frozenset({"accounts:read", "users:read"}),
        )
        self.assertEqual(self.store.get_permissions_for_user(bob.id), frozenset({"accounts:read"}))

    def test_grant_is_idempotent(self) -> None:
        user = self.make_user()
        self.store.grant_permissions(user.id, "accounts:read")
        self.store.grant_permissions(user.id, "accounts:read", "accounts:write")
        self.assertEqual(
            self.store.get_permissions_for_user(user.id),
            frozenset({"accounts:read", "accounts:write"}),
        )


class TestStoreErrors(unittest.TestCase):
    """Database failures, timeouts included, surface as StoreError and never as not-found."""

    def test_timeout_is_store_error(self) -> None:
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("canceling statement due to statement timeout"))
        with self.assertRaises(StoreError):
            AccountStore(session).get_user_by_id(1)
        session.rollback.assert_called_once()

    def test_permission_lookup_failure_is_store_error(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        with self.assertRaises(StoreError):
            AccountStore(session).get_permissions_for_user(1)

    def test_insert_failure_is_store_error(self) -> None:
        session = MagicMock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        with self.assertRaises(StoreError):
            AccountStore(session).insert_user(User(username="a", email="a@b.co", password_hash="x"))


if __name__ == "__main__":
    unittest.main()
