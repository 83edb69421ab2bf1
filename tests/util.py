"""Shared fixtures: a throwaway SQLite database per test case."""

import os
import shutil
import tempfile
import unittest

from sqlalchemy.orm import Session, sessionmaker

from bankapi.core.config import Settings
from bankapi.core.database import build_engine
from bankapi.models import Base, User
from bankapi.services.store import AccountStore

TEST_PASSWORD = "correct-horse-battery"
TEST_ROUNDS = 4


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: SQLite, cheap bcrypt, no mail."""
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": TEST_ROUNDS,
        "SMTP_HOST": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class DatabaseTestCase(unittest.TestCase):
    """Creates a file-backed SQLite schema so several sessions can share it."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp(prefix="bankapi-test-")
        url = "sqlite:///" + os.path.join(self.tmpdir, "test.db")
        self.engine = build_engine(url, timeout_sec=3.0)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.session: Session = self.SessionLocal()
        self.store = AccountStore(self.session)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def new_store(self) -> AccountStore:
        """A store on its own session, as a concurrent request would have."""
        session = self.SessionLocal()
        self.addCleanup(session.close)
        return AccountStore(session)

    def make_user(
        self,
        email: str = "alice@example.com",
        username: str = "alice",
        password_hash: str = "$2b$04$abcdefghijklmnopqrstuu3yd2Yyqf3Yx1OJ2Pj3c5l0wX3sYd2y6",
        activated: bool = False,
    ) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            activated=activated,
        )
        return self.store.insert_user(user)
