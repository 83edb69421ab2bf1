"""Database engine and session management with bounded round-trips."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from bankapi.core.config import settings


def _connect_args(url: str, timeout_sec: float) -> dict[str, Any]:
    """Driver-level timeouts so a stalled database surfaces as an error, not a hang."""
    if url.startswith("sqlite"):
        return {"timeout": timeout_sec, "check_same_thread": False}
    return {
        "connect_timeout": max(1, int(timeout_sec)),
        "options": f"-c statement_timeout={int(timeout_sec * 1000)}",
    }


def build_engine(url: str, timeout_sec: float, echo: bool = False) -> Engine:
    """Create an engine whose connect, checkout and statement times are all bounded."""
    kwargs: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": echo,
        "connect_args": _connect_args(url, timeout_sec),
    }
    if not url.startswith("sqlite"):
        kwargs["pool_timeout"] = timeout_sec
    return create_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL, settings.DB_TIMEOUT_SEC, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
