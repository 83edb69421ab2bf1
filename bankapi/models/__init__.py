"""SQLAlchemy ORM models."""

from bankapi.models.base import Base
from bankapi.models.token import Token
from bankapi.models.user import Permission, User, users_permissions

__all__ = ["Base", "Permission", "Token", "User", "users_permissions"]
