"""Core app configuration, database, errors and credential hashing."""

from bankapi.core.config import get_settings, settings
from bankapi.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
