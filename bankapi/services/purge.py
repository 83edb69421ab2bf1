"""Expired token cleanup. Validation already ignores expired rows; this only reclaims space."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bankapi.core.config import Settings
    from bankapi.services.store import AccountStore

logger = logging.getLogger(__name__)


def run_token_purge(
    store: "AccountStore",
    settings: "Settings",
    now: datetime | None = None,
) -> int:
    """
    Delete tokens whose expiry is at or before now. Returns the number deleted.
    Idempotent: safe to run repeatedly.
    """
    if not settings.TOKEN_PURGE_ENABLED:
        logger.info("Token purge is disabled (TOKEN_PURGE_ENABLED=false); skipping.")
        return 0

    now = now or datetime.now(UTC)
    deleted_count = store.delete_expired_tokens(now)
    if deleted_count > 0:
        logger.info(
            "Token purge run: cutoff=%s, tokens_deleted=%s",
            now.isoformat(),
            deleted_count,
        )
    return deleted_count
