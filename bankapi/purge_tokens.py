"""
CLI entrypoint for the expired token purge. Run from cron, e.g.:

  python -m bankapi.purge_tokens

Or hourly: 0 * * * * cd /path/to/bankapi && .venv/bin/python -m bankapi.purge_tokens
"""

import logging
import sys

from bankapi.core.config import get_settings
from bankapi.core.database import SessionLocal
from bankapi.core.errors import StoreError
from bankapi.services.purge import run_token_purge
from bankapi.services.store import AccountStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete every token that has already expired."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = run_token_purge(AccountStore(db), settings)
        logger.info("Token purge completed: tokens_deleted=%s", deleted)
        return 0
    except StoreError as e:
        logger.exception("Token purge failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
