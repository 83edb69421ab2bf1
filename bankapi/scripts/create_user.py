"""
Create a user from the command line (e.g. the first administrator). Run from project root:
  python -m bankapi.scripts.create_user NAME EMAIL PASSWORD [--activated] [--permission CODE ...]
Example:
  python -m bankapi.scripts.create_user admin admin@example.com your-secure-password \
      --activated --permission users:read
"""
import argparse
import logging
import re
import sys

from bankapi.core.config import get_settings
from bankapi.core.database import SessionLocal
from bankapi.core.errors import AccountError
from bankapi.core.security import (
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LEN,
    PASSWORD_TOO_LONG,
    USERNAME_MAX_LEN,
    password_too_long,
)
from bankapi.schemas.auth import EMAIL_PATTERN
from bankapi.services.accounts import activate_user, register_user
from bankapi.services.store import AccountStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a bankapi user.")
    parser.add_argument("name", help=f"Display name (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument(
        "password",
        help=f"Password (at least {PASSWORD_MIN_LEN} chars, at most {PASSWORD_MAX_BYTES} bytes)",
    )
    parser.add_argument(
        "--activated",
        action="store_true",
        help="Activate the account immediately instead of printing the activation token",
    )
    parser.add_argument(
        "--permission",
        action="append",
        default=[],
        metavar="CODE",
        help="Extra permission code to grant (repeatable)",
    )
    args = parser.parse_args(argv)

    name = args.name.strip()
    if not name or len(name) > USERNAME_MAX_LEN:
        print("Invalid name length.", file=sys.stderr)
        return 1
    if not re.match(EMAIL_PATTERN, args.email.strip()):
        print("Invalid email address.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN:
        print(f"Password must be at least {PASSWORD_MIN_LEN} characters.", file=sys.stderr)
        return 1
    if password_too_long(args.password):
        print(PASSWORD_TOO_LONG.capitalize() + ".", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = AccountStore(db)
        user, token = register_user(store, settings, name, args.email, args.password)
        if args.permission:
            store.grant_permissions(user.id, *args.permission)
        if args.activated:
            activate_user(store, token.plaintext)
            print(f"Created and activated user {user.id} <{user.email}>.")
        else:
            print(f"Created user {user.id} <{user.email}>. Activation token: {token.plaintext}")
        return 0
    except AccountError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
