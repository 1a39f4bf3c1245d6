"""
Create an account from the command line (e.g. the first admin). Run from project root:
  python -m panel.scripts.create_user USERNAME EMAIL PASSWORD
Example:
  python -m panel.scripts.create_user admin admin@example.com 'S3cure!pass'

Goes through the same registration workflow as the web form: the first
account in an empty database becomes an active ADMIN.
"""
import argparse
import logging
import sys

from panel.core.config import get_settings
from panel.core.database import SessionLocal
from panel.schemas.auth import RegisterRequest
from panel.services.registration import register
from panel.services.store import AccountStore

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a panel account (same rules as registration).")
    parser.add_argument("username", help="Username (2+ chars: letters, digits, underscore)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (8+ chars, upper, lower, digit, symbol)")
    args = parser.parse_args(argv)

    payload = RegisterRequest(
        username=args.username,
        email=args.email,
        password=args.password,
        password_confirm=args.password,
    )
    db = SessionLocal()
    try:
        outcome = register(AccountStore(db), payload)
    finally:
        db.close()

    if not outcome.ok:
        for field, messages in outcome.field_errors.items():
            for message in messages:
                print(f"{field}: {message}", file=sys.stderr)
        if outcome.flash is not None:
            print(outcome.flash.message, file=sys.stderr)
        return 1
    print(
        f"Created account '{payload.username.strip().lower()}' "
        f"with role '{outcome.role}' (active={outcome.active})."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
