"""
Create the first back-office administrator.

Usage:
    python scripts/create_admin.py admin@skynest.example --first-name Ada --last-name Admin

The password is read from SKYNEST_ADMIN_PASSWORD or prompted for.
"""

import argparse
import getpass
import os

import structlog

from skynest.config import get_settings
from skynest.db.engine import get_engine
from skynest.db.readers.principals import email_taken
from skynest.logging_config import setup_logging
from skynest.models.enums import Role
from skynest.services.accounts import create_user

setup_logging(get_settings())
logger = structlog.get_logger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a Sky Nest admin account")
    parser.add_argument("email")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--access-level", default="full")
    args = parser.parse_args()

    password = os.getenv("SKYNEST_ADMIN_PASSWORD") or getpass.getpass("Password: ")

    engine = get_engine()
    with engine.begin() as conn:
        if email_taken(conn, Role.ADMIN, args.email.lower()):
            logger.info("admin_already_exists", email=args.email)
            return
        user = create_user(
            conn,
            Role.ADMIN,
            {
                "email": args.email,
                "password": password,
                "first_name": args.first_name,
                "last_name": args.last_name,
                "access_level": args.access_level,
            },
        )
    logger.info("admin_created", admin_id=user["id"], email=user["email"])


if __name__ == "__main__":
    main()
