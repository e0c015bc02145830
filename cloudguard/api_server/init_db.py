"""
Create CloudGuard database tables, optionally registering a user.

Usage:
    python -m cloudguard.api_server.init_db
    python -m cloudguard.api_server.init_db --user alice@example.com --name Alice
"""

from __future__ import annotations

import argparse

from cloudguard.cloudguard_logging import get_logger
from cloudguard.config import get_settings
from cloudguard.database import get_database

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create CloudGuard tables (safe to re-run).")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL or SQLite path (default: $DATABASE_URL or sqlite:///cloudguard.db).",
    )
    parser.add_argument("--user", default=None, help="Email of a user to create if missing.")
    parser.add_argument("--name", default=None, help="Display name for --user.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    url = args.database_url or get_settings().database_url
    db = get_database(url)
    print("DB URL:", url.split("?")[0])
    if args.user:
        user = db.get_user_by_email(args.user)
        if user is None:
            user = db.create_user(args.user, args.name)
            logger.info("init_db_user_created", user_id=user.id)
        print(f"User: {user.email} (id={user.id})")
    print("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
