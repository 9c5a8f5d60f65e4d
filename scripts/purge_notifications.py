"""Delete notifications older than the retention period."""

from __future__ import annotations

import argparse
import logging

from app.application.use_cases.notifications import delete_old_notifications
from app.domain.exceptions import PersistenceError
from app.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Age in days of the oldest notification kept (defaults to the configured retention)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO)
    initialize_database()
    with SessionLocal() as session:
        try:
            deleted = delete_old_notifications(session, days_old=args.days)
        except PersistenceError as exc:
            raise SystemExit(exc.message) from exc
    print(f"Deleted {deleted} notifications")


if __name__ == "__main__":
    main()
