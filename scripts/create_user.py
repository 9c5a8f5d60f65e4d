"""Utility script to create a marketplace user in the database."""

from __future__ import annotations

import argparse
from getpass import getpass

from app.application.use_cases.users import create_user
from app.domain.exceptions import RealtimeError
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(description="Create a user for the marketplace realtime service.")
    parser.add_argument("--email", default="admin@example.com", help="Email used to log in")
    parser.add_argument("--first-name", default="Admin", help="First name shown in chats")
    parser.add_argument("--last-name", default="", help="Last name shown in chats")
    parser.add_argument(
        "--password",
        default=None,
        help="User password. Prompted interactively when omitted.",
    )
    parser.add_argument(
        "--print-token",
        action="store_true",
        help="Print a bearer token for the new user, handy for websocket clients.",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()

    password = args.password or getpass("Password: ")
    if not password:
        raise SystemExit("A password is required.")

    initialize_database()

    with SessionLocal() as session:
        try:
            user = create_user(
                session,
                email=args.email,
                password=password,
                first_name=args.first_name,
                last_name=args.last_name,
            )
        except RealtimeError as exc:
            raise SystemExit(f"Could not create the user: {exc.message}") from exc

    print(
        "User created:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.display_name}\n"
        f"  Email: {user.email}"
    )
    if args.print_token:
        print(f"  Token: {create_access_token(user.id)}")


if __name__ == "__main__":
    main()
