"""Utility script to register a notification recipient and print its token."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from notifyhub.domain.entities import User
from notifyhub.infrastructure.database import SessionLocal, initialize_database
from notifyhub.infrastructure.repositories import RoleRepository, UserRepository
from notifyhub.infrastructure.security import create_user_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create a user that can receive notifications.",
    )
    parser.add_argument("--name", default="Administrator", help="Full name of the user")
    parser.add_argument(
        "--email",
        default="admin@example.com",
        help="Address used for notification emails (default: admin@example.com)",
    )
    parser.add_argument(
        "--role",
        default="admin",
        help="Role alias; 'admin' may send and broadcast notifications (default: admin)",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        users = UserRepository(session)
        if users.get_by_email(args.email) is not None:
            raise SystemExit(f"A user with email {args.email} already exists")
        role = RoleRepository(session).get_or_create(name=args.role.title(), alias=args.role)
        user = users.create(
            User(id=None, role=role, name=args.name, email=args.email)
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user in the database: {exc}") from exc
    finally:
        session.close()

    print(
        "User created:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.name}\n"
        f"  Email: {user.email}\n"
        f"  Role: {user.role.alias}\n"
        f"  Access token: {create_user_token(user.id)}"
    )


if __name__ == "__main__":
    main()
