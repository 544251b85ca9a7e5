"""
Create Admin User Script
Creates an administrator account, or promotes an existing account.

Usage:
    python -m backend.scripts.create_admin --username admin --email admin@example.com --zipcode 12345

The password is read from ADMIN_PASSWORD, or prompted for when unset.
If the email or username already belongs to an account, that account is
promoted instead (after confirmation, or straight away with --yes).
"""

import argparse
import getpass
import os
import sys
from typing import Callable, List, Optional

from backend.auth_service.models import User
from backend.auth_service.repository import PgUserRepository, UserRepository
from backend.auth_service.utils import hash_password
from backend.auth_service.validation import validate_registration
from backend.common.errors import ConflictError, ValidationError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote an administrator account.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--zipcode", required=True)
    parser.add_argument("--yes", action="store_true", help="promote an existing account without asking")
    return parser.parse_args(argv)


def create_admin(
    users: UserRepository,
    username: str,
    email: str,
    zipcode: str,
    password: str,
    assume_yes: bool = False,
    ask: Callable[[str], str] = input,
) -> int:
    """
    Returns:
        int: process exit code.
    """
    try:
        fields = validate_registration({
            "username": username, "email": email, "password": password, "zipcode": zipcode,
        })
    except ValidationError as e:
        print(f"Invalid input: {e.message}")
        return 1

    existing = users.find_conflict(fields["username"], fields["email"])
    if existing:
        print(f"User already exists: {existing.username} <{existing.email}>")
        if existing.is_admin:
            print("User is already an admin.")
            return 0
        if not assume_yes:
            answer = ask("Would you like to make this user an admin? (yes/no): ")
            if answer.strip().lower() not in ("y", "yes"):
                print("No changes made.")
                return 0
        users.set_admin(existing.user_id, True)
        print("User is now an admin.")
        return 0

    try:
        admin = users.add(User(
            username=fields["username"],
            email=fields["email"],
            password_hash=hash_password(fields["password"]),
            zipcode=fields["zipcode"],
            is_admin=True,
        ))
    except ConflictError as e:
        print(e.message)
        return 1

    print("Admin user created successfully!")
    print(f"Username: {admin.username}")
    print(f"Email: {admin.email}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Enter admin password: ")
    return create_admin(
        PgUserRepository(),
        username=args.username,
        email=args.email,
        zipcode=args.zipcode,
        password=password,
        assume_yes=args.yes,
    )


if __name__ == "__main__":
    sys.exit(main())
