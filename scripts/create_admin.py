#!/usr/bin/env python3
"""Script to seed an internal administrator account."""

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from convops.api.dependencies import get_storage
from convops.core.config import settings
from convops.core.exceptions import ValidationFailed
from convops.core.security import hash_password
from convops.models import INTERNAL_ROLES, User, UserRole
from convops.services.auth import check_password_strength, normalize_email


async def main():
    parser = argparse.ArgumentParser(description="Create an internal administrator")
    parser.add_argument("email", help="Login e-mail")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument(
        "--role",
        default=UserRole.SUPER_ADMIN.value,
        choices=[role.value for role in INTERNAL_ROLES],
        help="Internal role to grant",
    )

    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    try:
        check_password_strength(password)
    except ValidationFailed as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    storage = get_storage()
    print(f"Using {settings.storage_backend} storage")

    email = normalize_email(args.email)
    existing = await storage.get_user_by_email(email)
    if existing:
        print(f"User {email} already exists with role {existing.role.value}")
        return

    user = User(
        first_name=args.first_name,
        last_name=args.last_name,
        email=email,
        hashed_password=hash_password(password),
        role=UserRole(args.role),
    )
    await storage.save_user(user)

    print(f"Created {user.role.value} {user.email} (id: {user.id})")


if __name__ == "__main__":
    asyncio.run(main())
