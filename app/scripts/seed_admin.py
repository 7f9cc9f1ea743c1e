"""Create a staff account or reset an existing one.

Usage:
    python -m app.scripts.seed_admin --email=admin@example.com --password=SecurePass123!
    python -m app.scripts.seed_admin --email=editor@example.com --password=... --role=content_editor

NEVER hardcode credentials in this file. Always pass via CLI arguments.
"""

import argparse
import asyncio
import sys

from app.core.database import async_session
from app.models.user import UserRole, UserStatus
from app.repositories.user import UserRepository
from app.services.auth import create_user, hash_password


async def create_or_update_admin(email: str, password: str, role: str = UserRole.SUPER_ADMIN.value, name: str = "Super Admin"):
    """Create the account, or reset password/role/lock state if it already exists."""
    async with async_session() as db:
        users = UserRepository(db)
        user = await users.get_by_email(email)

        if user:
            print(f"User {email} already exists. Resetting password and role to {role}...")
            user.role = role
            user.status = UserStatus.ACTIVE.value
            user.hashed_password = hash_password(password)
            user.login_attempts = 0
            user.lock_until = None
            user = await users.save(user)
        else:
            print(f"Creating new {role} user: {email}...")
            user = await create_user(db, email, password, name, role)

        print(f"Done. {user.email} is an active {user.role}.")
        return user


def main():
    parser = argparse.ArgumentParser(description="Create or update a staff account for the Perks Marketplace API")
    parser.add_argument("--email", required=True, help="Account email address")
    parser.add_argument("--password", required=True, help="Account password (will be hashed before storing)")
    parser.add_argument("--name", default="Super Admin", help="Display name for a new account")
    parser.add_argument(
        "--role",
        default=UserRole.SUPER_ADMIN.value,
        choices=[role.value for role in UserRole],
        help="Account role",
    )
    args = parser.parse_args()

    if "@" not in args.email or "." not in args.email:
        print("Error: Invalid email format.", file=sys.stderr)
        sys.exit(1)

    if len(args.password) < 8:
        print("Error: Password must be at least 8 characters.", file=sys.stderr)
        sys.exit(1)

    asyncio.run(create_or_update_admin(args.email, args.password, args.role, args.name))


if __name__ == "__main__":
    main()
