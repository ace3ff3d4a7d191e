#!/usr/bin/env python3
"""
Script to create the first admin account, or grant the admin role to an existing account.
"""
import sys
from getpass import getpass
from pathlib import Path

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import Database
from database.models import AppRole
from services.auth_service import AuthService
from services.user_service import UserService
import config


def create_admin():
    """Prompt for details and create (or promote) an admin."""
    config.db = Database(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )
    config.db.create_tables()

    print("Creating admin user...")
    print("=" * 50)

    email = input("Email: ").strip()
    if not email:
        print("Error: Email is required")
        sys.exit(1)

    try:
        with config.db.get_session() as db:
            existing = AuthService.get_user_by_email(db, email)
            if existing:
                if UserService.assign_role(db, existing, AppRole.ADMIN.value):
                    print(f"\n✓ Granted admin role to {existing.email}")
                else:
                    print(f"\n{existing.email} is already an admin")
                print(f"  Roles: {', '.join(existing.role_values)}")
                return

            first_name = input("First name: ").strip()
            last_name = input("Last name: ").strip()
            password = getpass("Password: ")
            user = AuthService.create_user(
                db=db,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                roles=[AppRole.ADMIN],
            )
            print("\n✓ Admin user created successfully!")
            print(f"  Email: {user.email}")
            print(f"  Roles: {', '.join(user.role_values)}")
            print("\nYou can now login at: POST /api/auth/login")
    except ValueError as e:
        print(f"\n✗ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    create_admin()
