#!/usr/bin/env python3
"""
Script to create an admin user.
"""
import sys
from getpass import getpass
from pathlib import Path

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import Database
from database.models import UserRole
from services.auth_service import AuthService
from core.exceptions import VotingPlatformError
import config


def create_admin():
    """Prompt for credentials and create an admin account."""
    database = Database(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )
    database.create_tables()

    print("Creating admin user...")
    print("=" * 50)

    username = input("Username: ").strip()
    email = input("Email: ").strip()
    password = getpass("Password: ")

    try:
        with database.get_session() as db:
            user = AuthService.create_user(
                db=db,
                username=username,
                email=email,
                password=password,
                role=UserRole.ADMIN
            )
            print("\nAdmin user created successfully!")
            print(f"  Username: {user.username}")
            print(f"  Email: {user.email}")
            print(f"  Role: {user.role.value}")
    except VotingPlatformError as e:
        print(f"\nError: {e.message}")
        sys.exit(1)
    finally:
        database.dispose()


if __name__ == "__main__":
    create_admin()
