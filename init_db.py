"""Initialize the database schema for the nominations service.

Creates any missing tables and, when asked, seeds an admin account.
Run this before starting the API server.

    python init_db.py --admin-user admin --admin-password 's3cret'
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from awards.config import get_settings
from awards.db import build_engine, build_session_maker, create_tables
from awards.models import Base
from awards.repositories import AdminRepository


async def init_database(admin_user: str | None, admin_password: str | None):
    """Create all database tables and optionally seed one admin."""
    settings = get_settings()
    engine = build_engine(settings.db)
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")

    try:
        await create_tables(engine)
        print(f"✓ Tables ready: {', '.join(Base.metadata.tables.keys())}")

        if admin_user:
            session_maker = build_session_maker(engine)
            async with session_maker() as session:
                admins = AdminRepository(session)
                if await admins.get_by_username(admin_user) is not None:
                    print(f"• Admin '{admin_user}' already exists, left unchanged")
                else:
                    await admins.create(admin_user, admin_password)
                    print(f"✓ Created admin '{admin_user}'")
    finally:
        await engine.dispose()

    print("\n✅ Database initialization complete!")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--admin-user", help="Username of an admin to seed")
    parser.add_argument("--admin-password", help="Password for the seeded admin")
    args = parser.parse_args()

    if args.admin_user and not args.admin_password:
        parser.error("--admin-password is required with --admin-user")

    try:
        asyncio.run(init_database(args.admin_user, args.admin_password))
    except ValidationError as e:
        print(f"\n❌ Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
