#!/usr/bin/env python3
"""
Register a user and print a session token for local development.
The user named by OWNER_ID is promoted to admin.

Run from backend/: python -m scripts.issue_session <user_id> [--name NAME] [--email EMAIL]
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def main(args: argparse.Namespace):
    from dashboard import repository
    from dashboard.config import get_settings
    from dashboard.database import Database
    from dashboard.repository import StoreUnavailableError
    from dashboard.schemas import UserUpsert
    from dashboard.services.auth_service import issue_session_token
    from dashboard.utils import utcnow

    settings = get_settings()
    database = Database(settings.database_url)
    try:
        if not await database.create_all():
            print("Error: DATABASE_URL is not set or the database is unreachable")
            sys.exit(1)
        await repository.upsert_user(
            database,
            UserUpsert(id=args.user_id, name=args.name, email=args.email,
                       login_method="dev", last_signed_in=utcnow()),
            owner_id=settings.owner_id,
        )
        user = await repository.get_user(database, args.user_id)
    except StoreUnavailableError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        await database.dispose()

    token = issue_session_token(args.user_id, name=args.name, email=args.email, login_method="dev")
    print(f"User {user.id} ({user.role.value})")
    print(f"Cookie {settings.session_cookie_name}={token}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("user_id")
    parser.add_argument("--name")
    parser.add_argument("--email")
    asyncio.run(main(parser.parse_args()))
