"""Create the first admin account.

Admins cannot register through the API, so a fresh deployment needs one
created from the command line:

Usage:
    python -m buzzarfeed.scripts.create_admin --name "Site Admin" --email admin@example.com

The password is read from ADMIN_PASSWORD or prompted for. Tables are created
first when they do not exist yet.
"""

import argparse
import asyncio
import getpass
import os
import sys

from ..core.constants import UserType
from ..core.exceptions import BuzzarFeedError
from ..core.logging import get_logger, setup_logging
from ..core.security import hash_password
from ..db.database import AsyncSessionLocal, engine, init_models
from ..models import User
from ..repositories import UserRepository
from ..services.auth_service import ensure_password_strength
from ..utils.transaction_helpers import safe_transaction

logger = get_logger(__name__)


async def create_admin(name: str, email: str, password: str) -> int:
    """Create an admin, or promote the existing account with that email.

    Returns:
        The admin's user id
    """
    ensure_password_strength(password)
    await init_models()

    async with AsyncSessionLocal() as db:
        users = UserRepository(db)
        async with safe_transaction(db):
            user = await users.find_by_email(email)
            if user:
                user.user_type = UserType.ADMIN
                user.is_active = True
                logger.info("Existing account promoted to admin", extra={'user_id': user.id})
            else:
                user = await users.create(
                    User(
                        name=name,
                        email=email.lower(),
                        password_hash=hash_password(password),
                        user_type=UserType.ADMIN,
                        is_active=True
                    )
                )
                logger.info("Admin account created", extra={'user_id': user.id})
        return user.id


def main() -> int:
    setup_logging()

    parser = argparse.ArgumentParser(description="Create a BuzzarFeed admin account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    args = parser.parse_args()

    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")

    async def run() -> int:
        try:
            return await create_admin(args.name, args.email, password)
        finally:
            await engine.dispose()

    try:
        user_id = asyncio.run(run())
    except BuzzarFeedError as e:
        logger.error("Admin not created", extra={'error_message': e.message, 'errors': e.errors})
        return 1

    print(f"Admin ready (id={user_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
