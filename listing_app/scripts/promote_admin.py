# python -m scripts.promote_admin <uid>   (run from listing_app/)
import argparse
import asyncio
import logging
import sys

from core.get_db import AsyncSessionLocal, async_engine
from models.enums import UserRole
from repos.auth_repo import AuthRepo

logger = logging.getLogger(__name__)


async def promote(uid: str) -> bool:
    async with AsyncSessionLocal() as db:
        repo = AuthRepo(db)
        user = await repo.by_id(uid)
        if not user:
            logger.error(f"No user with id {uid}; they must sign in once first")
            return False
        if user.role == UserRole.ADMIN:
            logger.info(f"User {uid} is already an admin")
            return True
        user.role = UserRole.ADMIN
        await repo.update(user)
        logger.info(f"User {uid} promoted to admin")
        return True


async def run(uid: str) -> bool:
    try:
        return await promote(uid)
    finally:
        await async_engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Grant the admin role to a user")
    parser.add_argument("uid", help="identity provider uid of an existing user")
    args = parser.parse_args()
    sys.exit(0 if asyncio.run(run(args.uid)) else 1)
