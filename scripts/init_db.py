"""
Database initialization script

Creates indexes, checks that change streams are available and optionally
creates the admin account:
    python scripts/init_db.py
    python scripts/init_db.py --create-admin 'a-strong-password'
"""

import argparse
import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError
import logging

from app.db.collections import COLLECTION_AUTH_ACCOUNTS, COLLECTION_PENDING_USERS, USER_SUBCOLLECTIONS
from app.db.indexes import create_indexes
from app.services.auth_service import create_account, get_account_by_email, hash_password

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


# MongoDB connection - load from .env
MONGODB_URL = os.getenv("MONGODB_URL")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@zimmah.com")

if not MONGODB_URL or not MONGODB_DB_NAME:
    raise ValueError("❌ MONGODB_URL and MONGODB_DB_NAME must be set in .env file")


async def check_change_streams(client) -> bool:
    """Live snapshots and the OTP trigger need a replica set."""
    hello = await client.admin.command("hello")
    if hello.get("setName"):
        logger.info(f"✅ Replica set '{hello['setName']}' found, change streams available")
        return True
    logger.warning("⚠️  Not a replica set: live snapshots and the OTP trigger will not work")
    return False


async def create_admin(db, password: str) -> None:
    if await get_account_by_email(db, ADMIN_EMAIL):
        logger.info(f"ℹ️  Admin account {ADMIN_EMAIL} already exists")
        return
    try:
        account = await create_account(db, ADMIN_EMAIL, hash_password(password), display_name="Admin")
        logger.info(f"✅ Admin account created (uid={account['uid']})")
    except DuplicateKeyError:
        logger.info("ℹ️  Admin account already exists")


async def main(admin_password: str = None):
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  Zimmah Database Setup")
    logger.info("=" * 60 + "\n")

    logger.info(f"🔌 Connecting to MongoDB: {MONGODB_DB_NAME}")
    client = AsyncIOMotorClient(MONGODB_URL)
    db = client[MONGODB_DB_NAME]

    try:
        await client.admin.command('ping')
        logger.info("✅ Connected successfully\n")

        await check_change_streams(client)
        await create_indexes(db)

        # ==================== VERIFICATION ====================
        logger.info("\n🔍 Verifying indexes...")

        for collection_name in ("users", COLLECTION_PENDING_USERS, COLLECTION_AUTH_ACCOUNTS) + USER_SUBCOLLECTIONS:
            indexes = await db[collection_name].index_information()
            logger.info(f"\n  {collection_name}:")
            for idx_name in indexes.keys():
                if idx_name != "_id_":
                    logger.info(f"    ✅ {idx_name}")

        if admin_password:
            await create_admin(db, admin_password)

        logger.info("\n✅ Database initialization complete!")

    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise

    finally:
        client.close()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the Zimmah database")
    parser.add_argument("--create-admin", metavar="PASSWORD", help="Create the ADMIN_EMAIL account")
    args = parser.parse_args()
    asyncio.run(main(args.create_admin))
