"""
app/db/indexes.py

Purpose: Database index management

- Collection-path index on every document collection
- Lookup index for registration OTP verification
- TTL index so abandoned pending registrations clean themselves up
- Unique email on auth accounts
"""

from app.db.collections import (
    COLLECTION_USERS,
    COLLECTION_PENDING_USERS,
    COLLECTION_AUTH_ACCOUNTS,
    COLLECTION_WASIYATS,
    USER_SUBCOLLECTIONS,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(database):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        # ==============================================
        # PATH-ADDRESSED DOCUMENT COLLECTIONS
        # ==============================================

        for name in (COLLECTION_USERS, COLLECTION_PENDING_USERS) + USER_SUBCOLLECTIONS:
            await database[name].create_index("_collection", name="collection_path_idx")
            logger.debug(f"Created index on {name}._collection")

        # Newest-first listing of wills
        await database[COLLECTION_WASIYATS].create_index(
            [("_collection", 1), ("created_at", -1)],
            name="wasiyat_recent_idx"
        )

        # ==============================================
        # PENDING REGISTRATIONS
        # ==============================================

        await database[COLLECTION_PENDING_USERS].create_index(
            [("email", 1), ("phone", 1), ("otp", 1)],
            name="otp_lookup_idx"
        )

        # expires_at holds the absolute expiry time
        await database[COLLECTION_PENDING_USERS].create_index(
            "expires_at",
            expireAfterSeconds=0,
            name="pending_ttl_idx"
        )
        logger.debug("Created TTL index on pending_users.expires_at")

        # ==============================================
        # AUTH ACCOUNTS
        # ==============================================

        await database[COLLECTION_AUTH_ACCOUNTS].create_index("uid", unique=True, name="uid_unique")
        await database[COLLECTION_AUTH_ACCOUNTS].create_index("email", unique=True, name="email_unique")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Error creating indexes: {str(e)}", exc_info=True)
        raise
