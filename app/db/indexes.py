"""
app/db/indexes.py

Purpose: Database index management

- Unique phone_number indexes back the one-code-per-number and
  one-user-per-number guarantees
- TTL index physically removes long-expired codes
"""

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.mongo import VERIFICATION_CODES_COLLECTION, USERS_COLLECTION
from app.core.logging import get_logger

logger = get_logger(__name__)

# Expired codes are already rejected at read time; this only reclaims space.
EXPIRED_CODE_RETENTION_SECONDS = 3600


async def create_indexes(database: AsyncIOMotorDatabase):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        codes = database[VERIFICATION_CODES_COLLECTION]
        users = database[USERS_COLLECTION]

        logger.info("Creating database indexes...")

        # ==============================================
        # VERIFICATION CODES COLLECTION INDEXES
        # ==============================================

        await codes.create_index("phone_number", unique=True, name="phone_number_unique")
        logger.debug("Created unique index on verification_codes.phone_number")

        await codes.create_index(
            "expires_at",
            expireAfterSeconds=EXPIRED_CODE_RETENTION_SECONDS,
            name="expired_code_ttl_idx"
        )
        logger.debug("Created TTL index on verification_codes.expires_at")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index("phone_number", unique=True, name="user_phone_unique")
        logger.debug("Created unique index on users.phone_number")

        await users.create_index("created_at", name="user_created_idx")
        logger.debug("Created index on users.created_at")

        code_indexes = await codes.index_information()
        user_indexes = await users.index_information()

        logger.info(
            f"✅ Index summary: VerificationCodes={len(code_indexes)}, Users={len(user_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection, get_database

    async def main():
        await connect_to_mongo()
        await create_indexes(get_database())
        await close_mongo_connection()

    asyncio.run(main())
