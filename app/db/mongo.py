"""
app/db/mongo.py

Purpose: MongoDB client lifecycle for the verification service

- One Motor client per process, opened in the app lifespan
- Startup retries while the database comes up
- Accessors for the verification_codes and users collections
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

VERIFICATION_CODES_COLLECTION = "verification_codes"
USERS_COLLECTION = "users"

CONNECT_ATTEMPTS = 3
CONNECT_BACKOFF_SECONDS = 1.0

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _open_client() -> AsyncIOMotorClient:
    # Writes are single-document upserts and deletes, so retrying them is safe
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        appname="phoneverify",
        serverSelectionTimeoutMS=5000,
        retryWrites=True,
    )


async def connect_to_mongo(attempts: int = CONNECT_ATTEMPTS):
    """
    Opens the client and pings the server, backing off between failed attempts.

    Raises:
        ConnectionError: If no attempt reached the server
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    delay = CONNECT_BACKOFF_SECONDS
    for attempt in range(1, attempts + 1):
        client = _open_client()
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB unreachable (attempt {attempt}/{attempts}): {e}")
            if attempt == attempts:
                raise ConnectionError("Could not establish MongoDB connection") from e
            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"✅ Connected to MongoDB database '{settings.MONGODB_DB_NAME}'")
        return


async def close_mongo_connection():
    global _client, _database

    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """True when the server answers a ping."""
    if _client is None:
        return False

    try:
        await _client.admin.command("ping")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


def get_database() -> AsyncIOMotorDatabase:
    if _database is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() during startup.")
    return _database


def get_verification_codes_collection() -> AsyncIOMotorCollection:
    """One pending code document per phone_number."""
    return get_database()[VERIFICATION_CODES_COLLECTION]


def get_users_collection() -> AsyncIOMotorCollection:
    return get_database()[USERS_COLLECTION]
