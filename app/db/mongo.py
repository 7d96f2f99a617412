"""
app/db/mongo.py

Purpose: MongoDB connection lifecycle

- One Motor client per process, opened at startup with retries
- Detects whether the server can serve change streams
- Health check for the probes

Live snapshots and on-create triggers are built on change streams, which
MongoDB only offers on replica sets and sharded clusters.
"""

import asyncio
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

CONNECT_ATTEMPTS = 3
FIRST_RETRY_DELAY = 2

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None
_change_streams = False


def _build_client() -> AsyncIOMotorClient:
    # Escaped percent signs in .env files
    url = settings.MONGODB_URL.replace("%%", "%25")
    return AsyncIOMotorClient(
        url,
        maxPoolSize=50,
        minPoolSize=10,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        retryWrites=True,
        retryReads=True,
        tz_aware=False,
    )


async def _detect_change_streams(client: AsyncIOMotorClient) -> bool:
    hello = await client.admin.command("hello")
    # mongos answers "isdbgrid"; replica set members report their set name
    return bool(hello.get("setName") or hello.get("msg") == "isdbgrid")


async def connect_to_mongo() -> None:
    """
    Opens the client and pings the server.

    Raises:
        ConnectionError: If every attempt fails
    """
    global _client, _database, _change_streams

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    delay = FIRST_RETRY_DELAY
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        client = _build_client()
        try:
            logger.info(f"Connecting to MongoDB (attempt {attempt}/{CONNECT_ATTEMPTS})")
            await client.admin.command("ping")
            _change_streams = await _detect_change_streams(client)
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB connection attempt {attempt} failed: {e}")
            if attempt == CONNECT_ATTEMPTS:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e
            logger.info(f"Retrying in {delay} seconds...")
            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"✅ Connected to MongoDB: {settings.MONGODB_DB_NAME}")
        if not _change_streams:
            logger.warning("⚠️ MongoDB is not a replica set: live snapshots and triggers are unavailable")
        return


async def close_mongo_connection() -> None:
    global _client, _database, _change_streams

    if _client is None:
        return
    _client.close()
    _client = None
    _database = None
    _change_streams = False
    logger.info("MongoDB connection closed")


def supports_change_streams() -> bool:
    """True once connected to a deployment that can serve change streams."""
    return _change_streams


async def check_database_health() -> bool:
    if _client is None:
        logger.error("MongoDB client not initialized")
        return False

    try:
        await _client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def get_database() -> AsyncIOMotorDatabase:
    """
    Raises:
        RuntimeError: If connect_to_mongo() has not run
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() during startup.")
    return _database
