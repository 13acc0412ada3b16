import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from tracker.core.config import Settings

logger = logging.getLogger(__name__)

SERVICE_REQUESTS = "service_requests"
DELIVERED_DATA = "delivered_data"
USERS = "users"
ADMINS = "admins"


def connect(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.mongo_uri, serverSelectionTimeoutMS=5000)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[SERVICE_REQUESTS].create_index([("user", ASCENDING), ("createdAt", DESCENDING)])
    await db[SERVICE_REQUESTS].create_index([("createdAt", DESCENDING)])
    await db[DELIVERED_DATA].create_index([("requestId", ASCENDING)])
    await db[USERS].create_index("email", unique=True)
    await db[ADMINS].create_index("email", unique=True)
    logger.info("Mongo indexes ensured")
