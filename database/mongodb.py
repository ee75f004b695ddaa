from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from typing import Optional
import logging

logger = logging.getLogger(__name__)

PRINCIPAL_COLLECTIONS = ("requesters", "csc_admins", "technicians")
REQUEST_COLLECTIONS = ("simple_requests", "service_requests")

class Database:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, mongo_url: str, db_name: str):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(mongo_url)
            self.db = self.client[db_name]
            # Verify connection
            await self.client.admin.command('ping')
            logger.info(f"Connected to MongoDB database: {db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def get_db(self) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if self.db is None:
            raise Exception("Database not connected")
        return self.db

db = Database()

async def get_database() -> AsyncIOMotorDatabase:
    return db.get_db()


async def ensure_indexes(database: AsyncIOMotorDatabase):
    """Create the indexes the portal relies on (idempotent)"""
    # Usernames are unique inside one role collection only
    for name in PRINCIPAL_COLLECTIONS:
        await database[name].create_index([("username", ASCENDING)], unique=True)

    for name in REQUEST_COLLECTIONS:
        await database[name].create_index([("user_id", ASCENDING)])
        await database[name].create_index([("submission_time", DESCENDING)])

    logger.info("MongoDB indexes verified")
