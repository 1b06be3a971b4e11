"""MongoDB database connection and setup."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import IndexModel, ASCENDING, DESCENDING
import logging
import certifi

from fitsoul.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    @classmethod
    async def connect(cls) -> None:
        """Connect to MongoDB and set up indexes."""
        settings = get_settings()

        client_options: dict = {
            "serverSelectionTimeoutMS": 30000,
            "connectTimeoutMS": 20000,
            "socketTimeoutMS": 20000,
        }

        # Atlas clusters need the certifi CA bundle.
        if settings.mongodb_url.startswith("mongodb+srv://"):
            client_options["tls"] = True
            client_options["tlsCAFile"] = certifi.where()

        cls.client = AsyncIOMotorClient(settings.mongodb_url, **client_options)
        cls.db = cls.client[settings.mongodb_database]

        await cls.client.admin.command("ping")
        logger.info(f"Connected to MongoDB database: {settings.mongodb_database}")
        await cls._create_indexes()

    @classmethod
    async def disconnect(cls) -> None:
        """Disconnect from MongoDB."""
        if cls.client:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Disconnected from MongoDB")

    @classmethod
    async def _create_indexes(cls) -> None:
        """Create indexes for the users collection."""
        if cls.db is None:
            raise RuntimeError("Database not connected")

        # Documents are keyed by uid (_id), so only secondary lookups need indexes
        await cls.db.users.create_indexes([
            IndexModel([("email", ASCENDING)]),
            IndexModel([("lastLoginAt", DESCENDING)]),
        ])

        logger.info("Database indexes created successfully")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Get the database instance."""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db

