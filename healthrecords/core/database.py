import motor.motor_asyncio
from pymongo.errors import PyMongoError

from ..config import settings
from ..utils.log_utils import app_logger

# MongoDB connection string
MONGODB_URL = settings.MONGODB_URL

# Database name
DB_NAME = settings.MONGODB_DB

# Async MongoDB client for FastAPI
async_client = motor.motor_asyncio.AsyncIOMotorClient(MONGODB_URL)
async_db = async_client[DB_NAME]

# Collections
reports_collection = async_db.reports
report_types_collection = async_db.reporttypes


async def connect_to_mongodb():
    """Connect to MongoDB."""
    try:
        await async_client.admin.command('ping')
        app_logger.info(f"Connected to MongoDB at {MONGODB_URL}")
        return True
    except PyMongoError as e:
        app_logger.error(f"Failed to connect to MongoDB: {e}")
        return False


async def close_mongodb_connection():
    """Close MongoDB connection."""
    async_client.close()
    app_logger.info("MongoDB connection closed")
