import os
import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Suppress verbose PyMongo driver logs
logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'userdir')
USERS_COLLECTION_NAME = 'users'
COUNTERS_COLLECTION_NAME = 'counters'

_client: MongoClient | None = None


def get_mongodb_client() -> MongoClient | None:
    """Return the shared MongoDB client, or None if the server does not answer.

    The client is built once and pinged on every call, so a server that
    comes back is picked up again without a restart.
    """
    global _client

    if not MONGO_URL:
        logger.error("[MONGODB] MONGO_URL not configured")
        return None

    try:
        if _client is None:
            _client = MongoClient(
                MONGO_URL,
                # Stored dates come back as aware UTC datetimes
                tz_aware=True,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=30000,
                maxPoolSize=10,
                # A repeated insert could burn a second ID
                retryWrites=False,
            )
        _client.admin.command('ping')
        return _client
    except PyMongoError as e:
        logger.error("[MONGODB] Connection failed", extra={"database": DATABASE_NAME, "error": str(e)[:200]})
        return None
