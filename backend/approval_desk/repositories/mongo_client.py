"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes(db: Optional[Database] = None) -> None:
    """Create all required indexes"""
    db = db if db is not None else get_database()
    logger.info("Creating MongoDB indexes...")

    # Users - unique email, lookups by role
    users = db["users"]
    users.create_index("email", unique=True)
    users.create_index("role")

    # Pending signups - unique email
    pending_users = db["pendingUsers"]
    pending_users.create_index("email", unique=True)
    pending_users.create_index("created_at")

    # Approvals - per-requester and per-approver listings
    approvals = db["approvals"]
    approvals.create_index([("requester_id", ASCENDING), ("status", ASCENDING)])
    approvals.create_index([("assigned_approver_id", ASCENDING), ("status", ASCENDING)])
    approvals.create_index([("status", ASCENDING), ("notified", ASCENDING)])
    approvals.create_index("created_at", background=True)

    # Notifications - recipient feed and unread badge
    notifications = db["notifications"]
    notifications.create_index([("user_id", ASCENDING), ("timestamp", DESCENDING)])
    notifications.create_index([("user_id", ASCENDING), ("read", ASCENDING)])
    notifications.create_index("approval_id")

    # Audit events
    audit_events = db["auditEvents"]
    audit_events.create_index([("timestamp", DESCENDING)])
    audit_events.create_index("action")

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "backend": "mongo",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "backend": "mongo",
            "database": settings.mongo_db,
            "error": str(e)
        }
