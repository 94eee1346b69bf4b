"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def get_client() -> MongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = MongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
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


def get_collection(name: str, db: Optional[Database] = None) -> Collection:
    """Get a collection from the given database (application database by default)"""
    if db is None:
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
    if db is None:
        db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Workflow heads: one per (tenant, workflow) holding the active pointer
    workflow_heads = db["workflow_heads"]
    workflow_heads.create_index(
        [("tenant_id", ASCENDING), ("workflow_id", ASCENDING)], unique=True
    )

    # Workflow definitions: immutable version rows
    workflow_definitions = db["workflow_definitions"]
    workflow_definitions.create_index("definition_id", unique=True)
    workflow_definitions.create_index(
        [("tenant_id", ASCENDING), ("workflow_id", ASCENDING), ("version", DESCENDING)],
        unique=True
    )

    # Cases
    cases = db["cases"]
    cases.create_index("case_id", unique=True)
    cases.create_index([("tenant_id", ASCENDING), ("status", ASCENDING)])
    cases.create_index([("tenant_id", ASCENDING), ("assigned_to", ASCENDING)])
    cases.create_index([("tenant_id", ASCENDING), ("created_at", DESCENDING)])
    cases.create_index("workflow_id")

    # Case comments
    case_comments = db["case_comments"]
    case_comments.create_index("comment_id", unique=True)
    case_comments.create_index([("tenant_id", ASCENDING), ("case_id", ASCENDING)])

    # Audit entries
    audit_entries = db["audit_entries"]
    audit_entries.create_index("audit_entry_id", unique=True)
    audit_entries.create_index([
        ("tenant_id", ASCENDING),
        ("entity_type", ASCENDING),
        ("entity_id", ASCENDING),
        ("timestamp", DESCENDING),
    ])

    # Users
    users = db["users"]
    users.create_index("user_id", unique=True)
    users.create_index([("tenant_id", ASCENDING), ("email", ASCENDING)], unique=True)

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
