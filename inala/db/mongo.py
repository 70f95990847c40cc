"""
inala/db/mongo.py

Purpose: MongoDB connection setup (tenant-scoped collections)

- Initializes Motor client with connection pooling
- One collection per entity, every document carries tenant_id
- Tenant guard and document sanitizing shared by all services
- Health checks and retry logic
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from datetime import datetime
from typing import Optional, Dict, Any
import asyncio
import uuid

from inala.core.config import settings
from inala.core.exceptions import TenantGuardError
from inala.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None

# Reserved tenant id used by platform-level users
GLOBAL_TENANT_ID = "global"

TENANTS = "tenants"
USERS = "users"
PRODUCTS = "products"
CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
MEMBERS = "members"
CONTRIBUTIONS = "contributions"
PAYOUTS = "payouts"
LOANS = "loans"
EXPENSES = "expenses"
POPS = "pops"
EMAILS = "emails"
MAIL_TRIGGERS = "mail_triggers"
GLOBAL_SETTINGS = "global_settings"
AUDIT_LOGS = "audit_logs"


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            _client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                maxPoolSize=50,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            # Verify connection
            await _client.admin.command("ping")

            logger.info(f"Connected to MongoDB: {settings.MONGODB_DB_NAME}")
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _client is None:
            logger.error("MongoDB client not initialized")
            return False

        await _client.admin.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def use_database(database: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
    """
    Installs an already-constructed database handle (scripts and tests).
    """
    global _client, _database
    _client = client
    _database = database


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_collection(name: str) -> AsyncIOMotorCollection:
    """
    Returns a collection by name.

    Tenant-scoped collections hold documents shaped as
    {"id": str, "tenant_id": str, ...}; platform collections
    (tenants, users, global_settings, mail_triggers) use "id" only.
    """
    return get_database()[name]


def ensure_tenant_id(tenant_id: Optional[str], action: str) -> str:
    """
    Blocks tenant-scoped reads and writes without a real tenant.

    Args:
        tenant_id: Tenant ID supplied by the caller
        action: Operation name, for the log line

    Returns:
        The tenant ID, unchanged

    Raises:
        TenantGuardError: If the ID is empty or the reserved global ID
    """
    if not tenant_id or tenant_id.strip().lower() == GLOBAL_TENANT_ID:
        logger.error(f"[Guard] Blocked {action}: invalid or missing tenant_id")
        raise TenantGuardError(f"Blocked {action}: invalid or missing tenant")
    return tenant_id


def new_id(prefix: str) -> str:
    """Generates a document id such as 'tx_3f2a9c1b7d4e'."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _safe_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _safe_value(v) for k, v in value.items() if k != "_id"}
    if isinstance(value, list):
        return [_safe_value(item) for item in value]
    return value


def sanitize_document(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Converts a raw document into an API-safe dict.

    - Drops Mongo's internal _id
    - Datetimes (also inside lists and nested dicts) become ISO strings
    """
    if doc is None:
        return None
    return {key: _safe_value(value) for key, value in doc.items() if key != "_id"}
