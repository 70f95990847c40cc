"""
Database initialization script

Creates indexes and seeds the platform records a fresh deployment needs:
the global settings document and the super admin account.

Run once after provisioning MongoDB:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from motor.motor_asyncio import AsyncIOMotorClient
import logging
from datetime import datetime

from inala.db.mongo import use_database, get_collection, USERS, GLOBAL_SETTINGS
from inala.db.indexes import create_indexes
from utils.constants import SUPER_ADMIN_SEED, DEFAULT_GLOBAL_SETTINGS

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


MONGODB_URL = os.getenv("MONGODB_URL")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "inala_erp")

if not MONGODB_URL:
    raise ValueError("MONGODB_URL must be set in .env file")


async def seed_platform():
    """Inserts the global settings and super admin if they are missing."""
    result = await get_collection(GLOBAL_SETTINGS).update_one(
        {"id": DEFAULT_GLOBAL_SETTINGS["id"]},
        {"$setOnInsert": {**DEFAULT_GLOBAL_SETTINGS, "updated_at": datetime.utcnow()}},
        upsert=True
    )
    logger.info("Global settings created" if result.upserted_id else "Global settings already exist")

    result = await get_collection(USERS).update_one(
        {"id": SUPER_ADMIN_SEED["id"]},
        {"$setOnInsert": {**SUPER_ADMIN_SEED, "created_at": datetime.utcnow()}},
        upsert=True
    )
    logger.info("Super admin created" if result.upserted_id else "Super admin already exists")


async def main():
    logger.info("=" * 60)
    logger.info("  INALA Database Setup")
    logger.info("=" * 60)

    client = AsyncIOMotorClient(MONGODB_URL)
    try:
        await client.admin.command('ping')
        logger.info(f"Connected to {MONGODB_DB_NAME}")

        use_database(client[MONGODB_DB_NAME], client)
        await create_indexes()
        await seed_platform()

    except Exception as e:
        logger.error(f"Setup failed: {e}")
        raise

    finally:
        client.close()

    logger.info("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
