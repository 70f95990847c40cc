"""
inala/db/indexes.py

Purpose: Database index management

- Unique document ids per collection
- Compound (tenant_id, ...) indexes replacing per-tenant sub-collections
- Per-tenant uniqueness (product SKU) and lookup indexes
"""

from inala.db.mongo import (
    get_collection,
    TENANTS, USERS, PRODUCTS, CUSTOMERS, TRANSACTIONS, MEMBERS,
    CONTRIBUTIONS, PAYOUTS, LOANS, EXPENSES, POPS, EMAILS,
    MAIL_TRIGGERS, GLOBAL_SETTINGS, AUDIT_LOGS,
)
from inala.core.logging import get_logger

logger = get_logger(__name__)


TENANT_SCOPED = (
    PRODUCTS, CUSTOMERS, TRANSACTIONS, MEMBERS, CONTRIBUTIONS,
    PAYOUTS, LOANS, EXPENSES, POPS, EMAILS, AUDIT_LOGS,
)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        # ==============================================
        # PLATFORM COLLECTIONS
        # ==============================================

        for name in (TENANTS, USERS, MAIL_TRIGGERS, GLOBAL_SETTINGS):
            await get_collection(name).create_index("id", unique=True, name=f"{name}_id_unique")
            logger.debug(f"Created unique index on {name}.id")

        users = get_collection(USERS)
        await users.create_index("email", unique=True, name="user_email_unique")
        await users.create_index("tenant_id", name="user_tenant_idx")
        logger.debug("Created indexes on users.email and users.tenant_id")

        await get_collection(TENANTS).create_index("type", name="tenant_type_idx")
        await get_collection(MAIL_TRIGGERS).create_index("status", name="mail_trigger_status_idx")

        # ==============================================
        # TENANT-SCOPED COLLECTIONS
        # ==============================================

        for name in TENANT_SCOPED:
            collection = get_collection(name)
            await collection.create_index(
                [("tenant_id", 1), ("id", 1)],
                unique=True,
                name=f"{name}_tenant_id_unique"
            )
            logger.debug(f"Created compound index on {name}.tenant_id + id")

        transactions = get_collection(TRANSACTIONS)
        await transactions.create_index(
            [("tenant_id", 1), ("type", 1), ("timestamp", -1)],
            name="tx_tenant_type_time_idx"
        )
        await transactions.create_index(
            [("tenant_id", 1), ("customer_id", 1)],
            name="tx_tenant_customer_idx"
        )
        logger.debug("Created lookup indexes on transactions")

        await get_collection(PRODUCTS).create_index(
            [("tenant_id", 1), ("sku", 1)],
            unique=True,
            name="product_sku_unique"
        )
        await get_collection(CONTRIBUTIONS).create_index(
            [("tenant_id", 1), ("member_id", 1), ("period", 1)],
            name="contribution_member_period_idx"
        )
        await get_collection(LOANS).create_index(
            [("tenant_id", 1), ("status", 1)],
            name="loan_tenant_status_idx"
        )
        await get_collection(EXPENSES).create_index(
            [("tenant_id", 1), ("timestamp", -1)],
            name="expense_tenant_time_idx"
        )
        await get_collection(AUDIT_LOGS).create_index(
            [("tenant_id", 1), ("created_at", -1)],
            name="audit_tenant_time_idx"
        )

        logger.info("All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from inala.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
