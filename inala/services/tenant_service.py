"""
inala/services/tenant_service.py

Purpose: Tenant (business, stokvel, lender) management

- Create, read, update and delete tenant profiles
- Tenant type lookups used by inventory and lending rules
- Branding overrides
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, TENANTS
from inala.domain.states import TenantType
from inala.core.config import settings
from inala.core.exceptions import ResourceNotFoundError, BusinessRuleError
from inala.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def create_tenant(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Creates a tenant profile.

    Args:
        data: Tenant fields (name and type required); an explicit id is kept
              so slugs like "inala-butchery" survive

    Returns:
        The stored tenant
    """
    tenant_id = data.get("id") or new_id("t")
    ensure_tenant_id(tenant_id, "create_tenant")

    tenants = get_collection(TENANTS)
    if await tenants.find_one({"id": tenant_id}):
        raise BusinessRuleError(f"Tenant '{tenant_id}' already exists")

    tenant = {
        "primary_color": "#6366f1",
        "currency": settings.DEFAULT_CURRENCY,
        "subscription_tier": "BASIC",
        "is_active": True,
        "logo_url": None,
        "target": None,
        "category": None,
        "branding": {},
        **data,
        "id": tenant_id,
        "type": TenantType(data["type"]).value,
        "created_at": datetime.utcnow(),
    }

    with LogContext(tenant_id=tenant_id):
        await tenants.insert_one(tenant)
        logger.info(f"Tenant created: {tenant['name']} ({tenant['type']})")

    return sanitize_document(tenant)


async def get_tenant(tenant_id: str) -> Optional[Dict[str, Any]]:
    """
    Returns a tenant profile or None.
    """
    if not tenant_id:
        return None
    return sanitize_document(await get_collection(TENANTS).find_one({"id": tenant_id}))


async def require_tenant(tenant_id: str) -> Dict[str, Any]:
    """
    Returns a tenant profile or raises ResourceNotFoundError.
    """
    ensure_tenant_id(tenant_id, "require_tenant")
    tenant = await get_tenant(tenant_id)
    if not tenant:
        raise ResourceNotFoundError(f"Tenant '{tenant_id}' not found")
    return tenant


async def list_tenants(tenant_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Lists tenants, optionally filtered by type.
    """
    query: Dict[str, Any] = {}
    if tenant_type:
        query["type"] = TenantType(tenant_type).value

    cursor = get_collection(TENANTS).find(query).sort("name", 1)
    return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]


async def update_tenant(tenant_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applies a partial update to a tenant profile.
    """
    ensure_tenant_id(tenant_id, "update_tenant")

    changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
    if "type" in changes:
        changes["type"] = TenantType(changes["type"]).value
    changes["updated_at"] = datetime.utcnow()

    result = await get_collection(TENANTS).find_one_and_update(
        {"id": tenant_id},
        {"$set": changes},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Tenant '{tenant_id}' not found")

    logger.info("Tenant updated", extra={"tenant_id": tenant_id})
    return sanitize_document(result)


async def delete_tenant(tenant_id: str) -> bool:
    """
    Deletes a tenant profile. Tenant-scoped records are left in place.
    """
    ensure_tenant_id(tenant_id, "delete_tenant")

    result = await get_collection(TENANTS).delete_one({"id": tenant_id})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"Tenant '{tenant_id}' not found")

    logger.warning("Tenant deleted", extra={"tenant_id": tenant_id})
    return True


async def get_tenant_type(tenant_id: str) -> Optional[TenantType]:
    tenant = await get_tenant(tenant_id)
    if not tenant or not tenant.get("type"):
        return None
    return TenantType(tenant["type"])


async def get_branding(tenant_id: str) -> Dict[str, Any]:
    """
    Returns the branding overrides for a tenant (logo, colours).
    """
    tenant = await require_tenant(tenant_id)
    return {
        "name": tenant.get("name"),
        "logo_url": tenant.get("logo_url"),
        "primary_color": tenant.get("primary_color"),
        **(tenant.get("branding") or {}),
    }
