"""
inala/services/audit_service.py

Purpose: Administrative audit trail

- Records voids, void requests, sale adjustments and reviews
- Lists a tenant's most recent audit entries
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, AUDIT_LOGS
from inala.core.logging import get_logger

logger = get_logger(__name__)


async def log_audit(
    tenant_id: str,
    action: str,
    actor: str,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Appends an audit entry.

    Args:
        tenant_id: Tenant the action happened in
        action: Short action code, e.g. "TRANSACTION_VOID"
        actor: Display name of the user acting
        entity_id: Affected document id
        details: Free-form context (reason, before/after amounts)

    Returns:
        The stored entry
    """
    ensure_tenant_id(tenant_id, "log_audit")

    entry = {
        "id": new_id("audit"),
        "tenant_id": tenant_id,
        "action": action,
        "actor": actor,
        "entity_id": entity_id,
        "details": details or {},
        "created_at": datetime.utcnow(),
    }
    await get_collection(AUDIT_LOGS).insert_one(entry)

    logger.info(
        f"Audit: {action} by {actor}",
        extra={"tenant_id": tenant_id, "entity_id": entity_id, "action": action}
    )
    return sanitize_document(entry)


async def list_audit_logs(tenant_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """
    Returns the latest audit entries for a tenant, newest first.
    """
    ensure_tenant_id(tenant_id, "list_audit_logs")

    cursor = get_collection(AUDIT_LOGS).find({"tenant_id": tenant_id}).sort("created_at", -1).limit(limit)
    return [sanitize_document(doc) for doc in await cursor.to_list(length=limit)]
