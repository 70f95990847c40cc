"""
inala/services/pop_service.py

Purpose: Proof-of-payment documents

- Members and staff submit POPs for payments made outside the till
- Treasurers verify or reject them
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, POPS
from inala.domain.states import POPStatus
from inala.core.exceptions import ResourceNotFoundError, ValidationError, BusinessRuleError
from inala.core.logging import get_logger
from inala.services.audit_service import log_audit
from utils.validation_utils import to_amount, round_money, sanitize_input

logger = get_logger(__name__)


async def submit_pop(tenant_id: str, data: Dict[str, Any], uploaded_by: str) -> Dict[str, Any]:
    """
    Stores a proof of payment in PENDING state.

    Args:
        data: amount, reference, image_url and optional ocr_data
        uploaded_by: Id or name of the submitting user
    """
    ensure_tenant_id(tenant_id, "submit_pop")

    amount = to_amount(data.get("amount"))
    if amount <= 0:
        raise ValidationError("POP amount must be greater than zero")

    pop = {
        "id": new_id("pop"),
        "tenant_id": tenant_id,
        "uploaded_by": uploaded_by,
        "amount": round_money(amount),
        "reference": sanitize_input(data.get("reference", "")),
        "image_url": data.get("image_url"),
        "ocr_data": data.get("ocr_data") or {},
        "status": POPStatus.PENDING.value,
        "timestamp": datetime.utcnow(),
    }

    await get_collection(POPS).insert_one(pop)
    logger.info(f"POP submitted: {pop['reference']} {pop['amount']}", extra={"tenant_id": tenant_id})

    return sanitize_document(pop)


async def list_pops(tenant_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "list_pops")

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if status:
        query["status"] = POPStatus(status).value

    try:
        cursor = get_collection(POPS).find(query).sort("timestamp", -1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_pops failed: {e}", extra={"tenant_id": tenant_id})
        return []


async def review_pop(tenant_id: str, pop_id: str, status: str, reviewer: Dict[str, Any]) -> Dict[str, Any]:
    """
    Verifies or rejects a pending POP.

    Raises:
        BusinessRuleError: POP already reviewed
        ValidationError: Target status is not VERIFIED or REJECTED
    """
    ensure_tenant_id(tenant_id, "review_pop")

    new_status = POPStatus(status)
    if new_status == POPStatus.PENDING:
        raise ValidationError("A review must verify or reject the POP")

    pops = get_collection(POPS)
    pop = await pops.find_one({"tenant_id": tenant_id, "id": pop_id})
    if not pop:
        raise ResourceNotFoundError(f"POP '{pop_id}' not found")
    if pop.get("status") != POPStatus.PENDING.value:
        raise BusinessRuleError(f"POP has already been {pop.get('status', '').lower()}")

    updated = await pops.find_one_and_update(
        {"tenant_id": tenant_id, "id": pop_id},
        {"$set": {
            "status": new_status.value,
            "reviewed_by": reviewer.get("id"),
            "reviewed_at": datetime.utcnow(),
        }},
        return_document=True
    )

    await log_audit(
        tenant_id, f"POP_{new_status.value}", reviewer.get("name") or reviewer.get("id"),
        entity_id=pop_id, details={"amount": pop.get("amount"), "reference": pop.get("reference")}
    )
    return sanitize_document(updated)
