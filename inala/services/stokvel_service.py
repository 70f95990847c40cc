"""
inala/services/stokvel_service.py

Purpose: Stokvel (rotating savings club) management

- Member roster and payout rotation queue
- Monthly contributions against pledges
- Payout eligibility and processing
- Dashboard stats and hybrid savings/lending metrics
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import (
    get_collection, ensure_tenant_id, new_id, sanitize_document,
    MEMBERS, CONTRIBUTIONS, PAYOUTS, LOANS, TRANSACTIONS,
)
from inala.domain.states import (
    MemberStatus, ContributionStatus, PayoutStatus, TransactionType, PaymentMethod, LoanStatus,
)
from inala.core.config import settings
from inala.core.exceptions import ResourceNotFoundError, ValidationError, BusinessRuleError
from inala.core.logging import get_logger, LogContext
from inala.services import pos_service
from inala.services.tenant_service import get_tenant
from utils.constants import UNQUEUED_POSITION
from utils.date_utils import current_period, parse_document_date
from utils.normalize import is_voided
from utils.validation_utils import to_amount, round_money, sanitize_input, validate_period_format

logger = get_logger(__name__)


# ============================================================
# MEMBERS
# ============================================================

async def list_members(tenant_id: str) -> List[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "list_members")
    try:
        cursor = get_collection(MEMBERS).find({"tenant_id": tenant_id}).sort("name", 1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_members failed: {e}", extra={"tenant_id": tenant_id})
        return []


async def _require_member(tenant_id: str, member_id: str) -> Dict[str, Any]:
    member = await get_collection(MEMBERS).find_one({"tenant_id": tenant_id, "id": member_id})
    if not member:
        raise ResourceNotFoundError(f"Member '{member_id}' not found")
    return member


async def get_member(tenant_id: str, member_id: str) -> Dict[str, Any]:
    ensure_tenant_id(tenant_id, "get_member")
    return sanitize_document(await _require_member(tenant_id, member_id))


async def add_member(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Adds a member at the back of the payout queue.

    New members start with nothing contributed and queue position
    member_count + 1.
    """
    ensure_tenant_id(tenant_id, "add_member")

    name = sanitize_input(data.get("name", ""))
    if not name:
        raise ValidationError("Member name is required")

    pledge = to_amount(data.get("monthly_pledge"))
    if pledge < 0:
        raise ValidationError("Monthly pledge cannot be negative")

    members = get_collection(MEMBERS)
    count = await members.count_documents({"tenant_id": tenant_id})

    member = {
        "id": data.get("id") or new_id("sm"),
        "tenant_id": tenant_id,
        "name": name,
        "phone": data.get("phone"),
        "email": data.get("email"),
        "join_date": parse_document_date(data.get("join_date")) or datetime.utcnow(),
        "monthly_pledge": round_money(pledge),
        "total_contributed": 0.0,
        "payout_queue_position": count + 1,
        "status": MemberStatus(data.get("status") or MemberStatus.ACTIVE).value,
        "avatar_url": data.get("avatar_url"),
    }

    await members.insert_one(member)
    logger.info(f"Stokvel member added: {name} (queue #{member['payout_queue_position']})",
                extra={"tenant_id": tenant_id})

    return sanitize_document(member)


async def update_member(tenant_id: str, member_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    ensure_tenant_id(tenant_id, "update_member")

    changes = {
        k: v for k, v in changes.items()
        if k not in ("id", "tenant_id", "total_contributed")
    }
    if "status" in changes:
        changes["status"] = MemberStatus(changes["status"]).value
    if "monthly_pledge" in changes:
        changes["monthly_pledge"] = round_money(to_amount(changes["monthly_pledge"]))

    result = await get_collection(MEMBERS).find_one_and_update(
        {"tenant_id": tenant_id, "id": member_id},
        {"$set": changes},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Member '{member_id}' not found")

    return sanitize_document(result)


async def delete_member(tenant_id: str, member_id: str) -> bool:
    ensure_tenant_id(tenant_id, "delete_member")

    result = await get_collection(MEMBERS).delete_one({"tenant_id": tenant_id, "id": member_id})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"Member '{member_id}' not found")

    logger.warning(f"Stokvel member removed: {member_id}", extra={"tenant_id": tenant_id})
    return True


# ============================================================
# CONTRIBUTIONS
# ============================================================

async def record_contribution(
    tenant_id: str,
    member_id: str,
    amount: float,
    period: Optional[str] = None,
    method: str = PaymentMethod.CASH.value,
    date: Any = None
) -> Dict[str, Any]:
    """
    Records a member's contribution for a period (YYYY-MM).

    A contribution covering the pledge is PAID, anything less PARTIAL.
    The member's running total grows and a CONTRIBUTION transaction is
    written to the ledger.
    """
    ensure_tenant_id(tenant_id, "record_contribution")

    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Contribution amount must be greater than zero")

    when = parse_document_date(date) or datetime.utcnow()
    period = period or current_period(when)
    if not validate_period_format(period):
        raise ValidationError("Period must be in YYYY-MM format", details={"period": period})

    member = await _require_member(tenant_id, member_id)
    pledge = to_amount(member.get("monthly_pledge"))
    status = ContributionStatus.PAID if amount >= pledge else ContributionStatus.PARTIAL

    contribution = {
        "id": new_id("ctb"),
        "tenant_id": tenant_id,
        "member_id": member_id,
        "member_name": member.get("name"),
        "amount": round_money(amount),
        "date": when,
        "period": period,
        "status": status.value,
        "method": PaymentMethod(method).value,
    }

    with LogContext(tenant_id=tenant_id, entity_id=member_id):
        await get_collection(CONTRIBUTIONS).insert_one(contribution)
        await get_collection(MEMBERS).update_one(
            {"tenant_id": tenant_id, "id": member_id},
            {"$inc": {"total_contributed": round_money(amount)}}
        )
        await pos_service.add_transaction(tenant_id, {
            "type": TransactionType.CONTRIBUTION.value,
            "amount": amount,
            "method": contribution["method"],
            "member_id": member_id,
            "customer_name": member.get("name"),
            "period": period,
            "timestamp": when,
        })
        logger.info(f"Contribution {amount} for {period} ({status.value})")

    return sanitize_document(contribution)


async def list_contributions(
    tenant_id: str,
    period: Optional[str] = None,
    member_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "list_contributions")

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if period:
        query["period"] = period
    if member_id:
        query["member_id"] = member_id

    try:
        cursor = get_collection(CONTRIBUTIONS).find(query).sort("date", -1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_contributions failed: {e}", extra={"tenant_id": tenant_id})
        return []


# ============================================================
# PAYOUTS
# ============================================================

def _queue_position(member: Dict[str, Any]) -> int:
    return member.get("payout_queue_position") or UNQUEUED_POSITION


async def get_payout_queue(tenant_id: str) -> List[Dict[str, Any]]:
    """
    ACTIVE members in payout order. Members never placed in the queue
    sort last.
    """
    members = await list_members(tenant_id)
    active = [m for m in members if m.get("status") == MemberStatus.ACTIVE.value]
    return sorted(active, key=_queue_position)


async def check_payout_eligibility(tenant_id: str, period: Optional[str] = None) -> Dict[str, Any]:
    """
    Looks at the next recipient in the queue: they are eligible only if a
    PAID contribution exists for the period.

    Returns:
        {"period", "recipient", "eligible", "amount"}
    """
    ensure_tenant_id(tenant_id, "check_payout_eligibility")
    period = period or current_period()

    queue = await get_payout_queue(tenant_id)
    recipient = queue[0] if queue else None

    members = await list_members(tenant_id)
    amount = round_money(sum(to_amount(m.get("monthly_pledge")) for m in members))

    eligible = False
    if recipient:
        paid = await get_collection(CONTRIBUTIONS).find_one({
            "tenant_id": tenant_id,
            "member_id": recipient["id"],
            "period": period,
            "status": ContributionStatus.PAID.value,
        })
        eligible = paid is not None

    return {
        "period": period,
        "recipient": recipient,
        "eligible": eligible,
        "amount": amount,
    }


async def process_payout(tenant_id: str, period: Optional[str] = None) -> Dict[str, Any]:
    """
    Pays the pot to the next eligible recipient and rotates them to the
    back of the queue.

    Raises:
        BusinessRuleError: Empty queue or recipient has not paid this period
    """
    check = await check_payout_eligibility(tenant_id, period)
    recipient = check["recipient"]

    if not recipient:
        raise BusinessRuleError("Payout queue is empty")
    if not check["eligible"]:
        raise BusinessRuleError(
            f"{recipient['name']} has no PAID contribution for {check['period']}",
            details={"member_id": recipient["id"], "period": check["period"]}
        )

    payout = {
        "id": new_id("po"),
        "tenant_id": tenant_id,
        "member_id": recipient["id"],
        "member_name": recipient["name"],
        "amount": check["amount"],
        "date": datetime.utcnow(),
        "status": PayoutStatus.PAID.value,
        "period": check["period"],
    }

    with LogContext(tenant_id=tenant_id, entity_id=recipient["id"]):
        await get_collection(PAYOUTS).insert_one(payout)
        await pos_service.add_transaction(tenant_id, {
            "type": TransactionType.PAYOUT.value,
            "amount": payout["amount"],
            "member_id": recipient["id"],
            "customer_name": recipient["name"],
            "period": payout["period"],
        })

        # Recipient goes to the back, everyone else moves up one
        queue = await get_payout_queue(tenant_id)
        rotated = [m for m in queue if m["id"] != recipient["id"]] + [recipient]
        members = get_collection(MEMBERS)
        for position, member in enumerate(rotated, start=1):
            await members.update_one(
                {"tenant_id": tenant_id, "id": member["id"]},
                {"$set": {"payout_queue_position": position}}
            )

        logger.info(f"Payout of {payout['amount']} to {recipient['name']} for {payout['period']}")

    return sanitize_document(payout)


async def list_payouts(tenant_id: str) -> List[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "list_payouts")
    try:
        cursor = get_collection(PAYOUTS).find({"tenant_id": tenant_id}).sort("date", -1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_payouts failed: {e}", extra={"tenant_id": tenant_id})
        return []


# ============================================================
# DASHBOARD
# ============================================================

async def stokvel_dashboard(tenant_id: str, period: Optional[str] = None) -> Dict[str, Any]:
    """
    Pool, collection and target stats for a stokvel.
    """
    ensure_tenant_id(tenant_id, "stokvel_dashboard")
    period = period or current_period()

    members = await list_members(tenant_id)
    contributions = await list_contributions(tenant_id, period=period)
    tenant = await get_tenant(tenant_id) or {}

    total_pool = sum(to_amount(m.get("total_contributed")) for m in members)
    collected = sum(to_amount(c.get("amount")) for c in contributions)
    expected = sum(to_amount(m.get("monthly_pledge")) for m in members)
    collection_rate = (collected / expected) * 100 if expected > 0 else 0.0

    target = to_amount(tenant.get("target")) or settings.STOKVEL_DEFAULT_TARGET
    progress = min(100.0, (total_pool / target) * 100)

    return {
        "period": period,
        "member_count": len(members),
        "total_pool": round_money(total_pool),
        "collected_this_period": round_money(collected),
        "expected_collection": round_money(expected),
        "collection_rate": round(collection_rate, 1),
        "target": round_money(target),
        "target_progress": round(progress, 1),
    }


async def calculate_hybrid_metrics(tenant_id: str) -> Dict[str, Any]:
    """
    Metrics for stokvels that also lend out of the pool.

    liquid_capital = contributions + repayments - disbursements;
    effective_roi = realized interest / lifetime lent * 100.
    Voided ledger entries are ignored.
    """
    ensure_tenant_id(tenant_id, "calculate_hybrid_metrics")

    contributions = await get_collection(CONTRIBUTIONS).find({"tenant_id": tenant_id}).to_list(length=None)
    loans = await get_collection(LOANS).find({"tenant_id": tenant_id}).to_list(length=None)
    transactions = await get_collection(TRANSACTIONS).find({
        "tenant_id": tenant_id,
        "type": {"$in": [TransactionType.LOAN_DISBURSEMENT.value, TransactionType.LOAN_REPAYMENT.value]},
    }).to_list(length=None)
    transactions = [tx for tx in transactions if not is_voided(tx)]

    total_contributions = sum(to_amount(c.get("amount")) for c in contributions)
    disbursed = sum(
        to_amount(tx.get("amount")) for tx in transactions
        if tx.get("type") == TransactionType.LOAN_DISBURSEMENT.value
    )
    repayments = [tx for tx in transactions if tx.get("type") == TransactionType.LOAN_REPAYMENT.value]
    repaid = sum(to_amount(tx.get("amount")) for tx in repayments)
    interest = sum(to_amount(tx.get("interest_part")) for tx in repayments)

    active = [l for l in loans if l.get("status") == LoanStatus.ACTIVE.value]
    roi = (interest / disbursed) * 100 if disbursed > 0 else 0.0

    return {
        "liquid_capital": round_money(total_contributions + repaid - disbursed),
        "total_contributions": round_money(total_contributions),
        "realized_interest": round_money(interest),
        "active_principal": round_money(sum(to_amount(l.get("amount")) for l in active)),
        "active_book_value": round_money(sum(to_amount(l.get("balance_remaining")) for l in active)),
        "effective_roi": round(roi, 1),
    }
