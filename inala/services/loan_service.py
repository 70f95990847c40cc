"""
inala/services/loan_service.py

Purpose: Micro-lending

- Disbursement, application and approval workflow
- Repayments split into interest and principal
- Daily overdue sweep that compounds a penalty onto late loans
- Portfolio summary for the lending dashboard
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, LOANS
from inala.domain.states import (
    LoanStatus, TransactionType, PaymentMethod,
    LOAN_APPROVER_ROLES, OPEN_LOAN_STATUSES, is_valid_loan_transition,
)
from inala.core.config import settings
from inala.core.exceptions import (
    ResourceNotFoundError, ValidationError, BusinessRuleError, PermissionDeniedError,
)
from inala.core.logging import get_logger, LogContext
from inala.services import customer_service, pos_service
from utils.date_utils import get_business_cycle, parse_document_date
from utils.normalize import is_voided
from utils.validation_utils import to_amount, round_money

logger = get_logger(__name__)


def calculate_total_repayable(amount: float, interest_rate: float) -> float:
    """Principal plus flat interest: amount * (1 + rate / 100)."""
    return round_money(to_amount(amount) * (1 + to_amount(interest_rate) / 100))


def _check_transition(loan: Dict[str, Any], to_status: LoanStatus) -> None:
    from_status = LoanStatus(loan["status"])
    if not is_valid_loan_transition(from_status, to_status):
        raise BusinessRuleError(
            f"Loan cannot move from {from_status.value} to {to_status.value}",
            details={"loan_id": loan.get("id")}
        )


async def _require_loan(tenant_id: str, loan_id: str) -> Dict[str, Any]:
    loan = await get_collection(LOANS).find_one({"tenant_id": tenant_id, "id": loan_id})
    if not loan:
        raise ResourceNotFoundError(f"Loan '{loan_id}' not found")
    return loan


def _build_loan(
    tenant_id: str,
    customer: Dict[str, Any],
    amount: float,
    interest_rate: Optional[float],
    due_date: Any,
    status: LoanStatus
) -> Dict[str, Any]:
    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Loan amount must be greater than zero")

    rate = settings.DEFAULT_LOAN_INTEREST_RATE if interest_rate is None else to_amount(interest_rate)
    if rate < 0:
        raise ValidationError("Interest rate cannot be negative")

    due = parse_document_date(due_date)
    if due is None:
        raise ValidationError("A valid due date is required")

    total = calculate_total_repayable(amount, rate)
    return {
        "id": new_id("loan"),
        "tenant_id": tenant_id,
        "customer_id": customer["id"],
        "customer_name": customer["name"],
        "amount": round_money(amount),
        "interest_rate": rate,
        "total_repayable": total,
        "balance_remaining": total,
        "start_date": datetime.utcnow(),
        "due_date": due,
        "status": status.value,
        "approvals": [],
        "last_compounded_date": None,
        "created_at": datetime.utcnow(),
    }


async def _record_disbursement(tenant_id: str, loan: Dict[str, Any]) -> None:
    await pos_service.add_transaction(tenant_id, {
        "type": TransactionType.LOAN_DISBURSEMENT.value,
        "amount": loan["amount"],
        "customer_id": loan["customer_id"],
        "customer_name": loan["customer_name"],
        "loan_id": loan["id"],
        "method": PaymentMethod.CASH.value,
    })


async def disburse_loan(
    tenant_id: str,
    customer_id: str,
    amount: float,
    interest_rate: Optional[float] = None,
    due_date: Any = None
) -> Dict[str, Any]:
    """
    Issues a loan straight to ACTIVE.

    Balance and total repayable both start at amount * (1 + rate / 100).
    A LOAN_DISBURSEMENT transaction records the cash leaving the book.
    """
    ensure_tenant_id(tenant_id, "disburse_loan")

    customer = await customer_service.require_customer(tenant_id, customer_id)
    loan = _build_loan(tenant_id, customer, amount, interest_rate, due_date, LoanStatus.ACTIVE)

    with LogContext(tenant_id=tenant_id, entity_id=loan["id"]):
        await get_collection(LOANS).insert_one(loan)
        await _record_disbursement(tenant_id, loan)
        logger.info(f"Loan disbursed: {loan['amount']} to {customer['name']}")

    return sanitize_document(loan)


async def apply_for_loan(
    tenant_id: str,
    customer_id: str,
    amount: float,
    interest_rate: Optional[float] = None,
    due_date: Any = None
) -> Dict[str, Any]:
    """Creates a loan awaiting approval. No money moves yet."""
    ensure_tenant_id(tenant_id, "apply_for_loan")

    customer = await customer_service.require_customer(tenant_id, customer_id)
    loan = _build_loan(tenant_id, customer, amount, interest_rate, due_date, LoanStatus.PENDING_APPROVAL)

    await get_collection(LOANS).insert_one(loan)
    logger.info(f"Loan application for {customer['name']}", extra={"tenant_id": tenant_id, "entity_id": loan["id"]})

    return sanitize_document(loan)


async def approve_loan(
    tenant_id: str,
    loan_id: str,
    approver: Dict[str, Any],
    approved: bool = True
) -> Dict[str, Any]:
    """
    Records an approval vote on a pending loan.

    Only treasurers and admins vote, once each. A single rejection rejects
    the loan; LOAN_APPROVALS_REQUIRED approvals approve it.
    """
    ensure_tenant_id(tenant_id, "approve_loan")

    role = approver.get("role")
    if role not in [r.value for r in LOAN_APPROVER_ROLES]:
        raise PermissionDeniedError("Only treasurers and administrators can approve loans")

    loan = await _require_loan(tenant_id, loan_id)
    if loan["status"] != LoanStatus.PENDING_APPROVAL.value:
        raise BusinessRuleError("Loan is not awaiting approval")

    approvals = loan.get("approvals") or []
    if any(a.get("user_id") == approver.get("id") for a in approvals):
        raise BusinessRuleError("You have already voted on this loan")

    approvals.append({
        "user_id": approver.get("id"),
        "role": role,
        "approved": bool(approved),
        "date": datetime.utcnow(),
    })

    status = LoanStatus.PENDING_APPROVAL
    if not approved:
        status = LoanStatus.REJECTED
    elif sum(1 for a in approvals if a.get("approved")) >= settings.LOAN_APPROVALS_REQUIRED:
        status = LoanStatus.APPROVED

    if status != LoanStatus.PENDING_APPROVAL:
        _check_transition(loan, status)

    updated = await get_collection(LOANS).find_one_and_update(
        {"tenant_id": tenant_id, "id": loan_id},
        {"$set": {"approvals": approvals, "status": status.value}},
        return_document=True
    )

    logger.info(f"Loan vote by {role}: {'approve' if approved else 'reject'} -> {status.value}",
                extra={"tenant_id": tenant_id, "entity_id": loan_id})
    return sanitize_document(updated)


async def activate_approved_loan(tenant_id: str, loan_id: str) -> Dict[str, Any]:
    """
    Disburses an APPROVED loan. The repayment window starts now.
    """
    ensure_tenant_id(tenant_id, "activate_approved_loan")

    loan = await _require_loan(tenant_id, loan_id)
    _check_transition(loan, LoanStatus.ACTIVE)
    if loan["status"] != LoanStatus.APPROVED.value:
        raise BusinessRuleError("Only approved loans can be activated")

    updated = await get_collection(LOANS).find_one_and_update(
        {"tenant_id": tenant_id, "id": loan_id},
        {"$set": {"status": LoanStatus.ACTIVE.value, "start_date": datetime.utcnow()}},
        return_document=True
    )
    await _record_disbursement(tenant_id, updated)

    logger.info("Approved loan activated", extra={"tenant_id": tenant_id, "entity_id": loan_id})
    return sanitize_document(updated)


async def record_repayment(
    tenant_id: str,
    loan_id: str,
    amount: float,
    method: str = PaymentMethod.CASH.value,
    received_by: Optional[str] = None
) -> Dict[str, Any]:
    """
    Applies a repayment to an open loan.

    The payment is split pro rata: the interest share is
    amount * (total_repayable - principal) / total_repayable. The balance
    floors at zero and the loan is PAID once nothing remains.

    Returns:
        {"loan": updated loan, "transaction": LOAN_REPAYMENT entry}
    """
    ensure_tenant_id(tenant_id, "record_repayment")

    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Repayment amount must be greater than zero")

    loan = await _require_loan(tenant_id, loan_id)
    if loan["status"] not in [s.value for s in OPEN_LOAN_STATUSES]:
        raise BusinessRuleError(f"Cannot repay a loan that is {loan['status']}")

    total = to_amount(loan.get("total_repayable"))
    principal = to_amount(loan.get("amount"))
    interest_ratio = (total - principal) / total if total > 0 else 0.0
    interest_part = round_money(amount * interest_ratio)
    principal_part = round_money(amount - interest_part)

    balance = round_money(max(0.0, to_amount(loan.get("balance_remaining")) - amount))
    changes: Dict[str, Any] = {"balance_remaining": balance}
    if balance == 0:
        _check_transition(loan, LoanStatus.PAID)
        changes["status"] = LoanStatus.PAID.value
        changes["paid_at"] = datetime.utcnow()

    updated = await get_collection(LOANS).find_one_and_update(
        {"tenant_id": tenant_id, "id": loan_id},
        {"$set": changes},
        return_document=True
    )

    tx = await pos_service.add_transaction(tenant_id, {
        "type": TransactionType.LOAN_REPAYMENT.value,
        "amount": amount,
        "method": PaymentMethod(method).value,
        "customer_id": loan["customer_id"],
        "customer_name": loan.get("customer_name"),
        "loan_id": loan_id,
        "interest_part": interest_part,
        "principal_part": principal_part,
        "received_by": received_by,
    })

    logger.info(f"Loan repayment {amount} (interest {interest_part}), balance {balance}",
                extra={"tenant_id": tenant_id, "entity_id": loan_id})
    return {"loan": sanitize_document(updated), "transaction": tx}


async def run_overdue_sweep(tenant_id: str, now: Optional[datetime] = None) -> int:
    """
    Compounds one interest period onto every overdue ACTIVE loan.

    A loan qualifies when its due date has passed, something is still owed
    and it was not already compounded today. The penalty is
    balance * rate / 100, added to both balance and total repayable, and
    the loan is flagged DEFAULTED.

    Returns:
        Number of loans penalised
    """
    ensure_tenant_id(tenant_id, "run_overdue_sweep")
    now = now or datetime.utcnow()

    loans = get_collection(LOANS)
    active = await loans.find({"tenant_id": tenant_id, "status": LoanStatus.ACTIVE.value}).to_list(length=None)

    count = 0
    for loan in active:
        due = parse_document_date(loan.get("due_date"))
        balance = to_amount(loan.get("balance_remaining"))
        last = parse_document_date(loan.get("last_compounded_date"))

        if due is None or due >= now or balance <= 0:
            continue
        if last and last.date() == now.date():
            continue

        penalty = balance * to_amount(loan.get("interest_rate")) / 100
        total = to_amount(loan.get("total_repayable")) or balance

        await loans.update_one(
            {"tenant_id": tenant_id, "id": loan["id"]},
            {"$set": {
                "balance_remaining": round_money(balance + penalty),
                "total_repayable": round_money(total + penalty),
                "last_compounded_date": now,
                "status": LoanStatus.DEFAULTED.value,
            }}
        )
        count += 1

    if count:
        logger.warning(f"Applied interest penalties to {count} delayed loans", extra={"tenant_id": tenant_id})
    return count


async def list_loans(tenant_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Lists loans newest first. Read failures return an empty list.
    """
    ensure_tenant_id(tenant_id, "list_loans")

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if status:
        try:
            query["status"] = LoanStatus(status).value
        except ValueError:
            raise ValidationError(
                f"Unknown loan status '{status}'",
                details={"allowed": [s.value for s in LoanStatus]}
            )

    try:
        cursor = get_collection(LOANS).find(query).sort("start_date", -1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_loans failed: {e}", extra={"tenant_id": tenant_id})
        return []


async def get_loan(tenant_id: str, loan_id: str) -> Dict[str, Any]:
    ensure_tenant_id(tenant_id, "get_loan")
    return sanitize_document(await _require_loan(tenant_id, loan_id))


async def loan_portfolio_summary(tenant_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Headline numbers for the lending dashboard.

    active_value is what is still owed on ACTIVE and DEFAULTED loans;
    collected_this_cycle sums non-voided repayments in the current
    business cycle.
    """
    ensure_tenant_id(tenant_id, "loan_portfolio_summary")

    loans = await list_loans(tenant_id)
    open_loans = [l for l in loans if l.get("status") in [s.value for s in OPEN_LOAN_STATUSES]]

    start, end = get_business_cycle(now, settings.BUSINESS_CYCLE_START_DAY)
    repayments = await pos_service.list_transactions(
        tenant_id, start, end, TransactionType.LOAN_REPAYMENT.value
    )
    collected = sum(to_amount(tx.get("amount")) for tx in repayments if not is_voided(tx))

    return {
        "active_value": round_money(sum(to_amount(l.get("balance_remaining")) for l in open_loans)),
        "active_count": len(open_loans),
        "pending_approvals": sum(1 for l in loans if l.get("status") == LoanStatus.PENDING_APPROVAL.value),
        "defaulted_count": sum(1 for l in loans if l.get("status") == LoanStatus.DEFAULTED.value),
        "collected_this_cycle": round_money(collected),
        "cycle_start": start.isoformat(),
        "cycle_end": end.isoformat(),
    }
