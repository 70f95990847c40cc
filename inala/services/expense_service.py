"""
inala/services/expense_service.py

Purpose: Operating expenses

- Record expenses with a category and date
- List a window of expenses (last 12 months by default)
- Category suggestions
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, EXPENSES
from inala.domain.states import ExpenseStatus
from inala.core.exceptions import ValidationError, ResourceNotFoundError
from inala.core.logging import get_logger
from utils.constants import DEFAULT_EXPENSE_CATEGORIES
from utils.date_utils import parse_document_date, get_document_date, is_in_date_range, months_back
from utils.validation_utils import to_amount, round_money, sanitize_input

logger = get_logger(__name__)


async def add_expense(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Records an expense. The timestamp mirrors the expense date so it can
    be filtered like any ledger entry.
    """
    ensure_tenant_id(tenant_id, "add_expense")

    description = sanitize_input(data.get("description", ""))
    if not description:
        raise ValidationError("Expense description is required")

    amount = to_amount(data.get("amount"))
    if amount <= 0:
        raise ValidationError("Expense amount must be greater than zero")

    date = parse_document_date(data.get("date")) or datetime.utcnow()

    expense = {
        "id": data.get("id") or new_id("exp"),
        "tenant_id": tenant_id,
        "description": description,
        "category": data.get("category") or DEFAULT_EXPENSE_CATEGORIES[0],
        "amount": round_money(amount),
        "date": date,
        "timestamp": date,
        "status": ExpenseStatus(data.get("status") or ExpenseStatus.PAID).value,
    }

    await get_collection(EXPENSES).insert_one(expense)
    logger.info(f"Expense recorded: {expense['category']} {expense['amount']}", extra={"tenant_id": tenant_id})

    return sanitize_document(expense)


async def list_expenses(
    tenant_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Expenses in [start, end], newest first. Without a window the last
    12 months are returned. Read failures return an empty list.
    """
    ensure_tenant_id(tenant_id, "list_expenses")

    end = end or datetime.utcnow()
    start = start or months_back(end, 12)

    try:
        docs = await get_collection(EXPENSES).find({"tenant_id": tenant_id}).to_list(length=None)
    except Exception as e:
        logger.error(f"list_expenses failed: {e}", extra={"tenant_id": tenant_id})
        return []

    docs = [doc for doc in docs if is_in_date_range(doc, start, end)]
    docs.sort(key=lambda doc: get_document_date(doc) or datetime.min, reverse=True)
    return [sanitize_document(doc) for doc in docs]


async def delete_expense(tenant_id: str, expense_id: str) -> bool:
    ensure_tenant_id(tenant_id, "delete_expense")

    result = await get_collection(EXPENSES).delete_one({"tenant_id": tenant_id, "id": expense_id})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"Expense '{expense_id}' not found")
    return True


async def get_expense_categories(tenant_id: str) -> List[str]:
    """Default categories followed by any others the tenant has used."""
    ensure_tenant_id(tenant_id, "get_expense_categories")

    docs = await get_collection(EXPENSES).find({"tenant_id": tenant_id}, {"category": 1}).to_list(length=None)
    used = {doc.get("category") for doc in docs}
    extra = sorted(c for c in used if c and c not in DEFAULT_EXPENSE_CATEGORIES)
    return list(DEFAULT_EXPENSE_CATEGORIES) + extra
