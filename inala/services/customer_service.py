"""
inala/services/customer_service.py

Purpose: Customer accounts and credit balances

- Customer CRUD and lookup by name
- Debt bookkeeping for credit sales, debt payments and voids
- Bulk CSV import
"""

import re
from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, CUSTOMERS
from inala.core.config import settings
from inala.core.exceptions import ResourceNotFoundError, ValidationError
from inala.core.logging import get_logger
from utils.normalize import parse_csv
from utils.validation_utils import to_amount, round_money, sanitize_input, validate_phone_number

logger = get_logger(__name__)


def _build_customer(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    name = sanitize_input(data.get("name", ""))
    if not name:
        raise ValidationError("Customer name is required")

    phone = (data.get("phone") or "").strip() or None
    if phone and not validate_phone_number(phone):
        raise ValidationError(f"Invalid phone number '{phone}'", details={"phone": phone})

    return {
        "id": data.get("id") or new_id("c"),
        "tenant_id": tenant_id,
        "name": name,
        "phone": phone,
        "email": (data.get("email") or "").strip().lower() or None,
        "credit_limit": round_money(to_amount(data.get("credit_limit"), settings.DEFAULT_CREDIT_LIMIT)),
        "current_debt": round_money(to_amount(data.get("current_debt"))),
        "total_credit": round_money(to_amount(data.get("total_credit"))),
        "sales_count": int(to_amount(data.get("sales_count"))),
        "last_purchase_date": None,
        "created_at": datetime.utcnow(),
    }


async def add_customer(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Creates a customer account. The credit limit defaults to
    DEFAULT_CREDIT_LIMIT.
    """
    ensure_tenant_id(tenant_id, "add_customer")

    customer = _build_customer(tenant_id, data)
    await get_collection(CUSTOMERS).insert_one(customer)

    logger.info(f"Customer added: {customer['name']}", extra={"tenant_id": tenant_id})
    return sanitize_document(customer)


async def get_customer(tenant_id: str, customer_id: str) -> Optional[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "get_customer")
    if not customer_id:
        return None
    return sanitize_document(
        await get_collection(CUSTOMERS).find_one({"tenant_id": tenant_id, "id": customer_id})
    )


async def require_customer(tenant_id: str, customer_id: str) -> Dict[str, Any]:
    customer = await get_customer(tenant_id, customer_id)
    if not customer:
        raise ResourceNotFoundError(f"Customer '{customer_id}' not found")
    return customer


async def list_customers(tenant_id: str, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Lists customers sorted by name; search matches name or phone.
    """
    ensure_tenant_id(tenant_id, "list_customers")

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"phone": {"$regex": pattern, "$options": "i"}},
        ]

    try:
        cursor = get_collection(CUSTOMERS).find(query).sort("name", 1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_customers failed: {e}", extra={"tenant_id": tenant_id})
        return []


async def update_customer(tenant_id: str, customer_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    ensure_tenant_id(tenant_id, "update_customer")

    changes = {k: v for k, v in changes.items() if k not in ("id", "tenant_id", "created_at")}
    if "credit_limit" in changes:
        changes["credit_limit"] = round_money(to_amount(changes["credit_limit"]))
    changes["updated_at"] = datetime.utcnow()

    result = await get_collection(CUSTOMERS).find_one_and_update(
        {"tenant_id": tenant_id, "id": customer_id},
        {"$set": changes},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Customer '{customer_id}' not found")

    return sanitize_document(result)


async def find_or_create_customer(tenant_id: str, name: str) -> Dict[str, Any]:
    """
    Returns the customer whose name matches exactly (ignoring case),
    creating one with the default credit limit otherwise.
    """
    ensure_tenant_id(tenant_id, "find_or_create_customer")

    clean = sanitize_input(name)
    if not clean:
        raise ValidationError("Customer name is required")

    existing = await get_collection(CUSTOMERS).find_one({
        "tenant_id": tenant_id,
        "name": {"$regex": f"^{re.escape(clean)}$", "$options": "i"},
    })
    if existing:
        return sanitize_document(existing)

    return await add_customer(tenant_id, {"name": clean})


async def apply_credit_sale(tenant_id: str, customer_id: str, amount: float) -> Dict[str, Any]:
    """
    Books a credit sale against a customer: debt and lifetime credit grow
    by the amount, the sale counter ticks and the purchase date moves.
    """
    ensure_tenant_id(tenant_id, "apply_credit_sale")
    amount = round_money(amount)

    result = await get_collection(CUSTOMERS).find_one_and_update(
        {"tenant_id": tenant_id, "id": customer_id},
        {
            "$inc": {"current_debt": amount, "total_credit": amount, "sales_count": 1},
            "$set": {"last_purchase_date": datetime.utcnow()},
        },
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Customer '{customer_id}' not found")

    customer = sanitize_document(result)
    if customer["current_debt"] > to_amount(customer.get("credit_limit")):
        logger.warning(
            f"Customer {customer_id} is over their credit limit",
            extra={"tenant_id": tenant_id, "entity_id": customer_id}
        )
    return customer


async def _set_debt(tenant_id: str, customer_id: str, debt: float, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    result = await get_collection(CUSTOMERS).find_one_and_update(
        {"tenant_id": tenant_id, "id": customer_id},
        {"$set": {"current_debt": round_money(debt), **(extra or {})}},
        return_document=True
    )
    return sanitize_document(result)


async def apply_debt_payment(tenant_id: str, customer_id: str, amount: float) -> Dict[str, Any]:
    """
    Reduces a customer's debt by a payment; debt never goes below zero.
    """
    customer = await require_customer(tenant_id, customer_id)
    debt = max(0.0, to_amount(customer.get("current_debt")) - to_amount(amount))
    return await _set_debt(tenant_id, customer_id, debt)


async def adjust_credit(tenant_id: str, customer_id: str, delta: float) -> Dict[str, Any]:
    """
    Moves debt and lifetime credit together by delta. Negative deltas undo
    a credit sale (void or downward adjustment); both floor at zero.
    """
    customer = await require_customer(tenant_id, customer_id)
    debt = max(0.0, to_amount(customer.get("current_debt")) + to_amount(delta))
    total_credit = max(0.0, to_amount(customer.get("total_credit")) + to_amount(delta))
    return await _set_debt(tenant_id, customer_id, debt, {"total_credit": round_money(total_credit)})


async def restore_debt(tenant_id: str, customer_id: str, amount: float) -> Dict[str, Any]:
    """
    Adds an amount back onto a customer's debt (voided debt payment).
    """
    ensure_tenant_id(tenant_id, "restore_debt")

    result = await get_collection(CUSTOMERS).find_one_and_update(
        {"tenant_id": tenant_id, "id": customer_id},
        {"$inc": {"current_debt": round_money(amount)}},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Customer '{customer_id}' not found")
    return sanitize_document(result)


async def import_customers_csv(tenant_id: str, text: str) -> Dict[str, Any]:
    """
    Bulk-imports customers from CSV (name, phone, email, credit_limit).

    Returns:
        {"imported": int, "skipped": int, "errors": [str]}
    """
    ensure_tenant_id(tenant_id, "import_customers_csv")

    headers, rows = parse_csv(text)
    if not headers:
        raise ValidationError("CSV file is empty")

    customers = get_collection(CUSTOMERS)
    imported, skipped, errors = 0, 0, []

    for line_no, raw in enumerate(rows, start=2):
        row = {k.strip().lower(): v for k, v in raw.items()}
        try:
            customer = _build_customer(tenant_id, {
                "name": row.get("name"),
                "phone": row.get("phone"),
                "email": row.get("email"),
                "credit_limit": row.get("credit_limit") or row.get("limit"),
            })
        except ValidationError as e:
            skipped += 1
            errors.append(f"Line {line_no}: {e.message}")
            continue

        await customers.insert_one(customer)
        imported += 1

    logger.info(f"Customer import: {imported} imported, {skipped} skipped", extra={"tenant_id": tenant_id})
    return {"imported": imported, "skipped": skipped, "errors": errors}
