"""
inala/services/pos_service.py

Purpose: Point of sale and the transaction ledger

- Cart arithmetic (subtotal, VAT, total)
- Checkout: sale transaction, stock decrement, credit booking
- Debt payments against customer accounts
- Administrative voids, void requests and sale adjustments
- Ledger listing
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, PRODUCTS, TRANSACTIONS
from inala.domain.states import TransactionType, TransactionStatus, PaymentMethod
from inala.core.config import settings
from inala.core.exceptions import (
    ResourceNotFoundError, ValidationError, BusinessRuleError, PermissionDeniedError,
)
from inala.core.logging import get_logger, LogContext
from inala.services import customer_service, inventory_service
from inala.services.audit_service import log_audit
from inala.services.tenant_service import get_tenant
from inala.services.user_service import is_admin
from utils.constants import WALK_IN_CUSTOMER_ID, WALK_IN_CUSTOMER_NAME, DEFAULT_BRANCH_ID
from utils.date_utils import parse_document_date, get_document_date, is_in_date_range
from utils.normalize import is_credit_sale, is_voided
from utils.validation_utils import to_amount, round_money, sanitize_input

logger = get_logger(__name__)


class Cart:
    """
    In-memory basket of product lines.

    Each line is a snapshot {product_id, name, sku, price, cost, quantity}
    taken when the product is first added.
    """

    def __init__(self):
        self.items: List[Dict[str, Any]] = []

    def _find(self, product_id: str) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if item["product_id"] == product_id:
                return item
        return None

    def add_item(self, product: Dict[str, Any], quantity: float = 1) -> None:
        """Adds a product, merging with an existing line for the same product."""
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")

        line = self._find(product["id"])
        if line:
            line["quantity"] += quantity
            return

        self.items.append({
            "product_id": product["id"],
            "name": product.get("name"),
            "sku": product.get("sku"),
            "price": to_amount(product.get("price")),
            "cost": to_amount(product.get("cost")),
            "quantity": quantity,
        })

    def update_quantity(self, product_id: str, delta: float) -> None:
        """Changes a line's quantity; lines at or below zero are dropped."""
        line = self._find(product_id)
        if not line:
            return

        line["quantity"] += delta
        if line["quantity"] <= 0:
            self.items.remove(line)

    def clear(self) -> None:
        self.items = []

    @property
    def is_empty(self) -> bool:
        return not self.items

    def totals(self, vat_rate: Optional[float] = None) -> Dict[str, float]:
        """
        Returns {subtotal, tax, total}; tax is VAT on the subtotal.
        """
        rate = settings.VAT_RATE if vat_rate is None else vat_rate
        subtotal = sum(item["price"] * item["quantity"] for item in self.items)
        tax = subtotal * rate
        return {
            "subtotal": round_money(subtotal),
            "tax": round_money(tax),
            "total": round_money(subtotal + tax),
        }


async def _next_reference(tenant_id: str) -> str:
    count = await get_collection(TRANSACTIONS).count_documents(
        {"tenant_id": tenant_id, "type": TransactionType.SALE.value}
    )
    return f"INV-{count + 1:04d}"


async def _tenant_currency(tenant_id: str) -> str:
    tenant = await get_tenant(tenant_id)
    return (tenant or {}).get("currency") or settings.DEFAULT_CURRENCY


def _has_account(tx: Dict[str, Any]) -> bool:
    customer_id = tx.get("customer_id")
    return bool(customer_id) and customer_id != WALK_IN_CUSTOMER_ID


def _touches_balance(tx: Dict[str, Any]) -> bool:
    """Credit sales and debt payments on a named account move its balance."""
    if not _has_account(tx):
        return False
    if tx.get("type") == TransactionType.SALE.value:
        return is_credit_sale(tx)
    return tx.get("type") == TransactionType.DEBT_PAYMENT.value


async def _apply_effects(tenant_id: str, tx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Stock and customer balance side effects of a new transaction.
    Returns fields to record on the entry.
    """
    tx_type = tx.get("type")
    amount = to_amount(tx.get("amount"))

    if tx_type == TransactionType.SALE.value:
        for item in tx.get("items") or []:
            await inventory_service.adjust_stock(tenant_id, item["product_id"], -to_amount(item.get("quantity")))
        if _touches_balance(tx):
            await customer_service.apply_credit_sale(tenant_id, tx["customer_id"], amount)

    elif _touches_balance(tx):
        # Debt floors at zero, so an overpayment clears less than its amount
        before = await customer_service.require_customer(tenant_id, tx["customer_id"])
        after = await customer_service.apply_debt_payment(tenant_id, tx["customer_id"], amount)
        applied = to_amount(before.get("current_debt")) - to_amount(after.get("current_debt"))
        return {"debt_applied": round_money(max(0.0, applied))}

    return {}


async def _reverse_effects(tenant_id: str, tx: Dict[str, Any]) -> None:
    """Undoes _apply_effects for a voided transaction."""
    tx_type = tx.get("type")
    amount = to_amount(tx.get("amount"))

    if tx_type == TransactionType.SALE.value:
        for item in tx.get("items") or []:
            await inventory_service.adjust_stock(tenant_id, item["product_id"], to_amount(item.get("quantity")))
        if _touches_balance(tx):
            await customer_service.adjust_credit(tenant_id, tx["customer_id"], -amount)

    elif _touches_balance(tx):
        restored = to_amount(tx.get("debt_applied"), amount)
        if restored > 0:
            await customer_service.restore_debt(tenant_id, tx["customer_id"], restored)


async def _insert_transaction(tenant_id: str, tx: Dict[str, Any]) -> Dict[str, Any]:
    """
    Writes a ledger entry and applies its effects. An entry whose effects
    fail is removed again so the ledger never disagrees with balances.
    """
    if _touches_balance(tx):
        await customer_service.require_customer(tenant_id, tx["customer_id"])

    transactions = get_collection(TRANSACTIONS)
    await transactions.insert_one(tx)

    try:
        recorded = await _apply_effects(tenant_id, tx)
    except Exception as e:
        await transactions.delete_one({"tenant_id": tenant_id, "id": tx["id"]})
        logger.error(f"Transaction {tx['id']} rolled back: {e}", extra={"tenant_id": tenant_id})
        raise

    if recorded:
        await transactions.update_one({"tenant_id": tenant_id, "id": tx["id"]}, {"$set": recorded})
        tx.update(recorded)

    return sanitize_document(tx)


async def checkout(
    tenant_id: str,
    items: List[Dict[str, Any]],
    method: str,
    customer_id: Optional[str] = None,
    branch_id: Optional[str] = None,
    cashier: Optional[str] = None,
    vat_rate: Optional[float] = None
) -> Dict[str, Any]:
    """
    Completes a POS sale.

    Args:
        tenant_id: Selling tenant
        items: [{"product_id": str, "quantity": number}]
        method: CASH, EFT, MOMO or CREDIT
        customer_id: Required for CREDIT; walk-in otherwise
        branch_id: Selling branch
        cashier: Name of the cashier
        vat_rate: Overrides the configured VAT rate

    Returns:
        The stored SALE transaction

    Raises:
        ValidationError: Empty basket or unknown product
        BusinessRuleError: Credit sale without a customer
    """
    ensure_tenant_id(tenant_id, "checkout")
    method = PaymentMethod(method).value

    if not items:
        raise ValidationError("Cart is empty")

    cart = Cart()
    products = get_collection(PRODUCTS)
    for line in items:
        product = await products.find_one({"tenant_id": tenant_id, "id": line.get("product_id")})
        if not product:
            raise ValidationError(f"Product '{line.get('product_id')}' not found")
        cart.add_item(product, to_amount(line.get("quantity"), 1))

    if method == PaymentMethod.CREDIT.value:
        if not customer_id or customer_id == WALK_IN_CUSTOMER_ID:
            raise BusinessRuleError("Please select a customer for credit sales.")
        customer = await customer_service.require_customer(tenant_id, customer_id)
    elif customer_id and customer_id != WALK_IN_CUSTOMER_ID:
        customer = await customer_service.require_customer(tenant_id, customer_id)
    else:
        customer = {"id": WALK_IN_CUSTOMER_ID, "name": WALK_IN_CUSTOMER_NAME}

    totals = cart.totals(vat_rate)

    tx = {
        "id": new_id("tx"),
        "tenant_id": tenant_id,
        "branch_id": branch_id or DEFAULT_BRANCH_ID,
        "type": TransactionType.SALE.value,
        "amount": totals["total"],
        "subtotal": totals["subtotal"],
        "tax": totals["tax"],
        "currency": await _tenant_currency(tenant_id),
        "method": method,
        "status": TransactionStatus.COMPLETED.value,
        "timestamp": datetime.utcnow(),
        "customer_id": customer["id"],
        "customer_name": customer["name"],
        "items": cart.items,
        "reference": await _next_reference(tenant_id),
        "cashier": cashier,
    }

    with LogContext(tenant_id=tenant_id, entity_id=tx["id"]):
        stored = await _insert_transaction(tenant_id, tx)
        logger.info(f"Sale {tx['reference']} completed: {tx['amount']} {method}")

    return stored


async def record_debt_payment(
    tenant_id: str,
    customer_id: str,
    amount: float,
    method: str = PaymentMethod.CASH.value,
    received_by: Optional[str] = None,
    date: Optional[Any] = None,
    received_by_user_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Records a payment against a customer's credit balance.

    The customer's debt drops by the amount (never below zero).
    """
    ensure_tenant_id(tenant_id, "record_debt_payment")

    amount = to_amount(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    customer = await customer_service.require_customer(tenant_id, customer_id)

    tx = {
        "id": new_id("tx_pay"),
        "tenant_id": tenant_id,
        "branch_id": DEFAULT_BRANCH_ID,
        "type": TransactionType.DEBT_PAYMENT.value,
        "amount": round_money(amount),
        "currency": await _tenant_currency(tenant_id),
        "method": PaymentMethod(method).value,
        "status": TransactionStatus.COMPLETED.value,
        "timestamp": parse_document_date(date) or datetime.utcnow(),
        "customer_id": customer["id"],
        "customer_name": customer["name"],
        "received_by": sanitize_input(received_by or ""),
        "received_by_user_id": received_by_user_id,
    }

    stored = await _insert_transaction(tenant_id, tx)
    logger.info(f"Debt payment of {tx['amount']} from {customer['name']}", extra={"tenant_id": tenant_id})
    return stored


async def add_transaction(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Inserts a ledger entry of any type, with the same stock and
    balance side effects as checkout and debt payments.
    """
    ensure_tenant_id(tenant_id, "add_transaction")

    try:
        tx_type = TransactionType(data.get("type")).value
    except ValueError:
        raise ValidationError(f"Unknown transaction type '{data.get('type')}'")
    amount = to_amount(data.get("amount"))
    if amount <= 0:
        raise ValidationError("Transaction amount must be greater than zero")

    tx = {
        "branch_id": DEFAULT_BRANCH_ID,
        "currency": await _tenant_currency(tenant_id),
        "method": PaymentMethod.CASH.value,
        **data,
        "id": data.get("id") or new_id("tx"),
        "tenant_id": tenant_id,
        "type": tx_type,
        "amount": round_money(amount),
        "status": data.get("status") or TransactionStatus.COMPLETED.value,
        "timestamp": parse_document_date(data.get("timestamp")) or datetime.utcnow(),
    }

    return await _insert_transaction(tenant_id, tx)


async def get_transaction(tenant_id: str, tx_id: str) -> Optional[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "get_transaction")
    return sanitize_document(
        await get_collection(TRANSACTIONS).find_one({"tenant_id": tenant_id, "id": tx_id})
    )


async def _require_transaction(tenant_id: str, tx_id: str) -> Dict[str, Any]:
    tx = await get_collection(TRANSACTIONS).find_one({"tenant_id": tenant_id, "id": tx_id})
    if not tx:
        raise ResourceNotFoundError(f"Transaction '{tx_id}' not found")
    return tx


async def void_transaction(tenant_id: str, tx_id: str, actor: Dict[str, Any], reason: str) -> Dict[str, Any]:
    """
    Administrative void. The record stays in the ledger marked VOIDED and
    its effect on stock and customer balances is reversed.

    Raises:
        PermissionDeniedError: Actor is not an admin
        BusinessRuleError: Already voided
    """
    ensure_tenant_id(tenant_id, "void_transaction")

    if not is_admin(actor):
        raise PermissionDeniedError("Unauthorized: Admin privileges required.")
    if not reason:
        raise ValidationError("A void reason is required")

    tx = await _require_transaction(tenant_id, tx_id)
    if is_voided(tx):
        raise BusinessRuleError("Transaction is already voided")

    now = datetime.utcnow()
    updated = await get_collection(TRANSACTIONS).find_one_and_update(
        {"tenant_id": tenant_id, "id": tx_id},
        {"$set": {
            "status": TransactionStatus.VOIDED.value,
            "voided_by": actor.get("name"),
            "voided_at": now,
            "void_reason": reason,
            "previous_status": tx.get("status"),
        }},
        return_document=True
    )

    await _reverse_effects(tenant_id, tx)
    await log_audit(
        tenant_id, "TRANSACTION_VOID", actor.get("name") or actor.get("id"),
        entity_id=tx_id,
        details={"reason": reason, "type": tx.get("type"), "amount": tx.get("amount")}
    )

    return sanitize_document(updated)


async def request_void(tenant_id: str, tx_id: str, actor: Dict[str, Any], reason: str) -> Dict[str, Any]:
    """
    Staff path for voids: flags the transaction for an admin to review.
    Balances are not touched.
    """
    ensure_tenant_id(tenant_id, "request_void")
    if not reason:
        raise ValidationError("A void reason is required")

    tx = await _require_transaction(tenant_id, tx_id)
    if is_voided(tx):
        raise BusinessRuleError("Transaction is already voided")

    updated = await get_collection(TRANSACTIONS).find_one_and_update(
        {"tenant_id": tenant_id, "id": tx_id},
        {"$set": {
            "void_requested": True,
            "void_requested_by": actor.get("name"),
            "void_requested_at": datetime.utcnow(),
            "void_request_reason": reason,
        }},
        return_document=True
    )

    await log_audit(
        tenant_id, "VOID_REQUEST", actor.get("name") or actor.get("id"),
        entity_id=tx_id, details={"reason": reason}
    )
    return sanitize_document(updated)


async def adjust_sale(
    tenant_id: str,
    tx_id: str,
    changes: Dict[str, Any],
    actor: Dict[str, Any],
    reason: str
) -> Dict[str, Any]:
    """
    Administrative correction of a sale's amount, method or customer.

    The first adjustment keeps the original amount; every adjustment is
    appended to the sale's adjustments list. Credit balances are moved by
    the difference between the old and new booking.
    """
    ensure_tenant_id(tenant_id, "adjust_sale")

    if not is_admin(actor):
        raise PermissionDeniedError("Unauthorized: Admin privileges required.")
    if not reason:
        raise ValidationError("An adjustment reason is required")

    tx = await _require_transaction(tenant_id, tx_id)
    if tx.get("type") != TransactionType.SALE.value:
        raise BusinessRuleError("Only sales can be adjusted")
    if is_voided(tx):
        raise BusinessRuleError("Voided sales cannot be adjusted")

    after = {
        "amount": round_money(to_amount(changes.get("amount"), to_amount(tx.get("amount")))),
        "method": PaymentMethod(changes.get("method") or tx.get("method")).value,
        "customer_id": changes.get("customer_id") or tx.get("customer_id"),
    }
    if after["amount"] < 0:
        raise ValidationError("Amount cannot be negative")

    customer_name = tx.get("customer_name")
    if after["customer_id"] != tx.get("customer_id"):
        customer = await customer_service.require_customer(tenant_id, after["customer_id"])
        customer_name = customer["name"]

    if after["method"] == PaymentMethod.CREDIT.value and not _has_account(after):
        raise BusinessRuleError("Please select a customer for credit sales.")

    before = {
        "amount": to_amount(tx.get("amount")),
        "method": tx.get("method"),
        "customer_id": tx.get("customer_id"),
    }

    old_credit = is_credit_sale(tx) and _has_account(tx)
    new_credit = after["method"] == PaymentMethod.CREDIT.value
    if old_credit and new_credit and before["customer_id"] == after["customer_id"]:
        delta = after["amount"] - before["amount"]
        if delta:
            await customer_service.adjust_credit(tenant_id, after["customer_id"], delta)
    else:
        if old_credit:
            await customer_service.adjust_credit(tenant_id, before["customer_id"], -before["amount"])
        if new_credit:
            await customer_service.adjust_credit(tenant_id, after["customer_id"], after["amount"])

    adjustment = {
        "actor": actor.get("name"),
        "reason": reason,
        "date": datetime.utcnow(),
        "before": before,
        "after": after,
    }

    updated = await get_collection(TRANSACTIONS).find_one_and_update(
        {"tenant_id": tenant_id, "id": tx_id},
        {
            "$set": {
                **after,
                "customer_name": customer_name,
                "original_amount": tx.get("original_amount", before["amount"]),
            },
            "$push": {"adjustments": adjustment},
        },
        return_document=True
    )

    await log_audit(
        tenant_id, "SALE_ADJUSTMENT", actor.get("name") or actor.get("id"),
        entity_id=tx_id, details={"reason": reason, "before": before, "after": after}
    )
    return sanitize_document(updated)


async def list_transactions(
    tenant_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    tx_type: Optional[str] = None,
    customer_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Lists ledger entries newest first. Voided entries are included
    (reports exclude them from totals).

    Read failures return an empty list.
    """
    ensure_tenant_id(tenant_id, "list_transactions")

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if tx_type:
        try:
            query["type"] = TransactionType(tx_type).value
        except ValueError:
            raise ValidationError(
                f"Unknown transaction type '{tx_type}'",
                details={"allowed": [t.value for t in TransactionType]}
            )
    if customer_id:
        query["customer_id"] = customer_id

    try:
        docs = await get_collection(TRANSACTIONS).find(query).to_list(length=None)
    except Exception as e:
        logger.error(f"list_transactions failed: {e}", extra={"tenant_id": tenant_id})
        return []

    if start or end:
        docs = [doc for doc in docs if is_in_date_range(doc, start, end)]

    docs.sort(key=lambda doc: get_document_date(doc) or datetime.min, reverse=True)
    return [sanitize_document(doc) for doc in docs]
