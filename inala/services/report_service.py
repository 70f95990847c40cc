"""
inala/services/report_service.py

Purpose: Financial reporting

- Period (business cycle or calendar month) P&L
- Creditors registry and outstanding credit balances
- Collections log and credit history
- Month-by-month sales vs expenses
"""

from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from inala.db.mongo import get_collection, ensure_tenant_id, PRODUCTS
from inala.domain.states import TransactionType
from inala.core.config import settings
from inala.core.exceptions import ValidationError
from inala.core.logging import get_logger
from inala.services import pos_service, expense_service, customer_service
from utils.constants import (
    WALK_IN_CUSTOMER_ID, CREDITOR_OWED_THRESHOLD, OUTSTANDING_CREDIT_THRESHOLD,
)
from utils.date_utils import (
    get_business_cycle, get_calendar_month_range, get_all_business_cycles,
    get_document_date, months_back, shift_month,
)
from utils.normalize import normalize_record, is_credit_sale, is_voided
from utils.validation_utils import to_amount, round_money

logger = get_logger(__name__)


def resolve_period(
    mode: str = "cycle",
    date: Optional[datetime] = None,
    year: Optional[int] = None,
    month: Optional[int] = None
) -> Tuple[datetime, datetime]:
    """
    Turns a report selection into a (start, end) window.

    Args:
        mode: "cycle" for the business cycle containing date,
              "month" for a calendar month
        date: Reference date for cycle mode (defaults to now)
        year, month: Calendar month for month mode (default current)
    """
    if mode == "cycle":
        return get_business_cycle(date, settings.BUSINESS_CYCLE_START_DAY)
    if mode == "month":
        now = datetime.utcnow()
        return get_calendar_month_range(year or now.year, month or now.month)
    raise ValidationError(f"Unknown period mode '{mode}'", details={"allowed": ["cycle", "month"]})


def _of_type(records: List[Dict[str, Any]], tx_type: TransactionType) -> List[Dict[str, Any]]:
    return [r for r in records if r.get("type") == tx_type.value]


async def _ledger(tenant_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Non-voided, normalized ledger entries (optionally windowed)."""
    txs = await pos_service.list_transactions(tenant_id, start, end)
    return [normalize_record(tx) for tx in txs if not is_voided(tx)]


async def _product_index(tenant_id: str) -> Dict[str, Dict[str, Any]]:
    docs = await get_collection(PRODUCTS).find({"tenant_id": tenant_id}).to_list(length=None)
    return {doc["id"]: doc for doc in docs}


async def period_report(tenant_id: str, start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Profit and loss for a window.

    Revenue is taken net of VAT (subtotal) when the sale carries one;
    cost of goods uses the cost captured on each line, falling back to
    the product's current cost.
    """
    ensure_tenant_id(tenant_id, "period_report")

    ledger = await _ledger(tenant_id, start, end)
    sales = _of_type(ledger, TransactionType.SALE)
    payments = _of_type(ledger, TransactionType.DEBT_PAYMENT)
    expenses = [normalize_record(e) for e in await expense_service.list_expenses(tenant_id, start, end)]
    products = await _product_index(tenant_id)

    total_sales = sum(s["amount"] for s in sales)
    total_expenses = sum(e["amount"] for e in expenses)
    total_payments = sum(p["amount"] for p in payments)

    revenue = 0.0
    cost_of_goods = 0.0
    methods: Dict[str, float] = {}
    categories: Dict[str, float] = {}

    for sale in sales:
        revenue += to_amount(sale.get("subtotal"), sale["amount"])
        method = str(sale["payment_method"]).upper()
        methods[method] = methods.get(method, 0.0) + sale["amount"]

        for item in sale.get("items") or []:
            quantity = to_amount(item.get("quantity"))
            product = products.get(item.get("product_id"), {})
            cost = to_amount(item.get("cost"), to_amount(product.get("cost")))
            cost_of_goods += cost * quantity

            category = product.get("category") or "Uncategorised"
            categories[category] = categories.get(category, 0.0) + to_amount(item.get("price")) * quantity

    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_sales": round_money(total_sales),
        "total_expenses": round_money(total_expenses),
        "total_debt_payments": round_money(total_payments),
        "net": round_money(total_sales - total_expenses),
        "cost_of_goods": round_money(cost_of_goods),
        "gross_profit": round_money(revenue - cost_of_goods),
        "sale_count": len(sales),
        "entry_count": len(ledger),
        "payment_methods": {k: round_money(v) for k, v in methods.items()},
        "categories": {k: round_money(v) for k, v in categories.items()},
    }


async def creditors_report(tenant_id: str, include_paid: bool = False, search: str = "") -> List[Dict[str, Any]]:
    """
    Lifetime credit position per customer, largest balance first.

    Every customer is listed (seeded at zero), credit sales add to
    total_credit and non-voided debt payments to total_paid. Customers
    owing 0.5 or less are hidden unless include_paid is set.
    """
    ensure_tenant_id(tenant_id, "creditors_report")

    balances: Dict[str, Dict[str, Any]] = {}
    for customer in await customer_service.list_customers(tenant_id):
        balances[customer["id"]] = {
            "id": customer["id"],
            "name": customer.get("name") or "Unknown",
            "phone": customer.get("phone") or "",
            "sales_count": int(to_amount(customer.get("sales_count"))),
            "total_credit": 0.0,
            "total_paid": 0.0,
            "last_date": customer.get("last_purchase_date") or "",
        }

    ledger = await _ledger(tenant_id)

    for sale in _of_type(ledger, TransactionType.SALE):
        if not is_credit_sale(sale):
            continue
        cid = sale["customer_id"] or WALK_IN_CUSTOMER_ID
        entry = balances.setdefault(cid, {
            "id": cid,
            "name": sale["customer_name"] or "Unknown Borrower",
            "phone": "",
            "sales_count": 0,
            "total_credit": 0.0,
            "total_paid": 0.0,
            "last_date": "",
        })
        entry["total_credit"] += sale["amount"]
        entry["sales_count"] += 1
        sale_date = str(sale["created_at"])
        if sale_date > (entry["last_date"] or ""):
            entry["last_date"] = sale_date

    for payment in _of_type(ledger, TransactionType.DEBT_PAYMENT):
        cid = payment["customer_id"] or WALK_IN_CUSTOMER_ID
        if cid in balances:
            balances[cid]["total_paid"] += payment["amount"]

    term = (search or "").lower()
    rows = []
    for entry in balances.values():
        owed = round_money(entry["total_credit"] - entry["total_paid"])
        if not include_paid and owed <= CREDITOR_OWED_THRESHOLD:
            continue
        if term and term not in entry["name"].lower():
            continue
        rows.append({
            **entry,
            "total_credit": round_money(entry["total_credit"]),
            "total_paid": round_money(entry["total_paid"]),
            "owed": owed,
        })

    rows.sort(key=lambda r: r["owed"], reverse=True)
    return rows


async def outstanding_credits(tenant_id: str) -> List[Dict[str, Any]]:
    """
    Customers still owing more than 1, each with their credit sales and
    payments (newest first).
    """
    ensure_tenant_id(tenant_id, "outstanding_credits")

    ledger = await _ledger(tenant_id)
    balances: Dict[str, Dict[str, Any]] = {}

    for sale in _of_type(ledger, TransactionType.SALE):
        if not is_credit_sale(sale):
            continue
        cid = sale["customer_id"] or sale["customer_name"] or "unknown"
        entry = balances.setdefault(cid, {
            "customer_id": cid,
            "customer_name": sale["customer_name"],
            "total_credit": 0.0,
            "total_paid": 0.0,
            "transactions": [],
        })
        entry["total_credit"] += sale["amount"]
        entry["transactions"].append({
            "id": sale.get("id"), "date": sale["created_at"], "type": "SALE",
            "amount": sale["amount"], "is_paid": False,
        })

    for payment in _of_type(ledger, TransactionType.DEBT_PAYMENT):
        cid = payment["customer_id"] or payment["customer_name"] or "unknown"
        if cid in balances:
            balances[cid]["total_paid"] += payment["amount"]
            balances[cid]["transactions"].append({
                "id": payment.get("id"), "date": payment["created_at"], "type": "PAYMENT",
                "amount": payment["amount"], "is_paid": True,
            })

    rows = []
    for entry in balances.values():
        entry["total_owed"] = round_money(entry["total_credit"] - entry["total_paid"])
        if entry["total_owed"] <= OUTSTANDING_CREDIT_THRESHOLD:
            continue
        entry["transactions"].sort(key=lambda t: get_document_date({"date": t["date"]}) or datetime.min, reverse=True)
        rows.append(entry)

    return rows


async def collections_report(tenant_id: str, search: str = "") -> List[Dict[str, Any]]:
    """
    Non-voided debt payments with who collected them, newest first.
    Search matches collector or client.
    """
    ensure_tenant_id(tenant_id, "collections_report")

    term = (search or "").lower()
    rows = []
    for payment in _of_type(await _ledger(tenant_id), TransactionType.DEBT_PAYMENT):
        row = {
            "id": payment.get("id"),
            "collector": payment.get("received_by") or "Unknown Staff",
            "client": payment.get("customer_name") or "Walk-in Client",
            "amount": payment["amount"],
            "purpose": payment.get("reference") or payment.get("type") or "Debt Repayment",
            "method": payment["payment_method"],
            "date": payment["created_at"],
        }
        if term and term not in row["collector"].lower() and term not in row["client"].lower():
            continue
        rows.append(row)

    rows.sort(key=lambda r: get_document_date({"date": r["date"]}) or datetime.min, reverse=True)
    return rows


async def credit_history(tenant_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """Credit sales and debt payments in a window, newest first."""
    ensure_tenant_id(tenant_id, "credit_history")

    ledger = await _ledger(tenant_id, start, end)
    history = [
        {**sale, "is_paid": False}
        for sale in _of_type(ledger, TransactionType.SALE) if is_credit_sale(sale)
    ] + [
        {**payment, "is_paid": True}
        for payment in _of_type(ledger, TransactionType.DEBT_PAYMENT)
    ]

    history.sort(key=lambda r: get_document_date(r) or datetime.min, reverse=True)
    return history


async def monthly_comparison(tenant_id: str, months: int = 6, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Sales against expenses per YYYY-MM for the last `months` months
    (plus the current one), oldest first. Months without activity show
    zeros.
    """
    ensure_tenant_id(tenant_id, "monthly_comparison")

    now = now or datetime.utcnow()
    start = months_back(now, months)

    stats: Dict[str, Dict[str, Any]] = {}
    year, month = start.year, start.month
    while (year, month) <= (now.year, now.month):
        key = f"{year:04d}-{month:02d}"
        stats[key] = {"month": key, "sales": 0.0, "expenses": 0.0}
        year, month = shift_month(year, month, 1)

    for sale in _of_type(await _ledger(tenant_id, start, now), TransactionType.SALE):
        when = get_document_date(sale)
        if when and when.strftime("%Y-%m") in stats:
            stats[when.strftime("%Y-%m")]["sales"] += sale["amount"]

    for expense in await expense_service.list_expenses(tenant_id, start, now):
        when = get_document_date(expense)
        if when and when.strftime("%Y-%m") in stats:
            stats[when.strftime("%Y-%m")]["expenses"] += to_amount(expense.get("amount"))

    return [
        {**row, "sales": round_money(row["sales"]), "expenses": round_money(row["expenses"])}
        for row in stats.values()
    ]


def list_business_cycles(now: Optional[datetime] = None) -> List[Dict[str, str]]:
    """Every business cycle since the first one, newest first."""
    return get_all_business_cycles(now=now, start_day=settings.BUSINESS_CYCLE_START_DAY)
