"""
utils/normalize.py

Purpose: Normalization of heterogeneous documents

- Legacy records use different keys for the same field
  (amount/total/value, customerId/customer_id, method/paymentMethod)
- Maps them onto one shape before aggregation
- CSV parsing for bulk imports
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Tuple

from utils.validation_utils import to_amount


def _first(doc: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = doc.get(key)
        if value not in (None, ""):
            return value
    return default


def normalize_record(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalizes a sale, payment or expense record.

    Returns a copy with created_at, amount, total, customer_id,
    customer_name and payment_method always present.
    """
    amount = to_amount(_first(doc, "amount", "total", "value", default=0))
    created_at = _first(doc, "timestamp", "date", "createdAt", "created_at")
    if created_at is None:
        created_at = datetime.utcnow().isoformat()

    return {
        **doc,
        "created_at": created_at,
        "amount": amount,
        "total": amount,
        "customer_id": _first(doc, "customer_id", "customerId"),
        "customer_name": _first(doc, "customer_name", "customerName", "clientName", default="Unknown"),
        "payment_method": _first(doc, "method", "payment_method", "paymentMethod", default="CASH"),
    }


def is_credit_sale(doc: Dict[str, Any]) -> bool:
    """
    A sale is on credit when its method mentions credit or its
    status is literally 'credit'.
    """
    method = str(_first(doc, "payment_method", "method", "paymentMethod", default="")).lower()
    status = str(doc.get("status") or "").lower()
    return "credit" in method or status == "credit"


def is_voided(doc: Dict[str, Any]) -> bool:
    return str(doc.get("status") or "").upper() == "VOIDED"


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Parses CSV text with a header row.

    Blank lines are skipped and values are stripped; missing trailing
    cells become empty strings.

    Returns:
        (headers, rows)
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return [], []

    reader = csv.reader(io.StringIO("\n".join(lines)))
    rows = list(reader)
    headers = [h.strip() for h in rows[0]]

    records = []
    for values in rows[1:]:
        values = [v.strip() for v in values]
        records.append({
            header: values[index] if index < len(values) else ""
            for index, header in enumerate(headers)
        })

    return headers, records
