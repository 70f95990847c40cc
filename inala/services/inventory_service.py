"""
inala/services/inventory_service.py

Purpose: Product catalogue and stock levels

- Products exist only for BUSINESS tenants
- SKU is unique within a tenant
- Stock adjustments from sales, voids and manual counts
- Bulk CSV import
"""

import re
from datetime import datetime
from typing import Optional, Dict, Any, List

from inala.db.mongo import get_collection, ensure_tenant_id, new_id, sanitize_document, PRODUCTS
from inala.domain.states import TenantType
from inala.core.exceptions import ResourceNotFoundError, ValidationError, BusinessRuleError
from inala.core.logging import get_logger
from inala.services.tenant_service import get_tenant_type
from utils.normalize import parse_csv
from utils.validation_utils import to_amount, round_money, sanitize_input, validate_sku

logger = get_logger(__name__)

PRODUCT_UNITS = ("kg", "unit", "litre", "box")


def _build_product(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    name = sanitize_input(data.get("name", ""))
    sku = (data.get("sku") or "").strip()
    if not name or not sku:
        raise ValidationError("Product name and SKU are required")
    if not validate_sku(sku):
        raise ValidationError(f"Invalid SKU '{sku}'", details={"sku": sku})

    unit = data.get("unit") or "unit"
    if unit not in PRODUCT_UNITS:
        raise ValidationError(f"Unknown unit '{unit}'", details={"allowed": list(PRODUCT_UNITS)})

    price = to_amount(data.get("price"))
    cost = to_amount(data.get("cost"))
    if price < 0 or cost < 0:
        raise ValidationError("Price and cost cannot be negative")

    return {
        "id": data.get("id") or new_id("p"),
        "tenant_id": tenant_id,
        "name": name,
        "sku": sku,
        "category": data.get("category") or "General",
        "subcategory": data.get("subcategory"),
        "price": round_money(price),
        "cost": round_money(cost),
        "stock_level": to_amount(data.get("stock_level")),
        "min_stock_threshold": to_amount(data.get("min_stock_threshold"), 5),
        "unit": unit,
        "created_at": datetime.utcnow(),
    }


async def add_product(tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Adds a product to a BUSINESS tenant's catalogue.

    Raises:
        BusinessRuleError: For non-business tenants or a duplicate SKU
    """
    ensure_tenant_id(tenant_id, "add_product")

    tenant_type = await get_tenant_type(tenant_id)
    if tenant_type != TenantType.BUSINESS:
        raise BusinessRuleError("Inventory is only available to BUSINESS tenants")

    product = _build_product(tenant_id, data)

    products = get_collection(PRODUCTS)
    if await products.find_one({"tenant_id": tenant_id, "sku": product["sku"]}):
        raise BusinessRuleError(f"SKU '{product['sku']}' already exists")

    await products.insert_one(product)
    logger.info(f"Product added: {product['sku']}", extra={"tenant_id": tenant_id})

    return sanitize_document(product)


async def get_product(tenant_id: str, product_id: str) -> Optional[Dict[str, Any]]:
    ensure_tenant_id(tenant_id, "get_product")
    return sanitize_document(
        await get_collection(PRODUCTS).find_one({"tenant_id": tenant_id, "id": product_id})
    )


async def list_products(
    tenant_id: str,
    search: Optional[str] = None,
    category: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Lists a tenant's products sorted by name.

    Lending tenants carry no stock and always get an empty list. The
    search term matches name or SKU, case-insensitively.
    """
    ensure_tenant_id(tenant_id, "list_products")

    if await get_tenant_type(tenant_id) == TenantType.LENDING:
        return []

    query: Dict[str, Any] = {"tenant_id": tenant_id}
    if category:
        query["category"] = category
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"sku": {"$regex": pattern, "$options": "i"}},
        ]

    try:
        cursor = get_collection(PRODUCTS).find(query).sort("name", 1)
        return [sanitize_document(doc) for doc in await cursor.to_list(length=None)]
    except Exception as e:
        logger.error(f"list_products failed: {e}", extra={"tenant_id": tenant_id})
        return []


async def update_product(tenant_id: str, product_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    ensure_tenant_id(tenant_id, "update_product")

    changes = {k: v for k, v in changes.items() if k not in ("id", "tenant_id", "created_at")}
    for key in ("price", "cost"):
        if key in changes:
            changes[key] = round_money(to_amount(changes[key]))
    if "unit" in changes and changes["unit"] not in PRODUCT_UNITS:
        raise ValidationError(f"Unknown unit '{changes['unit']}'")
    changes["updated_at"] = datetime.utcnow()

    result = await get_collection(PRODUCTS).find_one_and_update(
        {"tenant_id": tenant_id, "id": product_id},
        {"$set": changes},
        return_document=True
    )
    if not result:
        raise ResourceNotFoundError(f"Product '{product_id}' not found")

    return sanitize_document(result)


async def delete_product(tenant_id: str, product_id: str) -> bool:
    ensure_tenant_id(tenant_id, "delete_product")

    result = await get_collection(PRODUCTS).delete_one({"tenant_id": tenant_id, "id": product_id})
    if result.deleted_count == 0:
        raise ResourceNotFoundError(f"Product '{product_id}' not found")

    logger.info(f"Product deleted: {product_id}", extra={"tenant_id": tenant_id})
    return True


async def adjust_stock(tenant_id: str, product_id: str, delta: float) -> Optional[Dict[str, Any]]:
    """
    Moves a product's stock level by delta (negative for sales).

    Unknown products are logged and skipped so a sale of a deleted
    product still completes.
    """
    ensure_tenant_id(tenant_id, "adjust_stock")

    result = await get_collection(PRODUCTS).find_one_and_update(
        {"tenant_id": tenant_id, "id": product_id},
        {"$inc": {"stock_level": delta}},
        return_document=True
    )
    if not result:
        logger.warning(f"Stock adjustment skipped, product {product_id} not found",
                       extra={"tenant_id": tenant_id})
        return None

    return sanitize_document(result)


async def list_low_stock(tenant_id: str) -> List[Dict[str, Any]]:
    """Products at or below their minimum stock threshold."""
    products = await list_products(tenant_id)
    return [
        p for p in products
        if to_amount(p.get("stock_level")) <= to_amount(p.get("min_stock_threshold"))
    ]


async def list_categories(tenant_id: str) -> List[str]:
    products = await list_products(tenant_id)
    return sorted({p.get("category") for p in products if p.get("category")})


async def import_products_csv(tenant_id: str, text: str) -> Dict[str, Any]:
    """
    Bulk-imports products from CSV.

    Expected headers: name, sku, price, cost, stock, category (case and
    surrounding spaces ignored). Rows with a missing name/SKU or a SKU that
    already exists are skipped.

    Returns:
        {"imported": int, "skipped": int, "errors": [str]}
    """
    ensure_tenant_id(tenant_id, "import_products_csv")

    if await get_tenant_type(tenant_id) != TenantType.BUSINESS:
        raise BusinessRuleError("Inventory is only available to BUSINESS tenants")

    headers, rows = parse_csv(text)
    if not headers:
        raise ValidationError("CSV file is empty")

    products = get_collection(PRODUCTS)
    imported, skipped, errors = 0, 0, []

    for line_no, raw in enumerate(rows, start=2):
        row = {k.strip().lower(): v for k, v in raw.items()}
        try:
            product = _build_product(tenant_id, {
                "name": row.get("name"),
                "sku": row.get("sku"),
                "price": row.get("price"),
                "cost": row.get("cost"),
                "stock_level": row.get("stock") or row.get("stock_level"),
                "category": row.get("category"),
                "unit": row.get("unit") or "unit",
            })
        except ValidationError as e:
            skipped += 1
            errors.append(f"Line {line_no}: {e.message}")
            continue

        if await products.find_one({"tenant_id": tenant_id, "sku": product["sku"]}):
            skipped += 1
            errors.append(f"Line {line_no}: SKU '{product['sku']}' already exists")
            continue

        await products.insert_one(product)
        imported += 1

    logger.info(f"Product import: {imported} imported, {skipped} skipped", extra={"tenant_id": tenant_id})
    return {"imported": imported, "skipped": skipped, "errors": errors}
