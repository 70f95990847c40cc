"""
inala/api/inventory.py

Purpose: Product catalogue endpoints
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.core.exceptions import ResourceNotFoundError
from inala.schemas.inventory import ProductCreate, ProductUpdate, StockAdjustment, CSVImport
from inala.schemas.response import ImportResult
from inala.services import inventory_service

router = APIRouter(prefix="/tenants/{tenant_id}/products", tags=["inventory"])


@router.get("")
async def list_products(
    tenant_id: str,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await inventory_service.list_products(tenant_id, search, category)


@router.post("", status_code=201)
async def add_product(tenant_id: str, body: ProductCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await inventory_service.add_product(tenant_id, body.model_dump(mode="json"))


@router.get("/low-stock")
async def low_stock(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await inventory_service.list_low_stock(tenant_id)


@router.get("/categories")
async def categories(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await inventory_service.list_categories(tenant_id)


@router.post("/import", response_model=ImportResult)
async def import_products(tenant_id: str, body: CSVImport, user: Dict[str, Any] = Depends(tenant_admin)):
    return await inventory_service.import_products_csv(tenant_id, body.content)


@router.get("/{product_id}")
async def get_product(tenant_id: str, product_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    product = await inventory_service.get_product(tenant_id, product_id)
    if not product:
        raise ResourceNotFoundError(f"Product '{product_id}' not found")
    return product


@router.patch("/{product_id}")
async def update_product(
    tenant_id: str,
    product_id: str,
    body: ProductUpdate,
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await inventory_service.update_product(tenant_id, product_id, body.model_dump(mode="json", exclude_unset=True))


@router.post("/{product_id}/stock")
async def adjust_stock(
    tenant_id: str,
    product_id: str,
    body: StockAdjustment,
    user: Dict[str, Any] = Depends(tenant_user)
):
    product = await inventory_service.adjust_stock(tenant_id, product_id, body.delta)
    if not product:
        raise ResourceNotFoundError(f"Product '{product_id}' not found")
    return product


@router.delete("/{product_id}")
async def delete_product(tenant_id: str, product_id: str, user: Dict[str, Any] = Depends(tenant_admin)):
    await inventory_service.delete_product(tenant_id, product_id)
    return {"deleted": True, "id": product_id}
