"""
inala/api/customers.py

Purpose: Customer account endpoints
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.schemas.inventory import CustomerCreate, CustomerUpdate, CustomerLookup, CSVImport
from inala.schemas.response import ImportResult
from inala.services import customer_service

router = APIRouter(prefix="/tenants/{tenant_id}/customers", tags=["customers"])


@router.get("")
async def list_customers(
    tenant_id: str,
    search: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await customer_service.list_customers(tenant_id, search)


@router.post("", status_code=201)
async def add_customer(tenant_id: str, body: CustomerCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await customer_service.add_customer(tenant_id, body.model_dump(mode="json", exclude_none=True))


@router.post("/lookup")
async def find_or_create(tenant_id: str, body: CustomerLookup, user: Dict[str, Any] = Depends(tenant_user)):
    return await customer_service.find_or_create_customer(tenant_id, body.name)


@router.post("/import", response_model=ImportResult)
async def import_customers(tenant_id: str, body: CSVImport, user: Dict[str, Any] = Depends(tenant_admin)):
    return await customer_service.import_customers_csv(tenant_id, body.content)


@router.get("/{customer_id}")
async def get_customer(tenant_id: str, customer_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await customer_service.require_customer(tenant_id, customer_id)


@router.patch("/{customer_id}")
async def update_customer(
    tenant_id: str,
    customer_id: str,
    body: CustomerUpdate,
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await customer_service.update_customer(tenant_id, customer_id, body.model_dump(mode="json", exclude_unset=True))
