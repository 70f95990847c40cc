"""
inala/api/tenants.py

Purpose: Tenant management endpoints

- Super admins create, list and delete tenants
- Tenant admins edit their own profile and branding
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import super_admin, tenant_user, tenant_admin
from inala.schemas.tenant import TenantCreate, TenantUpdate
from inala.services import tenant_service
from inala.services.audit_service import list_audit_logs

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post("", status_code=201)
async def create_tenant(body: TenantCreate, user: Dict[str, Any] = Depends(super_admin)):
    data = body.model_dump(mode="json")
    if not data.get("id"):
        data.pop("id", None)
    if not data.get("currency"):
        data.pop("currency", None)
    return await tenant_service.create_tenant(data)


@router.get("")
async def list_tenants(
    type: Optional[str] = Query(None, description="BUSINESS, STOKVEL or LENDING"),
    user: Dict[str, Any] = Depends(super_admin)
):
    return await tenant_service.list_tenants(type)


@router.get("/{tenant_id}")
async def get_tenant(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await tenant_service.require_tenant(tenant_id)


@router.patch("/{tenant_id}")
async def update_tenant(tenant_id: str, body: TenantUpdate, user: Dict[str, Any] = Depends(tenant_admin)):
    return await tenant_service.update_tenant(tenant_id, body.model_dump(mode="json", exclude_unset=True))


@router.delete("/{tenant_id}")
async def delete_tenant(tenant_id: str, user: Dict[str, Any] = Depends(super_admin)):
    await tenant_service.delete_tenant(tenant_id)
    return {"deleted": True, "id": tenant_id}


@router.get("/{tenant_id}/branding")
async def get_branding(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await tenant_service.get_branding(tenant_id)


@router.get("/{tenant_id}/audit-logs")
async def get_audit_logs(
    tenant_id: str,
    limit: int = Query(50, ge=1, le=500),
    user: Dict[str, Any] = Depends(tenant_admin)
):
    return await list_audit_logs(tenant_id, limit)
