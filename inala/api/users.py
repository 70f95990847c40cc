"""
inala/api/users.py

Purpose: User management endpoints

- Admins create users and change roles
- Tenant admins only manage users of their own tenant
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import get_current_user, super_admin
from inala.core.exceptions import PermissionDeniedError
from inala.domain.states import UserRole
from inala.schemas.tenant import UserCreate, UserUpdate, RoleChange
from inala.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


def _check_manages(actor: Dict[str, Any], tenant_id: Optional[str]) -> None:
    if not user_service.is_admin(actor):
        raise PermissionDeniedError("Unauthorized: Admin privileges required.")
    if actor.get("role") != UserRole.SUPER_ADMIN.value and actor.get("tenant_id") != tenant_id:
        raise PermissionDeniedError("Tenant admins can only manage their own users")


@router.post("", status_code=201)
async def create_user(body: UserCreate, actor: Dict[str, Any] = Depends(get_current_user)):
    _check_manages(actor, body.tenant_id)
    if body.role == UserRole.SUPER_ADMIN and actor.get("role") != UserRole.SUPER_ADMIN.value:
        raise PermissionDeniedError("Only super admins can create super admins")

    data = body.model_dump(mode="json", exclude={"send_welcome"})
    return await user_service.create_user(data, send_welcome=body.send_welcome)


@router.get("")
async def list_users(
    tenant_id: Optional[str] = Query(None),
    actor: Dict[str, Any] = Depends(get_current_user)
):
    if actor.get("role") != UserRole.SUPER_ADMIN.value:
        _check_manages(actor, tenant_id)
    return await user_service.list_users(tenant_id)


@router.get("/me")
async def get_me(actor: Dict[str, Any] = Depends(get_current_user)):
    return actor


@router.get("/{user_id}")
async def get_user(user_id: str, actor: Dict[str, Any] = Depends(get_current_user)):
    user = await user_service.require_user(user_id)
    if actor["id"] != user_id:
        _check_manages(actor, user.get("tenant_id"))
    return user


@router.patch("/{user_id}")
async def update_user(user_id: str, body: UserUpdate, actor: Dict[str, Any] = Depends(get_current_user)):
    user = await user_service.require_user(user_id)
    if actor["id"] != user_id:
        _check_manages(actor, user.get("tenant_id"))
    return await user_service.update_user(user_id, body.model_dump(mode="json", exclude_unset=True))


@router.put("/{user_id}/role")
async def change_role(user_id: str, body: RoleChange, actor: Dict[str, Any] = Depends(get_current_user)):
    user = await user_service.require_user(user_id)
    _check_manages(actor, user.get("tenant_id"))
    if body.role == UserRole.SUPER_ADMIN and actor.get("role") != UserRole.SUPER_ADMIN.value:
        raise PermissionDeniedError("Only super admins can grant super admin")
    return await user_service.change_user_role(user_id, body.role.value)


@router.delete("/{user_id}")
async def delete_user(user_id: str, actor: Dict[str, Any] = Depends(super_admin)):
    await user_service.delete_user(user_id)
    return {"deleted": True, "id": user_id}
