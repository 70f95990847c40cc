"""
inala/api/deps.py

Purpose: Request dependencies shared by the routers

- Resolves the acting user from the X-User-Id header
- Tenant access and role checks
"""

from typing import Dict, Any, Optional

from fastapi import Depends, Header, Path

from inala.core.exceptions import AuthenticationError, PermissionDeniedError
from inala.db.mongo import ensure_tenant_id
from inala.domain.states import UserRole
from inala.services.user_service import get_user, is_admin, can_access_tenant


async def get_current_user(x_user_id: Optional[str] = Header(None)) -> Dict[str, Any]:
    """
    Loads the acting user. Missing or unknown ids are rejected with 401.
    """
    if not x_user_id:
        raise AuthenticationError("Missing X-User-Id header")

    user = await get_user(x_user_id)
    if not user or not user.get("is_active", True):
        raise AuthenticationError("Unknown or inactive user")
    return user


async def tenant_user(
    tenant_id: str = Path(...),
    user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    """Acting user, checked against the tenant in the path."""
    ensure_tenant_id(tenant_id, "api_access")
    if not can_access_tenant(user, tenant_id):
        raise PermissionDeniedError(f"No access to tenant '{tenant_id}'")
    return user


async def tenant_admin(user: Dict[str, Any] = Depends(tenant_user)) -> Dict[str, Any]:
    if not is_admin(user):
        raise PermissionDeniedError("Unauthorized: Admin privileges required.")
    return user


async def super_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != UserRole.SUPER_ADMIN.value:
        raise PermissionDeniedError("Super admin privileges required")
    return user
