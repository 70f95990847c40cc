"""
inala/schemas/tenant.py

Purpose: Tenant and user request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from inala.domain.states import TenantType, SubscriptionTier, UserRole


class TenantCreate(BaseModel):
    id: Optional[str] = Field(None, description="Optional slug, generated when omitted")
    name: str = Field(..., min_length=1)
    type: TenantType
    logo_url: Optional[str] = None
    primary_color: Optional[str] = "#6366f1"
    currency: Optional[str] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    is_active: bool = True
    target: Optional[float] = Field(None, ge=0, description="Stokvel savings target")
    category: Optional[str] = None
    branding: Dict[str, Any] = {}

    class Config:
        json_schema_extra = {
            "example": {
                "id": "inala-butchery",
                "name": "Inala Butchery",
                "type": "BUSINESS",
                "currency": "ZAR"
            }
        }


class TenantUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[TenantType] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    currency: Optional[str] = None
    subscription_tier: Optional[SubscriptionTier] = None
    is_active: Optional[bool] = None
    target: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    branding: Optional[Dict[str, Any]] = None


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str
    role: UserRole = UserRole.MEMBER
    tenant_id: Optional[str] = Field(None, description="'global' or omitted for platform users")
    branch_id: Optional[str] = None
    avatar_url: Optional[str] = None
    tenant_access: List[str] = []
    send_welcome: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    branch_id: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: Optional[bool] = None
    tenant_access: Optional[List[str]] = None


class RoleChange(BaseModel):
    role: UserRole
