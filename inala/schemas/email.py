"""
inala/schemas/email.py

Purpose: Inbox, mail trigger and settings request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class TenantEmailCreate(BaseModel):
    to: str
    subject: str = Field(..., min_length=1)
    body: str = ""
    from_name: Optional[str] = None


class MailTriggerCreate(BaseModel):
    type: str = Field(..., description="ACTIVATION_EMAIL, PASSWORD_RESET or PERMISSION_CHANGE")
    data: Dict[str, Any] = {}

    class Config:
        json_schema_extra = {
            "example": {
                "type": "PASSWORD_RESET",
                "data": {"email": "thandi@example.com", "token": "reset-9f1c"}
            }
        }


class GlobalSettingsUpdate(BaseModel):
    erp_name: Optional[str] = None
    erp_logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    support_email: Optional[str] = None
    platform_domain: Optional[str] = None
    api_keys: Optional[Dict[str, Any]] = None
    system: Optional[Dict[str, Any]] = None


class Holding(BaseModel):
    amount: float
    currency: str = "ZAR"


class PortfolioRequest(BaseModel):
    holdings: List[Holding]
    to_currency: str = "ZAR"
