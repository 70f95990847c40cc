"""
inala/api/emails.py

Purpose: Tenant mailbox and platform mail triggers
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, super_admin
from inala.schemas.email import TenantEmailCreate, MailTriggerCreate
from inala.services.email_service import email_service

router = APIRouter(tags=["email"])


@router.get("/tenants/{tenant_id}/emails")
async def list_emails(
    tenant_id: str,
    folder: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await email_service.list_emails(tenant_id, folder)


@router.post("/tenants/{tenant_id}/emails", status_code=201)
async def send_email(tenant_id: str, body: TenantEmailCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await email_service.send_tenant_email(
        tenant_id, body.to, body.subject, body.body, body.from_name or user.get("name")
    )


@router.post("/tenants/{tenant_id}/emails/{email_id}/read")
async def mark_read(tenant_id: str, email_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await email_service.mark_read(tenant_id, email_id)


@router.post("/mail-triggers", status_code=201)
async def create_mail_trigger(body: MailTriggerCreate, user: Dict[str, Any] = Depends(super_admin)):
    return await email_service.create_mail_trigger(body.type, body.data)


@router.post("/mail-triggers/{trigger_id}/process")
async def process_mail_trigger(trigger_id: str, user: Dict[str, Any] = Depends(super_admin)):
    return await email_service.process_mail_trigger(trigger_id)
