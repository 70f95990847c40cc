"""
inala/api/pos.py

Purpose: Point-of-sale and ledger endpoints

- Checkout and debt payments
- Voids: admins void directly, other staff raise a void request
- Sale adjustments (admins)
"""

from datetime import datetime
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.core.exceptions import ResourceNotFoundError
from inala.domain.states import TransactionType
from inala.schemas.pos import (
    CheckoutRequest, DebtPaymentRequest, TransactionCreate, VoidRequest, SaleAdjustment,
)
from inala.services import pos_service
from inala.services.user_service import is_admin

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["pos"])


@router.post("/checkout", status_code=201)
async def checkout(tenant_id: str, body: CheckoutRequest, user: Dict[str, Any] = Depends(tenant_user)):
    return await pos_service.checkout(
        tenant_id,
        [line.model_dump() for line in body.items],
        body.method.value,
        customer_id=body.customer_id,
        branch_id=body.branch_id or user.get("branch_id"),
        cashier=user.get("name"),
    )


@router.post("/debt-payments", status_code=201)
async def record_debt_payment(tenant_id: str, body: DebtPaymentRequest, user: Dict[str, Any] = Depends(tenant_user)):
    return await pos_service.record_debt_payment(
        tenant_id,
        body.customer_id,
        body.amount,
        method=body.method.value,
        received_by=body.received_by or user.get("name"),
        date=body.date,
        received_by_user_id=user.get("id"),
    )


@router.get("/transactions")
async def list_transactions(
    tenant_id: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    type: Optional[TransactionType] = Query(None),
    customer_id: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await pos_service.list_transactions(tenant_id, start, end, type.value if type else None, customer_id)


@router.post("/transactions", status_code=201)
async def add_transaction(tenant_id: str, body: TransactionCreate, user: Dict[str, Any] = Depends(tenant_admin)):
    return await pos_service.add_transaction(tenant_id, body.model_dump(mode="json", exclude_none=True))


@router.get("/transactions/{tx_id}")
async def get_transaction(tenant_id: str, tx_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    tx = await pos_service.get_transaction(tenant_id, tx_id)
    if not tx:
        raise ResourceNotFoundError(f"Transaction '{tx_id}' not found")
    return tx


@router.post("/transactions/{tx_id}/void")
async def void_transaction(
    tenant_id: str,
    tx_id: str,
    body: VoidRequest,
    user: Dict[str, Any] = Depends(tenant_user)
):
    """
    Admins void immediately; anyone else files a void request.
    """
    if is_admin(user):
        return await pos_service.void_transaction(tenant_id, tx_id, user, body.reason)
    return await pos_service.request_void(tenant_id, tx_id, user, body.reason)


@router.post("/transactions/{tx_id}/adjust")
async def adjust_sale(
    tenant_id: str,
    tx_id: str,
    body: SaleAdjustment,
    user: Dict[str, Any] = Depends(tenant_admin)
):
    changes = body.model_dump(mode="json", exclude={"reason"}, exclude_none=True)
    return await pos_service.adjust_sale(tenant_id, tx_id, changes, user, body.reason)
