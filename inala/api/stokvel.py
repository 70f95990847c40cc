"""
inala/api/stokvel.py

Purpose: Stokvel endpoints (members, contributions, payouts, dashboard)
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.schemas.stokvel import MemberCreate, MemberUpdate, ContributionCreate, PayoutRequest
from inala.services import stokvel_service

router = APIRouter(prefix="/tenants/{tenant_id}/stokvel", tags=["stokvel"])


@router.get("/members")
async def list_members(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.list_members(tenant_id)


@router.post("/members", status_code=201)
async def add_member(tenant_id: str, body: MemberCreate, user: Dict[str, Any] = Depends(tenant_admin)):
    return await stokvel_service.add_member(tenant_id, body.model_dump(mode="json"))


@router.get("/members/{member_id}")
async def get_member(tenant_id: str, member_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.get_member(tenant_id, member_id)


@router.patch("/members/{member_id}")
async def update_member(
    tenant_id: str,
    member_id: str,
    body: MemberUpdate,
    user: Dict[str, Any] = Depends(tenant_admin)
):
    return await stokvel_service.update_member(tenant_id, member_id, body.model_dump(mode="json", exclude_unset=True))


@router.delete("/members/{member_id}")
async def delete_member(tenant_id: str, member_id: str, user: Dict[str, Any] = Depends(tenant_admin)):
    await stokvel_service.delete_member(tenant_id, member_id)
    return {"deleted": True, "id": member_id}


@router.get("/contributions")
async def list_contributions(
    tenant_id: str,
    period: Optional[str] = Query(None),
    member_id: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await stokvel_service.list_contributions(tenant_id, period, member_id)


@router.post("/contributions", status_code=201)
async def record_contribution(tenant_id: str, body: ContributionCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.record_contribution(
        tenant_id, body.member_id, body.amount, body.period, body.method.value, body.date
    )


@router.get("/queue")
async def payout_queue(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.get_payout_queue(tenant_id)


@router.get("/payouts/eligibility")
async def payout_eligibility(
    tenant_id: str,
    period: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await stokvel_service.check_payout_eligibility(tenant_id, period)


@router.get("/payouts")
async def list_payouts(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.list_payouts(tenant_id)


@router.post("/payouts", status_code=201)
async def process_payout(tenant_id: str, body: PayoutRequest, user: Dict[str, Any] = Depends(tenant_admin)):
    return await stokvel_service.process_payout(tenant_id, body.period)


@router.get("/dashboard")
async def dashboard(
    tenant_id: str,
    period: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await stokvel_service.stokvel_dashboard(tenant_id, period)


@router.get("/metrics")
async def hybrid_metrics(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await stokvel_service.calculate_hybrid_metrics(tenant_id)
