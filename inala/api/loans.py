"""
inala/api/loans.py

Purpose: Lending endpoints
"""

from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.domain.states import LoanStatus
from inala.schemas.loan import LoanRequest, LoanVote, RepaymentRequest
from inala.services import loan_service

router = APIRouter(prefix="/tenants/{tenant_id}/loans", tags=["loans"])


@router.get("")
async def list_loans(
    tenant_id: str,
    status: Optional[LoanStatus] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await loan_service.list_loans(tenant_id, status.value if status else None)


@router.get("/summary")
async def portfolio_summary(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await loan_service.loan_portfolio_summary(tenant_id)


@router.post("", status_code=201)
async def disburse_loan(tenant_id: str, body: LoanRequest, user: Dict[str, Any] = Depends(tenant_admin)):
    return await loan_service.disburse_loan(
        tenant_id, body.customer_id, body.amount, body.interest_rate, body.due_date
    )


@router.post("/applications", status_code=201)
async def apply_for_loan(tenant_id: str, body: LoanRequest, user: Dict[str, Any] = Depends(tenant_user)):
    return await loan_service.apply_for_loan(
        tenant_id, body.customer_id, body.amount, body.interest_rate, body.due_date
    )


@router.post("/sweep")
async def run_overdue_sweep(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return {"penalised": await loan_service.run_overdue_sweep(tenant_id)}


@router.get("/{loan_id}")
async def get_loan(tenant_id: str, loan_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await loan_service.get_loan(tenant_id, loan_id)


@router.post("/{loan_id}/approvals")
async def vote_on_loan(
    tenant_id: str,
    loan_id: str,
    body: LoanVote,
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await loan_service.approve_loan(tenant_id, loan_id, user, body.approved)


@router.post("/{loan_id}/activate")
async def activate_loan(tenant_id: str, loan_id: str, user: Dict[str, Any] = Depends(tenant_admin)):
    return await loan_service.activate_approved_loan(tenant_id, loan_id)


@router.post("/{loan_id}/repayments", status_code=201)
async def record_repayment(
    tenant_id: str,
    loan_id: str,
    body: RepaymentRequest,
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await loan_service.record_repayment(
        tenant_id, loan_id, body.amount, body.method.value, body.received_by or user.get("name")
    )
