"""
inala/api/reports.py

Purpose: Reporting endpoints

- Period P&L by business cycle or calendar month
- Creditors, outstanding credits, collections and credit history
- Monthly sales vs expenses
"""

from datetime import datetime
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user
from inala.services import report_service

router = APIRouter(prefix="/tenants/{tenant_id}/reports", tags=["reports"])


@router.get("/period")
async def period_report(
    tenant_id: str,
    mode: str = Query("cycle", description="cycle or month"),
    date: Optional[datetime] = Query(None),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    user: Dict[str, Any] = Depends(tenant_user)
):
    start, end = report_service.resolve_period(mode, date, year, month)
    return await report_service.period_report(tenant_id, start, end)


@router.get("/creditors")
async def creditors(
    tenant_id: str,
    include_paid: bool = Query(False),
    search: str = Query(""),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await report_service.creditors_report(tenant_id, include_paid, search)


@router.get("/outstanding")
async def outstanding(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await report_service.outstanding_credits(tenant_id)


@router.get("/collections")
async def collections(
    tenant_id: str,
    search: str = Query(""),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await report_service.collections_report(tenant_id, search)


@router.get("/credit-history")
async def credit_history(
    tenant_id: str,
    mode: str = Query("cycle"),
    date: Optional[datetime] = Query(None),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    user: Dict[str, Any] = Depends(tenant_user)
):
    start, end = report_service.resolve_period(mode, date, year, month)
    return await report_service.credit_history(tenant_id, start, end)


@router.get("/monthly")
async def monthly(
    tenant_id: str,
    months: int = Query(6, ge=1, le=36),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await report_service.monthly_comparison(tenant_id, months)


@router.get("/cycles")
async def cycles(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return report_service.list_business_cycles()
