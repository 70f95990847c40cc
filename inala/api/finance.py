"""
inala/api/finance.py

Purpose: Expense and proof-of-payment endpoints
"""

from datetime import datetime
from typing import Dict, Any, Optional

from fastapi import APIRouter, Depends, Query

from inala.api.deps import tenant_user, tenant_admin
from inala.core.exceptions import PermissionDeniedError
from inala.domain.states import UserRole
from inala.schemas.finance import ExpenseCreate, POPCreate, POPReview
from inala.services import expense_service, pop_service
from inala.services.user_service import is_admin

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["finance"])


@router.get("/expenses")
async def list_expenses(
    tenant_id: str,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await expense_service.list_expenses(tenant_id, start, end)


@router.post("/expenses", status_code=201)
async def add_expense(tenant_id: str, body: ExpenseCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await expense_service.add_expense(tenant_id, body.model_dump(mode="json", exclude_none=True))


@router.delete("/expenses/{expense_id}")
async def delete_expense(tenant_id: str, expense_id: str, user: Dict[str, Any] = Depends(tenant_admin)):
    await expense_service.delete_expense(tenant_id, expense_id)
    return {"deleted": True, "id": expense_id}


@router.get("/expense-categories")
async def expense_categories(tenant_id: str, user: Dict[str, Any] = Depends(tenant_user)):
    return await expense_service.get_expense_categories(tenant_id)


@router.get("/pops")
async def list_pops(
    tenant_id: str,
    status: Optional[str] = Query(None),
    user: Dict[str, Any] = Depends(tenant_user)
):
    return await pop_service.list_pops(tenant_id, status)


@router.post("/pops", status_code=201)
async def submit_pop(tenant_id: str, body: POPCreate, user: Dict[str, Any] = Depends(tenant_user)):
    return await pop_service.submit_pop(tenant_id, body.model_dump(mode="json"), user.get("id"))


@router.post("/pops/{pop_id}/review")
async def review_pop(
    tenant_id: str,
    pop_id: str,
    body: POPReview,
    user: Dict[str, Any] = Depends(tenant_user)
):
    if not is_admin(user) and user.get("role") != UserRole.TREASURER.value:
        raise PermissionDeniedError("Only treasurers and admins can review proofs of payment")
    return await pop_service.review_pop(tenant_id, pop_id, body.status.value, user)
