"""
inala/schemas/stokvel.py

Purpose: Stokvel member, contribution and payout request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from inala.domain.states import MemberStatus, PaymentMethod


class MemberCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    monthly_pledge: float = Field(0, ge=0)
    status: MemberStatus = MemberStatus.ACTIVE
    join_date: Optional[datetime] = None


class MemberUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    monthly_pledge: Optional[float] = Field(None, ge=0)
    status: Optional[MemberStatus] = None
    payout_queue_position: Optional[int] = Field(None, ge=1)


class ContributionCreate(BaseModel):
    member_id: str
    amount: float = Field(..., gt=0)
    period: Optional[str] = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    method: PaymentMethod = PaymentMethod.CASH
    date: Optional[datetime] = None


class PayoutRequest(BaseModel):
    period: Optional[str] = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
