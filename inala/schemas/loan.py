"""
inala/schemas/loan.py

Purpose: Lending request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from inala.domain.states import PaymentMethod


class LoanRequest(BaseModel):
    customer_id: str
    amount: float = Field(..., gt=0)
    interest_rate: Optional[float] = Field(None, ge=0, description="Percent, defaults to the platform rate")
    due_date: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": "c_91ab33f0e2d1",
                "amount": 1000,
                "interest_rate": 20,
                "due_date": "2025-03-31T00:00:00"
            }
        }


class LoanVote(BaseModel):
    approved: bool = True


class RepaymentRequest(BaseModel):
    amount: float = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    received_by: Optional[str] = None
