"""
inala/schemas/finance.py

Purpose: Expense and proof-of-payment request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from inala.domain.states import ExpenseStatus, POPStatus


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    category: Optional[str] = "General"
    amount: float = Field(..., gt=0)
    date: Optional[datetime] = None
    status: ExpenseStatus = ExpenseStatus.PAID


class POPCreate(BaseModel):
    amount: float = Field(..., gt=0)
    reference: str = ""
    image_url: Optional[str] = None
    ocr_data: Dict[str, Any] = {}


class POPReview(BaseModel):
    status: POPStatus
