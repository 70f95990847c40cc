"""
inala/schemas/pos.py

Purpose: Point-of-sale and ledger request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from inala.domain.states import PaymentMethod, TransactionType


class CartLine(BaseModel):
    product_id: str
    quantity: float = Field(1, gt=0)


class CheckoutRequest(BaseModel):
    items: List[CartLine] = Field(..., min_length=1)
    method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "items": [{"product_id": "p_3f2a9c1b7d4e", "quantity": 2}],
                "method": "CREDIT",
                "customer_id": "c_91ab33f0e2d1"
            }
        }


class DebtPaymentRequest(BaseModel):
    customer_id: str
    amount: float = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    received_by: Optional[str] = None
    date: Optional[datetime] = None


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    reference: Optional[str] = None
    timestamp: Optional[datetime] = None
    items: List[Dict[str, Any]] = []


class VoidRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class SaleAdjustment(BaseModel):
    reason: str = Field(..., min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    method: Optional[PaymentMethod] = None
    customer_id: Optional[str] = None
