"""
inala/schemas/inventory.py

Purpose: Product, customer and CSV import request bodies
"""

from pydantic import BaseModel, Field
from typing import Optional, Literal


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    category: Optional[str] = "General"
    subcategory: Optional[str] = None
    price: float = Field(..., ge=0)
    cost: float = Field(0, ge=0)
    stock_level: float = 0
    min_stock_threshold: float = 5
    unit: Literal["kg", "unit", "litre", "box"] = "unit"

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Beef Mince",
                "sku": "BM-001",
                "category": "Meat",
                "price": 89.99,
                "cost": 60.0,
                "stock_level": 40,
                "unit": "kg"
            }
        }


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    min_stock_threshold: Optional[float] = None
    unit: Optional[Literal["kg", "unit", "litre", "box"]] = None


class StockAdjustment(BaseModel):
    delta: float = Field(..., description="Positive to receive stock, negative to write off")


class CSVImport(BaseModel):
    content: str = Field(..., description="Raw CSV text including the header row")


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    credit_limit: Optional[float] = Field(None, ge=0)


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    credit_limit: Optional[float] = Field(None, ge=0)


class CustomerLookup(BaseModel):
    name: str = Field(..., min_length=1)
