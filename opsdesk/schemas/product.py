from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

class ProductBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    default_commission_percent: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    default_commission_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

class Product(ProductBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
