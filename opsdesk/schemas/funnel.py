from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date, datetime
from decimal import Decimal

class FunnelBase(BaseModel):
    name: str = Field(..., max_length=255)
    category: Optional[str] = Field(default=None, max_length=100)
    status: Literal["active", "finished"] = "active"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

class FunnelCreate(FunnelBase):
    pass

class Funnel(FunnelBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class FunnelProductLink(BaseModel):
    product_id: int

class FunnelSalesProductLink(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)

class FunnelProductNested(BaseModel):
    id: int
    name: str
    price: Optional[Decimal] = None
    is_active: Optional[bool] = None

    class Config:
        from_attributes = True

class FunnelProduct(BaseModel):
    id: int
    funnel_id: int
    product_id: int
    created_at: datetime
    product: Optional[FunnelProductNested] = None

    class Config:
        from_attributes = True

class FunnelSalesProduct(BaseModel):
    id: int
    funnel_id: int
    product_name: str
    created_at: datetime

    class Config:
        from_attributes = True

class RevenueSummary(BaseModel):
    """
    Attributed revenue for a window plus the window of equal length before it.
    growth_percent is 0 when growth_defined is False (no baseline revenue);
    callers must read that as "not available", not as "no change".
    """
    total: Decimal
    count: int
    previous_total: Decimal
    previous_count: int
    growth_percent: int
    growth_defined: bool

class MatchedSale(BaseModel):
    id: int
    product_name: Optional[str] = None
    total_value: Decimal
    sale_date: date
    client_name: str
    matched_by: str
