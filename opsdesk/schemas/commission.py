from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from opsdesk.schemas.user import ProfileNested

class CommissionNestedInstallment(BaseModel):
    """A simplified Installment schema for nesting within Commission."""
    id: int
    sale_id: int
    installment_number: int
    total_installments: int
    due_date: date
    status: str

    class Config:
        from_attributes = True

class CommissionBase(BaseModel):
    installment_id: int
    seller_id: int
    installment_value: Decimal
    commission_percent: Decimal
    commission_value: Decimal
    competence_month: date
    status: str
    released_at: Optional[datetime] = None

class CommissionCreate(CommissionBase):
    """Schema for creating a commission record. Used internally by the commission generator."""
    pass

class Commission(CommissionBase):
    """Full schema for returning commission data to the client."""
    id: int
    created_at: datetime
    updated_at: datetime

    installment: Optional[CommissionNestedInstallment] = None
    seller: Optional[ProfileNested] = None

    class Config:
        from_attributes = True

class CommissionSummary(BaseModel):
    total_released: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_suspended: Decimal = Decimal("0")
    current_month_released: Decimal = Decimal("0")
    current_month_pending: Decimal = Decimal("0")
