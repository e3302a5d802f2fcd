from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date, datetime
from decimal import Decimal

from opsdesk.schemas.user import ProfileNested
from opsdesk.schemas.commission import CommissionNestedInstallment

class SDRAssignmentCreate(BaseModel):
    sale_id: int
    sdr_id: int
    proof_link: str = Field(..., min_length=1, max_length=500)
    commission_percent: Optional[Decimal] = Field(default=None, gt=0, le=100) # Defaults to 1%

class SDRNestedSale(BaseModel):
    id: int
    external_id: str
    client_name: str
    product_name: Optional[str] = None
    total_value: Decimal
    seller_id: Optional[int] = None

    class Config:
        from_attributes = True

class SDRAssignment(BaseModel):
    id: int
    sale_id: int
    sdr_id: int
    proof_link: str
    commission_percent: Decimal
    status: Literal["pending", "approved", "rejected"]
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    sale: Optional[SDRNestedSale] = None
    sdr: Optional[ProfileNested] = None
    approver: Optional[ProfileNested] = None

    class Config:
        from_attributes = True

class SDRRejection(BaseModel):
    rejection_reason: str = Field(..., min_length=1)

class SDRApprovalResult(BaseModel):
    assignment: SDRAssignment
    commissions_created: int

class SDRCommission(BaseModel):
    id: int
    sdr_assignment_id: int
    installment_id: int
    sdr_id: int
    installment_value: Decimal
    commission_percent: Decimal
    commission_value: Decimal
    competence_month: date
    status: str
    released_at: Optional[datetime] = None
    created_at: datetime

    installment: Optional[CommissionNestedInstallment] = None
    sdr: Optional[ProfileNested] = None

    class Config:
        from_attributes = True

class SDRCommissionSummary(BaseModel):
    total_released: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_suspended: Decimal = Decimal("0")
    total_cancelled: Decimal = Decimal("0")
    count: int = 0
