from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal

from opsdesk.schemas.user import ProfileNested

InstallmentStatus = Literal["pending", "paid", "overdue", "cancelled", "refunded"]

class SaleBase(BaseModel):
    external_id: str = Field(..., max_length=255)
    client_name: str = Field(..., max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(default=None, max_length=50)
    product_id: Optional[int] = None
    product_name: Optional[str] = Field(default=None, max_length=255)
    total_value: Decimal = Field(..., gt=0)
    installments_count: int = Field(default=1, ge=1, le=120)
    sale_date: date
    platform: str = Field(default="manual", max_length=50)
    payment_type: Optional[str] = Field(default=None, max_length=50)
    proof_link: Optional[str] = Field(default=None, max_length=500)
    commission_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)

class SaleCreate(SaleBase):
    """
    Schema for registering a sale. The installment schedule is generated from
    total_value and installments_count. When seller_id is given the seller's
    commissions are generated right away.
    """
    seller_id: Optional[int] = None

class Sale(SaleBase):
    id: int
    status: Literal["active", "cancelled"]
    seller_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    seller: Optional[ProfileNested] = None

    class Config:
        from_attributes = True

class Installment(BaseModel):
    id: int
    sale_id: int
    installment_number: int
    total_installments: int
    value: Decimal
    due_date: date
    payment_date: Optional[date] = None
    status: InstallmentStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class InstallmentStatusUpdate(BaseModel):
    status: InstallmentStatus
    payment_date: Optional[date] = None

class SellerAssignment(BaseModel):
    seller_id: int
    commission_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)

class BulkSellerAssignment(SellerAssignment):
    sale_ids: List[int] = Field(..., min_length=1)

class SellerAssignmentResult(BaseModel):
    sale_id: int
    seller_id: int
    commissions_created: int

class InstallmentImportRecord(BaseModel):
    external_id: str
    installment_number: int = Field(..., ge=1)
    value: Optional[Decimal] = None
    status: str
    payment_date: Optional[date] = None

class InstallmentImportRequest(BaseModel):
    platform: str
    filename: Optional[str] = None
    records: List[InstallmentImportRecord]

class InstallmentImportResult(BaseModel):
    created: int
    updated: int
    failed: int
    errors: List[str] = []
