from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from decimal import Decimal

CriterionOperator = Literal["equals", "contains", "greater_than", "less_than", "not_empty"]

class StrategicSessionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    google_sheet_url: Optional[str] = Field(default=None, max_length=500)

class StrategicSession(StrategicSessionCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True

class QualificationCriterionCreate(BaseModel):
    field_name: str = Field(..., min_length=1, max_length=255)
    operator: CriterionOperator
    value: str = ""
    weight: Decimal = Field(default=Decimal("1"), gt=0)

class QualificationCriterion(QualificationCriterionCreate):
    id: int
    session_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class StrategicLead(BaseModel):
    id: int
    session_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    stage: str
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_content: Optional[str] = None
    is_qualified: bool
    qualification_score: Optional[int] = None
    extra_data: Dict[str, Any] = {}
    source_row_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class LeadSyncRequest(BaseModel):
    """Sheet values as returned by the spreadsheet API: a header row followed by data rows."""
    spreadsheet_id: str = Field(..., min_length=1)
    values: List[List[str]]

class LeadSyncResult(BaseModel):
    created: int
    updated: int
    total: int

class LeadRecalculateResult(BaseModel):
    updated: int
    qualified: int
