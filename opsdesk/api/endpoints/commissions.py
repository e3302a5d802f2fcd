from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.crud import crud_commission
from opsdesk.schemas.commission import Commission as CommissionSchema, CommissionSummary
from opsdesk.db.session import get_db
from opsdesk.core.dependencies import get_current_active_user
from opsdesk.models.user import Profile as ProfileModel

router = APIRouter()

@router.get("/", response_model=List[CommissionSchema])
def read_commissions(
    db: Session = Depends(get_db),
    seller_id: Optional[int] = Query(None),
    month: Optional[date] = Query(None, description="Any day of the competence month"),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Seller commissions. Non-admin users only ever see their own.
    """
    if not current_user.is_superuser:
        seller_id = current_user.id
    return crud_commission.get_commissions(
        db, seller_id=seller_id, competence_month=month, status=status, skip=skip, limit=limit
    )

@router.get("/summary", response_model=CommissionSummary)
def read_commission_summary(
    db: Session = Depends(get_db),
    seller_id: Optional[int] = Query(None),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    if not current_user.is_superuser:
        seller_id = current_user.id
    return crud_commission.get_commission_summary(db, seller_id=seller_id)
