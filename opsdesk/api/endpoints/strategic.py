from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.crud import crud_strategic
from opsdesk.db.session import get_db
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.strategic import (
    StrategicSession as StrategicSessionSchema,
    StrategicSessionCreate,
    QualificationCriterion as QualificationCriterionSchema,
    QualificationCriterionCreate,
    StrategicLead as StrategicLeadSchema,
    LeadSyncRequest,
    LeadSyncResult,
    LeadRecalculateResult,
)

router = APIRouter()

def _get_session_or_404(db: Session, session_id: int):
    db_session = crud_strategic.get_session(db, session_id=session_id)
    if not db_session:
        raise HTTPException(status_code=404, detail="Strategic session not found")
    return db_session

@router.post("/sessions", response_model=StrategicSessionSchema, status_code=201)
def create_session(
    session_in: StrategicSessionCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    return crud_strategic.create_session(db, obj_in=session_in)

@router.get("/sessions", response_model=List[StrategicSessionSchema])
def read_sessions(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return crud_strategic.get_sessions(db, skip=skip, limit=limit)

@router.get("/sessions/{session_id}/criteria", response_model=List[QualificationCriterionSchema])
def read_criteria(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    _get_session_or_404(db, session_id)
    return crud_strategic.get_criteria(db, session_id=session_id)

@router.post("/sessions/{session_id}/criteria", response_model=QualificationCriterionSchema, status_code=201)
def create_criterion(
    session_id: int,
    criterion_in: QualificationCriterionCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Add a qualification criterion. Existing scores are not touched until the
    session is recalculated or re-synced.
    """
    _get_session_or_404(db, session_id)
    return crud_strategic.create_criterion(db, session_id=session_id, obj_in=criterion_in)

@router.delete("/sessions/{session_id}/criteria/{criterion_id}")
def delete_criterion(
    session_id: int,
    criterion_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    return {"deleted": crud_strategic.delete_criterion(db, session_id=session_id, criterion_id=criterion_id)}

@router.post("/sessions/{session_id}/sync", response_model=LeadSyncResult)
def sync_leads(
    session_id: int,
    sync_in: LeadSyncRequest,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    _get_session_or_404(db, session_id)
    return crud_strategic.sync_lead_rows(
        db, session_id=session_id, spreadsheet_id=sync_in.spreadsheet_id, values=sync_in.values
    )

@router.post("/sessions/{session_id}/recalculate", response_model=LeadRecalculateResult)
def recalculate_scores(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    _get_session_or_404(db, session_id)
    return crud_strategic.recalculate_session_scores(db, session_id=session_id)

@router.get("/sessions/{session_id}/leads", response_model=List[StrategicLeadSchema])
def read_leads(
    session_id: int,
    qualified: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    _get_session_or_404(db, session_id)
    return crud_strategic.get_leads(db, session_id=session_id, qualified=qualified, skip=skip, limit=limit)
