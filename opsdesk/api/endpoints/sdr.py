from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.core import sdr_workflow
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.core.exceptions import DuplicateSDRAssignmentError, InvalidTransitionError, NotFoundError
from opsdesk.crud import crud_sale, crud_sdr
from opsdesk.db.session import get_db
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.sale import Sale as SaleSchema
from opsdesk.schemas.sdr import (
    SDRAssignment as SDRAssignmentSchema,
    SDRAssignmentCreate,
    SDRRejection,
    SDRApprovalResult,
    SDRCommission as SDRCommissionSchema,
    SDRCommissionSummary,
)

router = APIRouter()

@router.post("/assignments", response_model=SDRAssignmentSchema, status_code=201)
def create_assignment(
    assignment_in: SDRAssignmentCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Claim a sale for an SDR. The claim starts pending and needs admin approval.
    A sale can only be claimed once.
    """
    try:
        db_assignment = sdr_workflow.create_sdr_assignment(db, obj_in=assignment_in, created_by=current_user.id)
    except DuplicateSDRAssignmentError:
        raise HTTPException(status_code=409, detail="This sale already has an SDR assigned.")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return crud_sdr.get_assignment(db, assignment_id=db_assignment.id)

@router.get("/assignments", response_model=List[SDRAssignmentSchema])
def read_assignments(
    db: Session = Depends(get_db),
    status: Optional[str] = Query(None, description="Filter by status: pending, approved, rejected"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    sdr_id = None if current_user.is_superuser else current_user.id
    return crud_sdr.get_assignments(db, status=status, sdr_id=sdr_id, skip=skip, limit=limit)

@router.get("/assignments/by-sale/{sale_id}", response_model=Optional[SDRAssignmentSchema])
def read_assignment_by_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return crud_sdr.get_assignment_by_sale(db, sale_id=sale_id)

@router.post("/assignments/{assignment_id}/approve", response_model=SDRApprovalResult)
async def approve_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Approve a pending claim and create one SDR commission per installment.
    """
    try:
        db_assignment, created = await sdr_workflow.approve_sdr_assignment(db, assignment_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return SDRApprovalResult(
        assignment=SDRAssignmentSchema.model_validate(crud_sdr.get_assignment(db, assignment_id=db_assignment.id)),
        commissions_created=created,
    )

@router.post("/assignments/{assignment_id}/reject", response_model=SDRAssignmentSchema)
def reject_assignment(
    assignment_id: int,
    rejection_in: SDRRejection,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    try:
        db_assignment = sdr_workflow.reject_sdr_assignment(db, assignment_id, rejection_in.rejection_reason)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return crud_sdr.get_assignment(db, assignment_id=db_assignment.id)

@router.delete("/assignments/{assignment_id}")
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Withdraw a pending claim. Approved or rejected claims are kept and the
    response reports 0 deleted.
    """
    db_assignment = crud_sdr.get_assignment(db, assignment_id=assignment_id)
    if db_assignment and not current_user.is_superuser and db_assignment.sdr_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this assignment")
    return {"deleted": sdr_workflow.delete_sdr_assignment(db, assignment_id)}

@router.get("/commissions", response_model=List[SDRCommissionSchema])
def read_sdr_commissions(
    db: Session = Depends(get_db),
    sdr_id: Optional[int] = Query(None),
    month: Optional[date] = Query(None, description="Any day of the competence month"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    if not current_user.is_superuser:
        sdr_id = current_user.id
    return crud_sdr.get_sdr_commissions(db, sdr_id=sdr_id, competence_month=month, skip=skip, limit=limit)

@router.get("/commissions/summary", response_model=SDRCommissionSummary)
def read_sdr_commission_summary(
    db: Session = Depends(get_db),
    sdr_id: Optional[int] = Query(None),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    if not current_user.is_superuser:
        sdr_id = current_user.id
    return crud_sdr.get_sdr_commission_summary(db, sdr_id=sdr_id)

@router.get("/sales-without-sdr", response_model=List[SaleSchema])
def read_sales_without_sdr(
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Active sales with a seller that no SDR has claimed yet.
    """
    return crud_sale.get_sales_without_sdr(db)
