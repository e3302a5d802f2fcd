from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List

from opsdesk.models.sdr import SDRAssignment, SDRCommission
from opsdesk.schemas.sdr import SDRCommissionSummary

def get_assignment(db: Session, assignment_id: int) -> Optional[SDRAssignment]:
    return (
        db.query(SDRAssignment)
        .options(joinedload(SDRAssignment.sale), joinedload(SDRAssignment.sdr), joinedload(SDRAssignment.approver))
        .filter(SDRAssignment.id == assignment_id)
        .first()
    )

def get_assignment_by_sale(db: Session, *, sale_id: int) -> Optional[SDRAssignment]:
    return db.query(SDRAssignment).filter(SDRAssignment.sale_id == sale_id).first()

def get_assignments(
    db: Session,
    *,
    status: Optional[str] = None,
    sdr_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[SDRAssignment]:
    query = db.query(SDRAssignment).options(
        joinedload(SDRAssignment.sale), joinedload(SDRAssignment.sdr), joinedload(SDRAssignment.approver)
    )
    if status:
        query = query.filter(SDRAssignment.status == status)
    if sdr_id:
        query = query.filter(SDRAssignment.sdr_id == sdr_id)
    return query.order_by(SDRAssignment.created_at.desc(), SDRAssignment.id.desc()).offset(skip).limit(limit).all()

def get_sdr_commissions(
    db: Session,
    *,
    sdr_id: Optional[int] = None,
    competence_month: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[SDRCommission]:
    query = db.query(SDRCommission).options(joinedload(SDRCommission.installment), joinedload(SDRCommission.sdr))
    if sdr_id:
        query = query.filter(SDRCommission.sdr_id == sdr_id)
    if competence_month:
        query = query.filter(SDRCommission.competence_month == competence_month.replace(day=1))
    return query.order_by(SDRCommission.competence_month.desc(), SDRCommission.id.asc()).offset(skip).limit(limit).all()

def get_sdr_commission_summary(db: Session, *, sdr_id: Optional[int] = None) -> SDRCommissionSummary:
    query = db.query(SDRCommission)
    if sdr_id:
        query = query.filter(SDRCommission.sdr_id == sdr_id)

    summary = SDRCommissionSummary()
    for commission in query.all():
        value = Decimal(commission.commission_value)
        if commission.status == "released":
            summary.total_released += value
        elif commission.status == "pending":
            summary.total_pending += value
        elif commission.status == "suspended":
            summary.total_suspended += value
        elif commission.status == "cancelled":
            summary.total_cancelled += value
        summary.count += 1
    return summary
