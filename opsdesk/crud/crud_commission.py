from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List

from opsdesk.models.commission import Commission
from opsdesk.models.sale import Installment
from opsdesk.schemas.commission import CommissionSummary

def get_commission(db: Session, commission_id: int) -> Optional[Commission]:
    """
    Get a single commission by ID with its installment and seller eagerly loaded.
    """
    return (
        db.query(Commission)
        .options(joinedload(Commission.installment), joinedload(Commission.seller))
        .filter(Commission.id == commission_id)
        .first()
    )

def get_commissions(
    db: Session,
    *,
    seller_id: Optional[int] = None,
    competence_month: Optional[date] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Commission]:
    """
    Get seller commissions, optionally for one seller, one competence month
    (any day of the month may be passed) or one status.
    """
    query = db.query(Commission).options(joinedload(Commission.installment), joinedload(Commission.seller))
    if seller_id:
        query = query.filter(Commission.seller_id == seller_id)
    if competence_month:
        query = query.filter(Commission.competence_month == competence_month.replace(day=1))
    if status:
        query = query.filter(Commission.status == status)
    return query.order_by(Commission.competence_month.desc(), Commission.id.asc()).offset(skip).limit(limit).all()

def get_commissions_by_sale_id(db: Session, *, sale_id: int) -> List[Commission]:
    return (
        db.query(Commission)
        .join(Installment, Commission.installment_id == Installment.id)
        .filter(Installment.sale_id == sale_id)
        .order_by(Installment.installment_number)
        .all()
    )

def get_commission_summary(
    db: Session, *, seller_id: Optional[int] = None, today: Optional[date] = None
) -> CommissionSummary:
    """
    Totals of commission value per status, plus released and pending totals
    for the current competence month.
    """
    current_month = (today or date.today()).replace(day=1)
    query = db.query(Commission)
    if seller_id:
        query = query.filter(Commission.seller_id == seller_id)

    summary = CommissionSummary()
    for commission in query.all():
        value = Decimal(commission.commission_value)
        if commission.status == "released":
            summary.total_released += value
            if commission.competence_month == current_month:
                summary.current_month_released += value
        elif commission.status == "pending":
            summary.total_pending += value
            if commission.competence_month == current_month:
                summary.current_month_pending += value
        elif commission.status == "suspended":
            summary.total_suspended += value
    return summary
