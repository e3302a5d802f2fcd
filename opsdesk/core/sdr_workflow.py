"""
SDR commission approval flow.

An assignment is created pending and moves exactly once, either to approved
(which generates one SDR commission per installment of the sale) or to
rejected (which needs a reason). Only pending assignments can be deleted.
"""
import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from opsdesk.core.commissions_calculator import build_commission_rows
from opsdesk.core.config import DEFAULT_SDR_COMMISSION_PERCENT
from opsdesk.core.exceptions import DuplicateSDRAssignmentError, InvalidTransitionError, NotFoundError
from opsdesk.core.utils import to_decimal, utcnow
from opsdesk.models.sale import Installment as InstallmentModel, Sale as SaleModel
from opsdesk.models.sdr import SDRAssignment as SDRAssignmentModel, SDRCommission as SDRCommissionModel
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.sdr import SDRAssignmentCreate

logger = logging.getLogger(__name__)


def _get_assignment(db: Session, assignment_id: int) -> SDRAssignmentModel:
    assignment = db.query(SDRAssignmentModel).filter(SDRAssignmentModel.id == assignment_id).first()
    if not assignment:
        raise NotFoundError(f"SDR assignment {assignment_id} not found")
    return assignment


def create_sdr_assignment(
    db: Session, *, obj_in: SDRAssignmentCreate, created_by: Optional[int] = None
) -> SDRAssignmentModel:
    if not db.query(SaleModel.id).filter(SaleModel.id == obj_in.sale_id).first():
        raise NotFoundError(f"Sale {obj_in.sale_id} not found")
    if not db.query(ProfileModel.id).filter(ProfileModel.id == obj_in.sdr_id).first():
        raise NotFoundError(f"SDR {obj_in.sdr_id} not found")

    percent = obj_in.commission_percent
    if percent is None:
        percent = to_decimal(DEFAULT_SDR_COMMISSION_PERCENT)

    db_obj = SDRAssignmentModel(
        sale_id=obj_in.sale_id,
        sdr_id=obj_in.sdr_id,
        proof_link=obj_in.proof_link,
        commission_percent=percent,
        status="pending",
        created_by=created_by,
    )
    db.add(db_obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # The only unique key a well-formed insert can hit is sale_id
        existing = db.query(SDRAssignmentModel.id).filter(SDRAssignmentModel.sale_id == obj_in.sale_id).first()
        if existing:
            logger.warning(f"Rejected duplicate SDR assignment for sale ID: {obj_in.sale_id}")
            raise DuplicateSDRAssignmentError(obj_in.sale_id)
        raise
    db.refresh(db_obj)
    logger.info(f"Created pending SDR assignment ID: {db_obj.id} for sale ID: {db_obj.sale_id}, SDR ID: {db_obj.sdr_id}")
    return db_obj


async def approve_sdr_assignment(
    db: Session, assignment_id: int, approver_id: int
) -> Tuple[SDRAssignmentModel, int]:
    """
    Approve a pending assignment and create its SDR commissions.
    Returns the assignment and the number of commissions created.
    """
    logger.info(f"Approving SDR assignment ID: {assignment_id} by approver ID: {approver_id}")
    assignment = _get_assignment(db, assignment_id)
    if assignment.status != "pending":
        raise InvalidTransitionError(assignment_id, assignment.status, "approved")

    installments = (
        db.query(InstallmentModel)
        .filter(InstallmentModel.sale_id == assignment.sale_id)
        .order_by(InstallmentModel.installment_number)
        .all()
    )

    now = utcnow()
    try:
        assignment.status = "approved"
        assignment.approved_by = approver_id
        assignment.approved_at = now

        rows = build_commission_rows(installments, assignment.commission_percent, now)
        db.add_all([
            SDRCommissionModel(sdr_assignment_id=assignment.id, sdr_id=assignment.sdr_id, **row)
            for row in rows
        ])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Approval of SDR assignment ID: {assignment_id} failed. Changes rolled back.", exc_info=True)
        raise

    db.refresh(assignment)
    if not rows:
        logger.warning(f"SDR assignment ID: {assignment_id} approved but sale ID: {assignment.sale_id} has no installments")
    logger.info(f"SDR assignment ID: {assignment_id} approved. {len(rows)} SDR commission(s) created.")
    return assignment, len(rows)


def reject_sdr_assignment(db: Session, assignment_id: int, rejection_reason: str) -> SDRAssignmentModel:
    reason = (rejection_reason or "").strip()
    if not reason:
        raise ValueError("A rejection reason is required.")

    assignment = _get_assignment(db, assignment_id)
    if assignment.status != "pending":
        raise InvalidTransitionError(assignment_id, assignment.status, "rejected")

    assignment.status = "rejected"
    assignment.rejection_reason = reason
    db.commit()
    db.refresh(assignment)
    logger.info(f"SDR assignment ID: {assignment_id} rejected")
    return assignment


def delete_sdr_assignment(db: Session, assignment_id: int) -> int:
    """
    Delete an assignment only while it is pending. Returns the number of rows
    deleted; approved or rejected assignments are left alone and give 0.
    """
    deleted = (
        db.query(SDRAssignmentModel)
        .filter(SDRAssignmentModel.id == assignment_id, SDRAssignmentModel.status == "pending")
        .delete(synchronize_session="fetch")
    )
    db.commit()
    if not deleted:
        logger.info(f"Delete of SDR assignment ID: {assignment_id} matched no pending assignment")
    return deleted
