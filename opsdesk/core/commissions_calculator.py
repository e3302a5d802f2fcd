import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from opsdesk.core.config import DEFAULT_SELLER_COMMISSION_PERCENT
from opsdesk.core.exceptions import NotFoundError, PreconditionFailedError
from opsdesk.core.utils import quantize_money, to_decimal, utcnow
from opsdesk.models.commission import Commission as CommissionModel
from opsdesk.models.sale import Installment as InstallmentModel, Sale as SaleModel
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.commission import CommissionCreate

logger = logging.getLogger(__name__)


def competence_month(due_date: date) -> date:
    """Accounting month of a commission: the first day of the installment's due-date month."""
    return due_date.replace(day=1)


def commission_status_for_installment(installment_status: str, now: datetime) -> Tuple[str, Optional[datetime]]:
    if installment_status == "paid":
        return "released", now
    return "pending", None


def commission_value(installment_value, percent) -> Decimal:
    return quantize_money(to_decimal(installment_value) * to_decimal(percent) / 100)


def build_commission_rows(installments: Iterable[InstallmentModel], percent, now: datetime) -> List[dict]:
    """
    One commission row per installment. The percent and installment value in
    effect now are copied onto the row; later changes to the sale do not
    touch rows already built.
    """
    rows = []
    for installment in installments:
        status, released_at = commission_status_for_installment(installment.status, now)
        rows.append({
            "installment_id": installment.id,
            "installment_value": to_decimal(installment.value),
            "commission_percent": to_decimal(percent),
            "commission_value": commission_value(installment.value, percent),
            "competence_month": competence_month(installment.due_date),
            "status": status,
            "released_at": released_at,
        })
    return rows


async def generate_seller_commissions(
    db: Session, sale_id: int, seller_id: int, commission_percent: Optional[Decimal] = None
) -> List[CommissionModel]:
    """
    Attach a seller to a sale and (re)build one commission per installment.

    Setting the seller, removing the sale's old commissions and inserting the
    new ones are committed together, so a failure leaves the previous state
    intact and re-running always converges to the same commission set.
    """
    logger.info(f"Starting seller commission generation for sale ID: {sale_id}, seller ID: {seller_id}")

    sale = (
        db.query(SaleModel)
        .options(selectinload(SaleModel.installments))
        .filter(SaleModel.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError(f"Sale {sale_id} not found")

    seller = db.query(ProfileModel).filter(ProfileModel.id == seller_id).first()
    if not seller:
        raise NotFoundError(f"Seller {seller_id} not found")

    installments = sorted(sale.installments, key=lambda i: i.installment_number)
    if not installments:
        raise PreconditionFailedError(f"Sale {sale_id} has no installments. Cannot generate commissions.")

    if commission_percent is not None:
        percent = to_decimal(commission_percent)
    elif sale.commission_percent is not None:
        percent = to_decimal(sale.commission_percent)
    else:
        percent = to_decimal(DEFAULT_SELLER_COMMISSION_PERCENT)

    now = utcnow()
    installment_ids = [installment.id for installment in installments]
    try:
        sale.seller_id = seller_id
        if commission_percent is not None:
            sale.commission_percent = percent

        stale = db.query(CommissionModel).filter(CommissionModel.installment_id.in_(installment_ids)).all()
        for commission in stale:
            db.delete(commission)
        db.flush() # Old rows must be gone before the unique installment_id rows are re-inserted

        commissions = [
            CommissionModel(**CommissionCreate(seller_id=seller_id, **row).model_dump())
            for row in build_commission_rows(installments, percent, now)
        ]
        db.add_all(commissions)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Commission generation failed for sale ID: {sale_id}. Changes rolled back.", exc_info=True)
        raise

    for commission in commissions:
        db.refresh(commission)

    logger.info(
        f"Replaced {len(stale)} commission(s) with {len(commissions)} for sale ID: {sale_id}, "
        f"seller ID: {seller_id}, percent: {percent}"
    )
    return commissions


async def bulk_assign_seller(
    db: Session, sale_ids: List[int], seller_id: int, commission_percent: Optional[Decimal] = None
) -> List[Tuple[int, int]]:
    """Assign one seller to several sales. Returns (sale_id, commissions_created) per sale."""
    results = []
    for sale_id in sale_ids:
        commissions = await generate_seller_commissions(db, sale_id, seller_id, commission_percent)
        results.append((sale_id, len(commissions)))
    logger.info(f"Bulk assignment of seller ID: {seller_id} finished for {len(results)} sale(s)")
    return results


# Installment status -> status of the commissions derived from it, after a payment change.
PAYMENT_STATUS_TO_COMMISSION_STATUS = {
    "paid": "released",
    "overdue": "suspended",
    "cancelled": "cancelled",
    "refunded": "cancelled",
}


def commission_status_after_payment_change(installment_status: str) -> str:
    return PAYMENT_STATUS_TO_COMMISSION_STATUS.get(installment_status, "pending")
