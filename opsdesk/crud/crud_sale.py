import calendar
import logging
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Optional, List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from opsdesk.core.cache import revenue_cache
from opsdesk.core.commissions_calculator import commission_status_after_payment_change
from opsdesk.core.utils import CENTS, to_decimal, utcnow
from opsdesk.models.commission import Commission
from opsdesk.models.product import Product
from opsdesk.models.sale import Sale, Installment
from opsdesk.models.sdr import SDRAssignment, SDRCommission
from opsdesk.schemas.sale import SaleCreate, InstallmentImportRequest, InstallmentImportResult

logger = logging.getLogger(__name__)

# Status words accepted from platform exports, in Portuguese or English.
IMPORT_STATUS_ALIASES = {
    "pago": "paid",
    "paid": "paid",
    "cancelado": "cancelled",
    "cancelled": "cancelled",
    "estornado": "refunded",
    "refunded": "refunded",
}


def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_installment_schedule(total_value, installments_count: int, sale_date: date) -> List[Tuple[int, Decimal, date]]:
    """
    (installment_number, value, due_date) for a sale paid in equal monthly
    installments starting on the sale date. Values are rounded down to cents
    and the last installment takes the remainder, so the schedule sums to
    the total exactly.
    """
    total = to_decimal(total_value)
    base = (total / installments_count).quantize(CENTS, rounding=ROUND_DOWN)
    schedule = []
    for number in range(1, installments_count + 1):
        value = base if number < installments_count else total - base * (installments_count - 1)
        schedule.append((number, value, add_months(sale_date, number - 1)))
    return schedule


def create_sale(db: Session, *, obj_in: SaleCreate, created_by: Optional[int] = None) -> Sale:
    """
    Create a sale together with its installment schedule.
    The seller, if any, is attached separately by the commission generator.
    """
    sale_data = obj_in.model_dump(exclude={"seller_id"})
    if sale_data.get("commission_percent") is None and obj_in.product_id is not None:
        product = db.query(Product).filter(Product.id == obj_in.product_id).first()
        if product:
            sale_data["commission_percent"] = product.default_commission_percent
            if not sale_data.get("product_name"):
                sale_data["product_name"] = product.name

    db_obj = Sale(**sale_data, status="active", created_by=created_by)
    for number, value, due_date in build_installment_schedule(obj_in.total_value, obj_in.installments_count, obj_in.sale_date):
        db_obj.installments.append(Installment(
            installment_number=number,
            total_installments=obj_in.installments_count,
            value=value,
            due_date=due_date,
            status="pending",
        ))
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    revenue_cache.invalidate_all_funnels()
    logger.info(f"Created sale ID: {db_obj.id} ({db_obj.external_id}) with {obj_in.installments_count} installment(s)")
    return db_obj


def get_sale(db: Session, sale_id: int) -> Optional[Sale]:
    return (
        db.query(Sale)
        .options(joinedload(Sale.seller), joinedload(Sale.installments))
        .filter(Sale.id == sale_id)
        .first()
    )


def get_sale_by_external_id(db: Session, external_id: str) -> Optional[Sale]:
    return db.query(Sale).filter(Sale.external_id == external_id).first()


def get_sales(
    db: Session,
    *,
    seller_id: Optional[int] = None,
    status: Optional[str] = None,
    with_seller_only: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> List[Sale]:
    query = db.query(Sale).options(joinedload(Sale.seller))
    if seller_id:
        query = query.filter(Sale.seller_id == seller_id)
    if with_seller_only:
        query = query.filter(Sale.seller_id.isnot(None))
    if status:
        query = query.filter(Sale.status == status)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).offset(skip).limit(limit).all()


def get_sales_without_sdr(db: Session) -> List[Sale]:
    """Active sales that already have a seller and no SDR assignment yet."""
    assigned = select(SDRAssignment.sale_id)
    return (
        db.query(Sale)
        .filter(Sale.seller_id.isnot(None), Sale.status == "active", Sale.id.notin_(assigned))
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )


def cancel_sale(db: Session, *, db_obj: Sale) -> Sale:
    """Cancel a sale; its installments and seller commissions are cancelled with it."""
    installment_ids = [row[0] for row in db.query(Installment.id).filter(Installment.sale_id == db_obj.id).all()]
    db_obj.status = "cancelled"
    db.query(Installment).filter(Installment.sale_id == db_obj.id).update(
        {Installment.status: "cancelled"}, synchronize_session="fetch"
    )
    if installment_ids:
        db.query(Commission).filter(Commission.installment_id.in_(installment_ids)).update(
            {Commission.status: "cancelled"}, synchronize_session="fetch"
        )
    db.commit()
    db.refresh(db_obj)
    revenue_cache.invalidate_all_funnels()
    logger.info(f"Cancelled sale ID: {db_obj.id} and {len(installment_ids)} installment(s)")
    return db_obj


def get_installment(db: Session, installment_id: int) -> Optional[Installment]:
    return db.query(Installment).filter(Installment.id == installment_id).first()


def get_installments(db: Session, *, sale_id: Optional[int] = None) -> List[Installment]:
    query = db.query(Installment)
    if sale_id:
        query = query.filter(Installment.sale_id == sale_id)
    return query.order_by(Installment.due_date.asc(), Installment.installment_number.asc()).all()


def _apply_installment_status(db: Session, installment: Installment, status: str, payment_date: Optional[date]) -> None:
    installment.status = status
    installment.payment_date = payment_date

    commission_status = commission_status_after_payment_change(status)
    released_at = utcnow() if status == "paid" else None
    db.query(Commission).filter(Commission.installment_id == installment.id).update(
        {Commission.status: commission_status, Commission.released_at: released_at},
        synchronize_session="fetch",
    )
    if status == "paid":
        db.query(SDRCommission).filter(
            SDRCommission.installment_id == installment.id,
            SDRCommission.status == "pending",
        ).update(
            {SDRCommission.status: "released", SDRCommission.released_at: released_at},
            synchronize_session="fetch",
        )


def update_installment_status(
    db: Session, *, db_obj: Installment, status: str, payment_date: Optional[date] = None
) -> Installment:
    """
    Update an installment's payment state. Seller commissions follow it
    (paid -> released, overdue -> suspended, cancelled/refunded -> cancelled,
    otherwise pending) and pending SDR commissions are released on payment.
    """
    _apply_installment_status(db, db_obj, status, payment_date)
    db.commit()
    db.refresh(db_obj)
    logger.info(f"Installment ID: {db_obj.id} of sale ID: {db_obj.sale_id} is now '{status}'")
    return db_obj


def import_installment_records(db: Session, *, obj_in: InstallmentImportRequest) -> InstallmentImportResult:
    """
    Apply payment records exported by a sales platform. Records are matched
    by sale external_id and installment number. Records for installments
    that do not exist yet are only counted as created.
    """
    created = updated = failed = 0
    errors: List[str] = []

    for record in obj_in.records:
        sale = get_sale_by_external_id(db, record.external_id)
        if not sale:
            errors.append(f"Sale {record.external_id} not found")
            failed += 1
            continue

        installment = (
            db.query(Installment)
            .filter(Installment.sale_id == sale.id, Installment.installment_number == record.installment_number)
            .first()
        )
        if not installment:
            created += 1
            continue

        status = IMPORT_STATUS_ALIASES.get(record.status.strip().lower(), "pending")
        try:
            _apply_installment_status(db, installment, status, record.payment_date)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to import record {record.external_id}#{record.installment_number}: {e}")
            errors.append(f"Error processing {record.external_id}: {e}")
            failed += 1
            continue
        updated += 1

    logger.info(
        f"Import from {obj_in.platform} ({obj_in.filename or 'no file'}): "
        f"{updated} updated, {created} created, {failed} failed"
    )
    return InstallmentImportResult(created=created, updated=updated, failed=failed, errors=errors)
