import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.core import commissions_calculator
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.core.exceptions import NotFoundError, PreconditionFailedError
from opsdesk.crud import crud_sale, crud_user
from opsdesk.db.session import get_db
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.sale import (
    Sale as SaleSchema,
    SaleCreate,
    Installment as InstallmentSchema,
    InstallmentStatusUpdate,
    SellerAssignment,
    BulkSellerAssignment,
    SellerAssignmentResult,
    InstallmentImportRequest,
    InstallmentImportResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=SaleSchema, status_code=201)
async def create_sale(
    sale_in: SaleCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Register a sale and its installments. When seller_id is given the
    seller's commissions are generated right away.
    """
    if crud_sale.get_sale_by_external_id(db, external_id=sale_in.external_id):
        raise HTTPException(status_code=400, detail="A sale with this external_id already exists.")
    if sale_in.seller_id and not crud_user.get_profile(db, profile_id=sale_in.seller_id):
        raise HTTPException(status_code=404, detail=f"Seller with id {sale_in.seller_id} not found.")

    db_sale = crud_sale.create_sale(db=db, obj_in=sale_in, created_by=current_user.id)
    if sale_in.seller_id:
        await commissions_calculator.generate_seller_commissions(db, db_sale.id, sale_in.seller_id)
        db.refresh(db_sale)
    return db_sale

@router.get("/", response_model=List[SaleSchema])
def read_sales(
    db: Session = Depends(get_db),
    seller_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Filter by status: active, cancelled"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Sellers see their own sales; superusers see all and may filter by seller.
    """
    if not current_user.is_superuser:
        seller_id = current_user.id
    return crud_sale.get_sales(db, seller_id=seller_id, status=status, skip=skip, limit=limit)

@router.post("/bulk-assign", response_model=List[SellerAssignmentResult])
async def bulk_assign_seller(
    assignment_in: BulkSellerAssignment,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    try:
        results = await commissions_calculator.bulk_assign_seller(
            db, assignment_in.sale_ids, assignment_in.seller_id, assignment_in.commission_percent
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [
        SellerAssignmentResult(sale_id=sale_id, seller_id=assignment_in.seller_id, commissions_created=count)
        for sale_id, count in results
    ]

@router.post("/installments/import", response_model=InstallmentImportResult)
def import_installments(
    import_in: InstallmentImportRequest,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Apply payment records exported by a sales platform to existing installments.
    """
    return crud_sale.import_installment_records(db, obj_in=import_in)

@router.put("/installments/{installment_id}/status", response_model=InstallmentSchema)
def update_installment_status(
    installment_id: int,
    status_in: InstallmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    db_installment = crud_sale.get_installment(db, installment_id=installment_id)
    if not db_installment:
        raise HTTPException(status_code=404, detail="Installment not found")
    return crud_sale.update_installment_status(
        db, db_obj=db_installment, status=status_in.status, payment_date=status_in.payment_date
    )

@router.get("/{sale_id}", response_model=SaleSchema)
def read_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    db_sale = crud_sale.get_sale(db, sale_id=sale_id)
    if not db_sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    if not current_user.is_superuser and db_sale.seller_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to view this sale")
    return db_sale

@router.get("/{sale_id}/installments", response_model=List[InstallmentSchema])
def read_sale_installments(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    db_sale = read_sale(sale_id, db=db, current_user=current_user)
    return crud_sale.get_installments(db, sale_id=db_sale.id)

@router.post("/{sale_id}/assign-seller", response_model=SellerAssignmentResult)
async def assign_seller(
    sale_id: int,
    assignment_in: SellerAssignment,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Attach a seller to the sale and regenerate its commissions. Running it
    again replaces the previous commissions instead of adding to them.
    """
    try:
        commissions = await commissions_calculator.generate_seller_commissions(
            db, sale_id, assignment_in.seller_id, assignment_in.commission_percent
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SellerAssignmentResult(sale_id=sale_id, seller_id=assignment_in.seller_id, commissions_created=len(commissions))

@router.post("/{sale_id}/cancel", response_model=SaleSchema)
def cancel_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    db_sale = crud_sale.get_sale(db, sale_id=sale_id)
    if not db_sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    if db_sale.status == "cancelled":
        raise HTTPException(status_code=400, detail="Sale is already cancelled")
    logger.info(f"Sale ID: {sale_id} cancelled by profile ID: {current_user.id}")
    return crud_sale.cancel_sale(db, db_obj=db_sale)
