from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.core import revenue_matcher
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.core.exceptions import NotFoundError
from opsdesk.crud import crud_funnel, crud_product
from opsdesk.db.session import get_db
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.funnel import (
    Funnel as FunnelSchema,
    FunnelCreate,
    FunnelProduct as FunnelProductSchema,
    FunnelProductLink,
    FunnelSalesProduct as FunnelSalesProductSchema,
    FunnelSalesProductLink,
    MatchedSale,
    RevenueSummary,
)

router = APIRouter()

def _get_funnel_or_404(db: Session, funnel_id: int):
    db_funnel = crud_funnel.get_funnel(db, funnel_id=funnel_id)
    if not db_funnel:
        raise HTTPException(status_code=404, detail="Funnel not found")
    return db_funnel

@router.post("/", response_model=FunnelSchema, status_code=201)
def create_funnel(
    funnel_in: FunnelCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    return crud_funnel.create_funnel(db=db, obj_in=funnel_in)

@router.get("/", response_model=List[FunnelSchema])
def read_funnels(
    db: Session = Depends(get_db),
    status: Optional[str] = Query(None, description="Filter by status: active, finished"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return crud_funnel.get_funnels(db, status=status, skip=skip, limit=limit)

@router.get("/{funnel_id}", response_model=FunnelSchema)
def read_funnel(
    funnel_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return _get_funnel_or_404(db, funnel_id)

@router.get("/{funnel_id}/products", response_model=List[FunnelProductSchema])
def read_funnel_products(
    funnel_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    _get_funnel_or_404(db, funnel_id)
    return crud_funnel.get_funnel_products(db, funnel_id=funnel_id)

@router.post("/{funnel_id}/products", response_model=FunnelProductSchema, status_code=201)
def link_funnel_product(
    funnel_id: int,
    link_in: FunnelProductLink,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    _get_funnel_or_404(db, funnel_id)
    if not crud_product.get_product(db, product_id=link_in.product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return crud_funnel.add_funnel_product(db, funnel_id=funnel_id, product_id=link_in.product_id)

@router.delete("/{funnel_id}/products/{product_id}")
def unlink_funnel_product(
    funnel_id: int,
    product_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    deleted = crud_funnel.remove_funnel_product(db, funnel_id=funnel_id, product_id=product_id)
    return {"deleted": deleted}

@router.get("/{funnel_id}/sales-products", response_model=List[FunnelSalesProductSchema])
def read_funnel_sales_products(
    funnel_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    _get_funnel_or_404(db, funnel_id)
    return crud_funnel.get_funnel_sales_products(db, funnel_id=funnel_id)

@router.post("/{funnel_id}/sales-products", response_model=FunnelSalesProductSchema, status_code=201)
def link_funnel_sales_product(
    funnel_id: int,
    link_in: FunnelSalesProductLink,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Link a free-text sales product name. Sales without a product reference
    are attributed to the funnel when their name matches one of these.
    """
    _get_funnel_or_404(db, funnel_id)
    return crud_funnel.add_funnel_sales_product(db, funnel_id=funnel_id, product_name=link_in.product_name)

@router.delete("/{funnel_id}/sales-products/{link_id}")
def unlink_funnel_sales_product(
    funnel_id: int,
    link_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    deleted = crud_funnel.remove_funnel_sales_product(db, funnel_id=funnel_id, link_id=link_id)
    return {"deleted": deleted}

@router.get("/{funnel_id}/revenue", response_model=RevenueSummary)
def read_funnel_revenue(
    funnel_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    """
    Revenue attributed to the funnel in the window, compared with the window
    of the same length right before it (only when both dates are given).
    """
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    try:
        return revenue_matcher.get_funnel_revenue_cached(db, funnel_id, start_date, end_date)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.get("/{funnel_id}/matched-sales", response_model=List[MatchedSale])
def read_funnel_matched_sales(
    funnel_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    try:
        return revenue_matcher.get_funnel_matched_sales(db, funnel_id, start_date, end_date)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
