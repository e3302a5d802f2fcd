from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.crud import crud_product
from opsdesk.schemas.product import Product as ProductSchema, ProductCreate, ProductUpdate
from opsdesk.db.session import get_db
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.models.user import Profile as ProfileModel

router = APIRouter()

@router.post("/", response_model=ProductSchema, status_code=201)
def create_product(
    product_in: ProductCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Register a product. Requires superuser privileges.
    """
    return crud_product.create_product(db=db, obj_in=product_in)

@router.get("/", response_model=List[ProductSchema])
def read_products(
    db: Session = Depends(get_db),
    is_active: Optional[bool] = Query(None, description="Filter by active status. Omit to get all."),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return crud_product.get_products(db=db, is_active=is_active, skip=skip, limit=limit)

@router.get("/{product_id}", response_model=ProductSchema)
def read_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    db_product = crud_product.get_product(db, product_id=product_id)
    if not db_product:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product

@router.put("/{product_id}", response_model=ProductSchema)
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    db_product = crud_product.get_product(db, product_id=product_id)
    if not db_product:
        raise HTTPException(status_code=404, detail="Product not found")
    return crud_product.update_product(db=db, db_obj=db_product, obj_in=product_in)
