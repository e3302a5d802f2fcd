from sqlalchemy.orm import Session
from typing import Optional, List

from opsdesk.core.cache import revenue_cache
from opsdesk.models.product import Product
from opsdesk.schemas.product import ProductCreate, ProductUpdate

def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()

def get_products(
    db: Session, *, is_active: Optional[bool] = None, skip: int = 0, limit: int = 100
) -> List[Product]:
    """
    Get products ordered by name.
    Can filter by active status. If is_active is None, returns all.
    """
    query = db.query(Product)
    if is_active is not None:
        query = query.filter(Product.is_active == is_active)
    return query.order_by(Product.name).offset(skip).limit(limit).all()

def create_product(db: Session, *, obj_in: ProductCreate) -> Product:
    db_obj = Product(**obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def update_product(db: Session, *, db_obj: Product, obj_in: ProductUpdate) -> Product:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    if "name" in update_data:
        # Product names feed name matching for every funnel linked to the product
        revenue_cache.invalidate_all_funnels()
    return db_obj
