import logging
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List

from opsdesk.core.cache import revenue_cache
from opsdesk.models.funnel import Funnel, FunnelProduct, FunnelSalesProduct
from opsdesk.schemas.funnel import FunnelCreate

logger = logging.getLogger(__name__)

def get_funnel(db: Session, funnel_id: int) -> Optional[Funnel]:
    return db.query(Funnel).filter(Funnel.id == funnel_id).first()

def get_funnels(db: Session, *, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Funnel]:
    query = db.query(Funnel)
    if status:
        query = query.filter(Funnel.status == status)
    return query.order_by(Funnel.created_at.desc(), Funnel.id.desc()).offset(skip).limit(limit).all()

def create_funnel(db: Session, *, obj_in: FunnelCreate) -> Funnel:
    db_obj = Funnel(**obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_funnel_products(db: Session, *, funnel_id: int) -> List[FunnelProduct]:
    return (
        db.query(FunnelProduct)
        .options(joinedload(FunnelProduct.product))
        .filter(FunnelProduct.funnel_id == funnel_id)
        .all()
    )

def add_funnel_product(db: Session, *, funnel_id: int, product_id: int) -> FunnelProduct:
    """Link a registered product to a funnel. Linking twice returns the existing link."""
    existing = (
        db.query(FunnelProduct)
        .filter(FunnelProduct.funnel_id == funnel_id, FunnelProduct.product_id == product_id)
        .first()
    )
    if existing:
        return existing
    db_obj = FunnelProduct(funnel_id=funnel_id, product_id=product_id)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    revenue_cache.invalidate_funnel(funnel_id)
    logger.info(f"Linked product ID: {product_id} to funnel ID: {funnel_id}")
    return db_obj

def remove_funnel_product(db: Session, *, funnel_id: int, product_id: int) -> int:
    deleted = (
        db.query(FunnelProduct)
        .filter(FunnelProduct.funnel_id == funnel_id, FunnelProduct.product_id == product_id)
        .delete(synchronize_session="fetch")
    )
    db.commit()
    revenue_cache.invalidate_funnel(funnel_id)
    return deleted

def get_funnel_sales_products(db: Session, *, funnel_id: int) -> List[FunnelSalesProduct]:
    return (
        db.query(FunnelSalesProduct)
        .filter(FunnelSalesProduct.funnel_id == funnel_id)
        .order_by(FunnelSalesProduct.product_name)
        .all()
    )

def add_funnel_sales_product(db: Session, *, funnel_id: int, product_name: str) -> FunnelSalesProduct:
    """Link a free-text sales product name (sales without a product reference) to a funnel."""
    product_name = product_name.strip()
    existing = (
        db.query(FunnelSalesProduct)
        .filter(FunnelSalesProduct.funnel_id == funnel_id, FunnelSalesProduct.product_name == product_name)
        .first()
    )
    if existing:
        return existing
    db_obj = FunnelSalesProduct(funnel_id=funnel_id, product_name=product_name)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    revenue_cache.invalidate_funnel(funnel_id)
    logger.info(f"Linked sales product name '{product_name}' to funnel ID: {funnel_id}")
    return db_obj

def remove_funnel_sales_product(db: Session, *, funnel_id: int, link_id: int) -> int:
    deleted = (
        db.query(FunnelSalesProduct)
        .filter(FunnelSalesProduct.funnel_id == funnel_id, FunnelSalesProduct.id == link_id)
        .delete(synchronize_session="fetch")
    )
    db.commit()
    revenue_cache.invalidate_funnel(funnel_id)
    return deleted
