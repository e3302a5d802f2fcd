import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from opsdesk.core.cache import FunnelRevenueKey, revenue_cache
from opsdesk.core.revenue_matcher import get_funnel_revenue_cached
from opsdesk.crud import crud_funnel, crud_product
from opsdesk.schemas.funnel import FunnelCreate, RevenueSummary
from opsdesk.schemas.product import ProductUpdate

pytestmark = pytest.mark.crud

def _cached_summary() -> RevenueSummary:
    return RevenueSummary(total=0, count=0, previous_total=0, previous_count=0, growth_percent=0, growth_defined=False)

def test_create_and_filter_funnels(db_session: Session):
    active = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Black Friday", category="lançamento"))
    crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Perpétuo 2023", status="finished"))
    assert [f.id for f in crud_funnel.get_funnels(db_session, status="active")] == [active.id]
    assert len(crud_funnel.get_funnels(db_session)) == 2

def test_link_product_is_idempotent_and_invalidates_cache(db_session: Session, test_product):
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Funil"))
    revenue_cache.set(FunnelRevenueKey(funnel_id=funnel.id), _cached_summary())

    link = crud_funnel.add_funnel_product(db_session, funnel_id=funnel.id, product_id=test_product.id)
    assert revenue_cache.get(FunnelRevenueKey(funnel_id=funnel.id)) is None
    again = crud_funnel.add_funnel_product(db_session, funnel_id=funnel.id, product_id=test_product.id)
    assert again.id == link.id

    products = crud_funnel.get_funnel_products(db_session, funnel_id=funnel.id)
    assert [p.product.name for p in products] == [test_product.name]
    assert crud_funnel.remove_funnel_product(db_session, funnel_id=funnel.id, product_id=test_product.id) == 1
    assert crud_funnel.get_funnel_products(db_session, funnel_id=funnel.id) == []

def test_sales_product_names_are_stripped_and_unique(db_session: Session):
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Funil"))
    other = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Outro"))
    revenue_cache.set(FunnelRevenueKey(funnel_id=other.id), _cached_summary())

    link = crud_funnel.add_funnel_sales_product(db_session, funnel_id=funnel.id, product_name="  MBA Avançado ")
    assert link.product_name == "MBA Avançado"
    assert crud_funnel.add_funnel_sales_product(db_session, funnel_id=funnel.id, product_name="MBA Avançado").id == link.id
    # Only the touched funnel loses its cached views
    assert revenue_cache.get(FunnelRevenueKey(funnel_id=other.id)) is not None

    assert crud_funnel.remove_funnel_sales_product(db_session, funnel_id=other.id, link_id=link.id) == 0
    assert crud_funnel.remove_funnel_sales_product(db_session, funnel_id=funnel.id, link_id=link.id) == 1

def test_product_rename_refreshes_cached_revenue(db_session: Session, test_product, make_sale):
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Oratória"))
    crud_funnel.add_funnel_product(db_session, funnel_id=funnel.id, product_id=test_product.id)
    make_sale(product_name="Imersao Lideranca", total_value=Decimal("100.00"), installments_count=1)

    assert get_funnel_revenue_cached(db_session, funnel.id).total == Decimal("0")

    crud_product.update_product(db_session, db_obj=test_product, obj_in=ProductUpdate(name="Imersao Lideranca"))
    assert get_funnel_revenue_cached(db_session, funnel.id).total == Decimal("100.00")
