import pytest
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal

from opsdesk.core import revenue_matcher
from opsdesk.core.cache import FunnelRevenueKey, ViewCache
from opsdesk.core.exceptions import NotFoundError
from opsdesk.core.revenue_matcher import (
    compute_growth,
    get_funnel_matched_sales,
    get_funnel_revenue,
    get_funnel_revenue_cached,
    matches_product_name,
    previous_period,
    product_keywords,
)
from opsdesk.crud import crud_funnel, crud_product, crud_sale
from opsdesk.schemas.funnel import FunnelCreate
from opsdesk.schemas.product import ProductCreate

pytestmark = pytest.mark.core

def test_matches_product_name_ignores_years_and_program_labels():
    assert matches_product_name("Ciclo MBA Avançado 2024", "MBA Avançado") is True
    assert matches_product_name("Curso de Vendas", "MBA Avançado") is False

def test_matches_product_name_is_order_and_case_insensitive():
    assert matches_product_name("AVANÇADO - Gestão de Vendas", "Vendas Gestão Avançado") is True

def test_product_name_without_keywords_matches_nothing():
    assert product_keywords("MBA 2024") == []
    assert matches_product_name("MBA 2024", "MBA 2024") is False
    assert matches_product_name("Anything", None) is False

def test_previous_period_has_same_length_and_ends_before_start():
    assert previous_period(date(2024, 3, 1), date(2024, 3, 31)) == (date(2024, 1, 30), date(2024, 2, 29))
    assert previous_period(date(2024, 5, 10), date(2024, 5, 10)) == (date(2024, 5, 9), date(2024, 5, 9))

def test_growth_without_baseline_is_undefined():
    growth = compute_growth(Decimal("500"), Decimal("0"))
    assert growth.defined is False
    assert growth.as_percent() == 0

def test_growth_rounds_half_up():
    assert compute_growth(Decimal("150"), Decimal("100")).percent == 50
    assert compute_growth(Decimal("50"), Decimal("100")).percent == -50
    # 1/3 growth -> 33.33 -> 33
    assert compute_growth(Decimal("400"), Decimal("300")).percent == 33


@pytest.fixture
def funnel_with_course(db_session: Session):
    course_x = crud_product.create_product(db_session, obj_in=ProductCreate(name="Curso X"))
    course_y = crud_product.create_product(db_session, obj_in=ProductCreate(name="Curso Y"))
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Lançamento Curso X"))
    crud_funnel.add_funnel_product(db_session, funnel_id=funnel.id, product_id=course_x.id)
    return funnel, course_x, course_y

def test_revenue_counts_only_sales_of_linked_products(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, course_y = funnel_with_course
    make_sale(product_id=course_x.id, product_name="CURSO X - TURMA 2025", total_value=Decimal("100"), installments_count=1, sale_date=date(2024, 2, 10))
    make_sale(product_id=course_y.id, product_name="Curso Y", total_value=Decimal("200"), installments_count=1, sale_date=date(2024, 2, 11))

    summary = get_funnel_revenue(db_session, funnel.id, date(2024, 2, 1), date(2024, 2, 29))
    assert summary.total == Decimal("100")
    assert summary.count == 1

def test_revenue_matches_free_text_sales_by_name(db_session: Session, make_sale):
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="MBA"))
    crud_funnel.add_funnel_sales_product(db_session, funnel_id=funnel.id, product_name="MBA Avançado")
    make_sale(product_name="Ciclo MBA Avançado 2024", total_value=Decimal("250"), installments_count=1)
    make_sale(product_name="Curso de Vendas", total_value=Decimal("900"), installments_count=1)

    matched = get_funnel_matched_sales(db_session, funnel.id)
    assert len(matched) == 1
    assert matched[0].matched_by == "MBA Avançado"
    assert matched[0].total_value == Decimal("250")

def test_revenue_skips_cancelled_sales(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, _ = funnel_with_course
    sale = make_sale(product_id=course_x.id, total_value=Decimal("100"), installments_count=1)
    crud_sale.cancel_sale(db_session, db_obj=sale)

    summary = get_funnel_revenue(db_session, funnel.id)
    assert summary.total == Decimal("0")
    assert summary.count == 0

def test_revenue_compares_with_previous_window(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, _ = funnel_with_course
    make_sale(product_id=course_x.id, total_value=Decimal("200"), installments_count=1, sale_date=date(2024, 1, 20))
    make_sale(product_id=course_x.id, total_value=Decimal("300"), installments_count=1, sale_date=date(2024, 2, 5))

    summary = get_funnel_revenue(db_session, funnel.id, date(2024, 2, 1), date(2024, 2, 29))
    assert summary.total == Decimal("300")
    assert summary.previous_total == Decimal("200")
    assert summary.previous_count == 1
    assert summary.growth_defined is True
    assert summary.growth_percent == 50

def test_revenue_without_baseline_reports_undefined_growth(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, _ = funnel_with_course
    make_sale(product_id=course_x.id, total_value=Decimal("500"), installments_count=1, sale_date=date(2024, 2, 5))

    summary = get_funnel_revenue(db_session, funnel.id, date(2024, 2, 1), date(2024, 2, 29))
    assert summary.total == Decimal("500")
    assert summary.growth_percent == 0
    assert summary.growth_defined is False

def test_funnel_without_links_has_zero_revenue(db_session: Session, make_sale):
    funnel = crud_funnel.create_funnel(db_session, obj_in=FunnelCreate(name="Empty"))
    make_sale(product_name="Qualquer Curso", installments_count=1)
    summary = get_funnel_revenue(db_session, funnel.id)
    assert summary.total == Decimal("0")
    assert summary.count == 0
    assert get_funnel_matched_sales(db_session, funnel.id) == []

def test_unknown_funnel_raises_not_found(db_session: Session):
    with pytest.raises(NotFoundError):
        get_funnel_revenue(db_session, 999)

def test_cached_revenue_is_reused_until_invalidated(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, _ = funnel_with_course
    cache = ViewCache()
    make_sale(product_id=course_x.id, total_value=Decimal("100"), installments_count=1)

    first = get_funnel_revenue_cached(db_session, funnel.id, cache=cache)
    assert first.total == Decimal("100")
    assert cache.get(FunnelRevenueKey(funnel_id=funnel.id)) is first

    make_sale(product_id=course_x.id, total_value=Decimal("50"), installments_count=1)
    # A private cache is not touched by the sale mutation, so the old view is served
    assert get_funnel_revenue_cached(db_session, funnel.id, cache=cache).total == Decimal("100")

    assert cache.invalidate_funnel(funnel.id) == 1
    assert get_funnel_revenue_cached(db_session, funnel.id, cache=cache).total == Decimal("150")

def test_sale_creation_invalidates_shared_revenue_cache(db_session: Session, make_sale, funnel_with_course):
    funnel, course_x, _ = funnel_with_course
    make_sale(product_id=course_x.id, total_value=Decimal("100"), installments_count=1)
    assert get_funnel_revenue_cached(db_session, funnel.id).total == Decimal("100")
    assert len(revenue_matcher.revenue_cache) == 1

    make_sale(product_id=course_x.id, total_value=Decimal("40"), installments_count=1)
    assert len(revenue_matcher.revenue_cache) == 0
    assert get_funnel_revenue_cached(db_session, funnel.id).total == Decimal("140")
