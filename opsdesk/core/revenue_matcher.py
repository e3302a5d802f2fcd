"""
Revenue attribution for funnels.

A sale belongs to a funnel when its product reference is one of the funnel's
linked products, or, for sales recorded without a product reference, when
its free-text product name matches one of the funnel's product names.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from opsdesk.core.cache import FunnelRevenueKey, ViewCache, revenue_cache
from opsdesk.core.exceptions import NotFoundError
from opsdesk.core.utils import round_half_up
from opsdesk.models.funnel import Funnel, FunnelProduct, FunnelSalesProduct
from opsdesk.models.product import Product
from opsdesk.models.sale import Sale
from opsdesk.schemas.funnel import MatchedSale, RevenueSummary

logger = logging.getLogger(__name__)

# Tokens too generic to identify a product: edition years and program labels.
IGNORED_WORDS = frozenset({"2023", "2024", "2025", "2026", "2027", "2028", "mba", "ciclo"})

_SEPARATORS_RE = re.compile("[\n\r\\-–—]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_product_text(text: Optional[str]) -> str:
    lowered = _SEPARATORS_RE.sub(" ", (text or "").lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def product_keywords(product_name: Optional[str]) -> List[str]:
    return [
        word for word in normalize_product_text(product_name).split()
        if len(word) > 2 and word not in IGNORED_WORDS
    ]


def matches_product_name(sale_name: Optional[str], product_name: Optional[str]) -> bool:
    """
    True when every keyword of product_name occurs in sale_name, in any order.
    A product name with no keywords left after filtering matches nothing.
    """
    keywords = product_keywords(product_name)
    if not keywords:
        return False
    normalized_sale = normalize_product_text(sale_name)
    return all(keyword in normalized_sale for keyword in keywords)


@dataclass(frozen=True)
class Growth:
    """Period-over-period growth. percent is None when there is no baseline revenue."""
    percent: Optional[int]

    @classmethod
    def undefined(cls) -> "Growth":
        return cls(None)

    @property
    def defined(self) -> bool:
        return self.percent is not None

    def as_percent(self) -> int:
        return self.percent if self.percent is not None else 0


def compute_growth(total: Decimal, previous_total: Decimal) -> Growth:
    if not previous_total or previous_total <= 0:
        return Growth.undefined()
    return Growth(round_half_up((Decimal(total) - Decimal(previous_total)) / Decimal(previous_total) * 100))


def previous_period(start_date: date, end_date: date) -> Tuple[date, date]:
    """The window with the same number of days as [start_date, end_date], ending the day before start_date."""
    period_days = (end_date - start_date).days
    previous_end = start_date - timedelta(days=1)
    previous_start = previous_end - timedelta(days=period_days)
    return previous_start, previous_end


@dataclass
class FunnelProductLinks:
    product_names_by_id: Dict[int, str]
    product_names: List[str]

    @property
    def is_empty(self) -> bool:
        return not self.product_names_by_id and not self.product_names


def load_funnel_links(db: Session, funnel_id: int) -> FunnelProductLinks:
    if db.query(Funnel.id).filter(Funnel.id == funnel_id).first() is None:
        raise NotFoundError(f"Funnel {funnel_id} not found")

    linked = (
        db.query(FunnelProduct.product_id, Product.name)
        .join(Product, Product.id == FunnelProduct.product_id)
        .filter(FunnelProduct.funnel_id == funnel_id)
        .all()
    )
    free_text = (
        db.query(FunnelSalesProduct.product_name)
        .filter(FunnelSalesProduct.funnel_id == funnel_id)
        .all()
    )
    names_by_id = {product_id: name for product_id, name in linked}
    # Registered product names also match sales that only carry a product name
    names = [name for name in names_by_id.values() if name]
    names.extend(row[0] for row in free_text if row[0])
    return FunnelProductLinks(product_names_by_id=names_by_id, product_names=names)


def attribute_sales(sales: Iterable[Sale], links: FunnelProductLinks) -> List[Tuple[Sale, str]]:
    """
    Returns (sale, matched_by) for every sale attributed to the funnel, in input order.

    A sale carrying a product_id is attributed by that id only. Name matching
    applies to sales recorded without a product reference.
    """
    attributed = []
    for sale in sales:
        if sale.product_id is not None:
            if sale.product_id in links.product_names_by_id:
                attributed.append((sale, links.product_names_by_id[sale.product_id] or "Registered product"))
            continue
        if not sale.product_name:
            continue
        for product_name in links.product_names:
            if matches_product_name(sale.product_name, product_name):
                attributed.append((sale, product_name))
                break
    return attributed


def _active_sales(db: Session, start_date: Optional[date], end_date: Optional[date]) -> List[Sale]:
    query = db.query(Sale).filter(Sale.status == "active")
    if start_date:
        query = query.filter(Sale.sale_date >= start_date)
    if end_date:
        query = query.filter(Sale.sale_date <= end_date)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()


def _totals(attributed: Sequence[Tuple[Sale, str]]) -> Tuple[Decimal, int]:
    total = sum((Decimal(sale.total_value or 0) for sale, _ in attributed), Decimal("0"))
    return total, len(attributed)


def get_funnel_revenue(
    db: Session, funnel_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> RevenueSummary:
    links = load_funnel_links(db, funnel_id)
    if links.is_empty:
        logger.info(f"Funnel ID: {funnel_id} has no linked products. Revenue is zero.")
        return RevenueSummary(
            total=Decimal("0"), count=0, previous_total=Decimal("0"), previous_count=0,
            growth_percent=0, growth_defined=False,
        )

    total, count = _totals(attribute_sales(_active_sales(db, start_date, end_date), links))

    previous_total, previous_count = Decimal("0"), 0
    if start_date and end_date:
        previous_start, previous_end = previous_period(start_date, end_date)
        previous_total, previous_count = _totals(
            attribute_sales(_active_sales(db, previous_start, previous_end), links)
        )

    growth = compute_growth(total, previous_total)
    logger.info(
        f"Funnel ID: {funnel_id} revenue {total} ({count} sales), previous {previous_total} "
        f"({previous_count} sales), growth {growth.percent if growth.defined else 'n/a'}"
    )
    return RevenueSummary(
        total=total,
        count=count,
        previous_total=previous_total,
        previous_count=previous_count,
        growth_percent=growth.as_percent(),
        growth_defined=growth.defined,
    )


def get_funnel_revenue_cached(
    db: Session,
    funnel_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    cache: ViewCache = revenue_cache,
) -> RevenueSummary:
    key = FunnelRevenueKey(funnel_id=funnel_id, start_date=start_date, end_date=end_date)
    cached = cache.get(key)
    if cached is not None:
        return cached
    summary = get_funnel_revenue(db, funnel_id, start_date, end_date)
    cache.set(key, summary)
    return summary


def get_funnel_matched_sales(
    db: Session, funnel_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> List[MatchedSale]:
    links = load_funnel_links(db, funnel_id)
    if links.is_empty:
        return []
    return [
        MatchedSale(
            id=sale.id,
            product_name=sale.product_name,
            total_value=sale.total_value or Decimal("0"),
            sale_date=sale.sale_date,
            client_name=sale.client_name,
            matched_by=matched_by,
        )
        for sale, matched_by in attribute_sales(_active_sales(db, start_date, end_date), links)
    ]
