import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from opsdesk.core.utils import round_half_up, to_decimal

logger = logging.getLogger(__name__)

OPERATORS = ("equals", "contains", "greater_than", "less_than", "not_empty")

QUALIFIED_RATIO = Decimal("0.5")

LEAD_COLUMNS = ("name", "email", "phone", "utm_source", "utm_medium", "utm_campaign", "utm_content")


@dataclass(frozen=True)
class LeadScore:
    matched_weight: Decimal
    total_weight: Decimal
    score: Optional[int] # None when no criteria apply; 0 would read as "evaluated and failed"
    is_qualified: bool


# Leading decimal number of a value; trailing text is ignored ("15000 BRL" reads as 15000).
NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_number(value: str) -> Optional[float]:
    match = NUMBER_PREFIX.match(value.strip())
    return float(match.group()) if match else None


def evaluate_criterion(field_value: Any, operator: str, value: Any) -> bool:
    field_text = "" if field_value is None else str(field_value)
    expected = "" if value is None else str(value)

    if operator == "equals":
        return field_text.lower() == expected.lower()
    if operator == "contains":
        return expected.lower() in field_text.lower()
    if operator in ("greater_than", "less_than"):
        left, right = _parse_number(field_text), _parse_number(expected)
        if left is None or right is None:
            return False
        return left > right if operator == "greater_than" else left < right
    if operator == "not_empty":
        return field_text.strip() != ""

    logger.warning(f"Unknown qualification operator '{operator}'; criterion treated as not matched")
    return False


def score_lead(fields: Mapping[str, Any], criteria: Iterable) -> LeadScore:
    """
    Weighted evaluation of a lead against a session's criteria.

    fields is looked up case-insensitively by criterion.field_name. Pure and
    deterministic: sync-time scoring and batch recalculation must agree.
    """
    lookup = {str(key).strip().lower(): val for key, val in fields.items()}
    matched_weight = Decimal("0")
    total_weight = Decimal("0")

    for criterion in criteria:
        weight = to_decimal(criterion.weight)
        total_weight += weight
        field_value = lookup.get(criterion.field_name.strip().lower(), "")
        if evaluate_criterion(field_value, criterion.operator, criterion.value):
            matched_weight += weight

    if total_weight <= 0:
        return LeadScore(matched_weight=matched_weight, total_weight=total_weight, score=None, is_qualified=False)

    ratio = matched_weight / total_weight
    return LeadScore(
        matched_weight=matched_weight,
        total_weight=total_weight,
        score=round_half_up(ratio * 100),
        is_qualified=ratio >= QUALIFIED_RATIO,
    )


def merge_lead_fields(columns: Mapping[str, Any], extra_data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Field map scored for a lead: its column values, overlaid by the raw sheet row."""
    fields: Dict[str, Any] = {}
    for column in LEAD_COLUMNS:
        value = columns.get(column)
        if value is not None:
            fields[column] = value
    for key, value in (extra_data or {}).items():
        fields[str(key).lower()] = value
    return fields


def lead_fields(lead) -> Dict[str, Any]:
    columns = {column: getattr(lead, column, None) for column in LEAD_COLUMNS}
    return merge_lead_fields(columns, lead.extra_data)
