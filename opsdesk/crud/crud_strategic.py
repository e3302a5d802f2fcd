import logging
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Sequence

from opsdesk.core.lead_scoring import lead_fields, merge_lead_fields, score_lead
from opsdesk.models.strategic import StrategicSession, StrategicLead, QualificationCriterion
from opsdesk.schemas.strategic import (
    StrategicSessionCreate,
    QualificationCriterionCreate,
    LeadSyncResult,
    LeadRecalculateResult,
)

logger = logging.getLogger(__name__)

# Sheet header aliases per lead column, first non-empty wins.
HEADER_ALIASES = {
    "name": ("nome", "name", "lead"),
    "email": ("email", "e-mail"),
    "phone": ("telefone", "phone", "whatsapp"),
    "utm_source": ("utm_source", "fonte"),
    "utm_medium": ("utm_medium",),
    "utm_campaign": ("utm_campaign", "campanha"),
    "utm_content": ("utm_content",),
}

def get_session(db: Session, session_id: int) -> Optional[StrategicSession]:
    return db.query(StrategicSession).filter(StrategicSession.id == session_id).first()

def get_sessions(db: Session, *, skip: int = 0, limit: int = 100) -> List[StrategicSession]:
    return db.query(StrategicSession).order_by(StrategicSession.created_at.desc()).offset(skip).limit(limit).all()

def create_session(db: Session, *, obj_in: StrategicSessionCreate) -> StrategicSession:
    db_obj = StrategicSession(**obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_criteria(db: Session, *, session_id: int) -> List[QualificationCriterion]:
    return (
        db.query(QualificationCriterion)
        .filter(QualificationCriterion.session_id == session_id)
        .order_by(QualificationCriterion.id)
        .all()
    )

def create_criterion(db: Session, *, session_id: int, obj_in: QualificationCriterionCreate) -> QualificationCriterion:
    db_obj = QualificationCriterion(session_id=session_id, **obj_in.model_dump())
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def delete_criterion(db: Session, *, session_id: int, criterion_id: int) -> int:
    deleted = (
        db.query(QualificationCriterion)
        .filter(QualificationCriterion.id == criterion_id, QualificationCriterion.session_id == session_id)
        .delete(synchronize_session="fetch")
    )
    db.commit()
    return deleted

def get_leads(
    db: Session, *, session_id: int, qualified: Optional[bool] = None, skip: int = 0, limit: int = 500
) -> List[StrategicLead]:
    query = db.query(StrategicLead).filter(StrategicLead.session_id == session_id)
    if qualified is not None:
        query = query.filter(StrategicLead.is_qualified == qualified)
    return query.order_by(StrategicLead.id).offset(skip).limit(limit).all()

def _row_to_dict(headers: Sequence[str], row: Sequence[str]) -> Dict[str, str]:
    return {header: (row[idx] if idx < len(row) and row[idx] else "") for idx, header in enumerate(headers)}

def _first_alias(row_data: Dict[str, str], column: str) -> Optional[str]:
    for alias in HEADER_ALIASES[column]:
        if row_data.get(alias):
            return row_data[alias]
    return None

def sync_lead_rows(db: Session, *, session_id: int, spreadsheet_id: str, values: List[List[str]]) -> LeadSyncResult:
    """
    Upsert the leads of a session from sheet values (header row first).

    Rows are keyed by "{spreadsheet_id}_row_{i}", so re-syncing the same sheet
    updates the leads in place. Each lead is scored as its row is read.
    """
    if len(values) < 2:
        return LeadSyncResult(created=0, updated=0, total=0)

    headers = [str(h).strip().lower() for h in values[0]]
    criteria = get_criteria(db, session_id=session_id)
    created = updated = 0

    for i, row in enumerate(values[1:], start=1):
        row_data = _row_to_dict(headers, row)
        source_row_id = f"{spreadsheet_id}_row_{i}"

        lead_data = {column: _first_alias(row_data, column) for column in HEADER_ALIASES}
        lead_data["name"] = lead_data["name"] or f"Lead {i}"
        result = score_lead(merge_lead_fields(lead_data, row_data), criteria)
        lead_data.update(
            is_qualified=result.is_qualified,
            qualification_score=result.score,
            extra_data=row_data,
        )

        existing = (
            db.query(StrategicLead)
            .filter(StrategicLead.session_id == session_id, StrategicLead.source_row_id == source_row_id)
            .first()
        )
        if existing:
            for field, value in lead_data.items():
                setattr(existing, field, value)
            updated += 1
        else:
            db.add(StrategicLead(session_id=session_id, source_row_id=source_row_id, stage="lead", **lead_data))
            created += 1

    db.commit()
    logger.info(f"Synced session ID: {session_id} from sheet {spreadsheet_id}: {created} created, {updated} updated")
    return LeadSyncResult(created=created, updated=updated, total=len(values) - 1)

def recalculate_session_scores(db: Session, *, session_id: int) -> LeadRecalculateResult:
    """Rescore every lead of a session against its current criteria."""
    criteria = get_criteria(db, session_id=session_id)
    leads = db.query(StrategicLead).filter(StrategicLead.session_id == session_id).all()

    qualified = 0
    for lead in leads:
        result = score_lead(lead_fields(lead), criteria)
        lead.qualification_score = result.score
        lead.is_qualified = result.is_qualified
        if result.is_qualified:
            qualified += 1
    db.commit()
    logger.info(f"Recalculated {len(leads)} lead score(s) for session ID: {session_id}; {qualified} qualified")
    return LeadRecalculateResult(updated=len(leads), qualified=qualified)
