import pytest
from sqlalchemy.orm import Session
from decimal import Decimal

from opsdesk.crud import crud_strategic
from opsdesk.schemas.strategic import StrategicSessionCreate, QualificationCriterionCreate

pytestmark = pytest.mark.crud

SHEET_VALUES = [
    ["Nome", "E-mail", "WhatsApp", "Fonte", "Faturamento", "Lucro"],
    ["Ana Souza", "ana@example.com", "11999990000", "instagram", "20000", "5000"],
    ["", "", "", "", "8000", "12000"],
]

@pytest.fixture
def strategic_session(db_session: Session):
    session = crud_strategic.create_session(db_session, obj_in=StrategicSessionCreate(name="Sessão Estratégica Março"))
    crud_strategic.create_criterion(db_session, session_id=session.id, obj_in=QualificationCriterionCreate(
        field_name="faturamento", operator="greater_than", value="15000", weight=Decimal("2")
    ))
    crud_strategic.create_criterion(db_session, session_id=session.id, obj_in=QualificationCriterionCreate(
        field_name="lucro", operator="greater_than", value="10000", weight=Decimal("1")
    ))
    return session

def test_sync_creates_scored_leads(db_session: Session, strategic_session):
    result = crud_strategic.sync_lead_rows(db_session, session_id=strategic_session.id, spreadsheet_id="sheet1", values=SHEET_VALUES)
    assert (result.created, result.updated, result.total) == (2, 0, 2)

    ana, anonymous = crud_strategic.get_leads(db_session, session_id=strategic_session.id)
    assert ana.name == "Ana Souza"
    assert ana.email == "ana@example.com"
    assert ana.phone == "11999990000"
    assert ana.utm_source == "instagram"
    assert ana.source_row_id == "sheet1_row_1"
    assert ana.qualification_score == 67
    assert ana.is_qualified is True
    assert ana.extra_data["faturamento"] == "20000"

    assert anonymous.name == "Lead 2"
    assert anonymous.email is None
    assert anonymous.qualification_score == 33
    assert anonymous.is_qualified is False

def test_resync_updates_in_place(db_session: Session, strategic_session):
    crud_strategic.sync_lead_rows(db_session, session_id=strategic_session.id, spreadsheet_id="sheet1", values=SHEET_VALUES)
    changed = [SHEET_VALUES[0], ["Ana Souza", "ana@example.com", "", "", "1000", "1000"]]
    result = crud_strategic.sync_lead_rows(db_session, session_id=strategic_session.id, spreadsheet_id="sheet1", values=changed)
    assert (result.created, result.updated, result.total) == (0, 1, 1)

    leads = crud_strategic.get_leads(db_session, session_id=strategic_session.id)
    assert len(leads) == 2
    assert leads[0].qualification_score == 0
    assert leads[0].is_qualified is False

def test_sync_with_header_only(db_session: Session, strategic_session):
    result = crud_strategic.sync_lead_rows(db_session, session_id=strategic_session.id, spreadsheet_id="sheet1", values=[SHEET_VALUES[0]])
    assert (result.created, result.updated, result.total) == (0, 0, 0)

def test_recalculate_after_criteria_change(db_session: Session, strategic_session):
    crud_strategic.sync_lead_rows(db_session, session_id=strategic_session.id, spreadsheet_id="sheet1", values=SHEET_VALUES)
    for criterion in crud_strategic.get_criteria(db_session, session_id=strategic_session.id):
        if criterion.field_name == "faturamento":
            assert crud_strategic.delete_criterion(db_session, session_id=strategic_session.id, criterion_id=criterion.id) == 1

    result = crud_strategic.recalculate_session_scores(db_session, session_id=strategic_session.id)
    assert result.updated == 2
    assert result.qualified == 1

    qualified = crud_strategic.get_leads(db_session, session_id=strategic_session.id, qualified=True)
    assert [lead.name for lead in qualified] == ["Lead 2"]
    assert qualified[0].qualification_score == 100

def test_leads_without_criteria_have_no_score(db_session: Session):
    session = crud_strategic.create_session(db_session, obj_in=StrategicSessionCreate(name="Sem critérios"))
    crud_strategic.sync_lead_rows(db_session, session_id=session.id, spreadsheet_id="s", values=SHEET_VALUES)
    leads = crud_strategic.get_leads(db_session, session_id=session.id)
    assert all(lead.qualification_score is None and lead.is_qualified is False for lead in leads)

def test_sync_and_recalculate_score_aliased_columns_alike(db_session: Session):
    session = crud_strategic.create_session(db_session, obj_in=StrategicSessionCreate(name="Colunas padrão"))
    crud_strategic.create_criterion(db_session, session_id=session.id, obj_in=QualificationCriterionCreate(
        field_name="phone", operator="not_empty", weight=Decimal("1")
    ))
    crud_strategic.create_criterion(db_session, session_id=session.id, obj_in=QualificationCriterionCreate(
        field_name="name", operator="equals", value="lead 2", weight=Decimal("3")
    ))
    values = [["Nome", "Telefone"], ["Ana", "11999990000"], ["", ""]]
    crud_strategic.sync_lead_rows(db_session, session_id=session.id, spreadsheet_id="sheet2", values=values)

    synced = [(lead.qualification_score, lead.is_qualified) for lead in crud_strategic.get_leads(db_session, session_id=session.id)]
    assert synced == [(25, False), (75, True)]

    crud_strategic.recalculate_session_scores(db_session, session_id=session.id)
    recalculated = [(lead.qualification_score, lead.is_qualified) for lead in crud_strategic.get_leads(db_session, session_id=session.id)]
    assert recalculated == synced
