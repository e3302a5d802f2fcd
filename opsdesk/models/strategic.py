from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opsdesk.db.base_class import Base

class StrategicSession(Base):
    __tablename__ = "strategic_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    google_sheet_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    leads = relationship("StrategicLead", back_populates="session", cascade="all, delete-orphan")
    criteria = relationship("QualificationCriterion", back_populates="session", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<StrategicSession(id={self.id}, name='{self.name}')>"


class StrategicLead(Base):
    __tablename__ = "strategic_leads"
    # Re-syncing the same sheet row updates the lead instead of duplicating it.
    __table_args__ = (UniqueConstraint("session_id", "source_row_id", name="uq_strategic_lead_source_row"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("strategic_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    stage = Column(String(20), nullable=False, default="lead", index=True) # lead, qualificado, agendado, realizado, venda

    utm_source = Column(String(255), nullable=True)
    utm_medium = Column(String(255), nullable=True)
    utm_campaign = Column(String(255), nullable=True)
    utm_content = Column(String(255), nullable=True)

    is_qualified = Column(Boolean, nullable=False, default=False)
    qualification_score = Column(Integer, nullable=True) # 0-100, NULL when the session has no criteria
    extra_data = Column(JSON, nullable=False, default=dict)
    source_row_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    session = relationship("StrategicSession", back_populates="leads")

    def __repr__(self):
        return f"<StrategicLead(id={self.id}, session_id={self.session_id}, name='{self.name}', score={self.qualification_score})>"


class QualificationCriterion(Base):
    __tablename__ = "strategic_qualification_criteria"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("strategic_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(255), nullable=False)
    operator = Column(String(20), nullable=False) # equals, contains, greater_than, less_than, not_empty
    value = Column(Text, nullable=False, default="")
    weight = Column(Numeric(8, 2), nullable=False, default=1)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    session = relationship("StrategicSession", back_populates="criteria")

    def __repr__(self):
        return f"<QualificationCriterion(id={self.id}, field='{self.field_name}', operator='{self.operator}', weight={self.weight})>"
