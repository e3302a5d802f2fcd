from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opsdesk.db.base_class import Base

class SDRAssignment(Base):
    __tablename__ = "sdr_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # Exactly one claimant per sale, enforced here and surfaced as a duplicate error.
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    sdr_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    proof_link = Column(String(500), nullable=False)
    commission_percent = Column(Numeric(5, 2), nullable=False, default=1)

    status = Column(String(20), nullable=False, default="pending", index=True) # pending, approved, rejected
    approved_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    sale = relationship("Sale")
    sdr = relationship("Profile", foreign_keys=[sdr_id])
    approver = relationship("Profile", foreign_keys=[approved_by])
    commissions = relationship("SDRCommission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SDRAssignment(id={self.id}, sale_id={self.sale_id}, sdr_id={self.sdr_id}, status='{self.status}')>"


class SDRCommission(Base):
    __tablename__ = "sdr_commissions"
    __table_args__ = (UniqueConstraint("sdr_assignment_id", "installment_id", name="uq_sdr_commission_installment"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sdr_assignment_id = Column(Integer, ForeignKey("sdr_assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_id = Column(Integer, ForeignKey("installments.id", ondelete="CASCADE"), nullable=False, index=True)
    sdr_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    installment_value = Column(Numeric(12, 2), nullable=False)
    commission_percent = Column(Numeric(5, 2), nullable=False)
    commission_value = Column(Numeric(12, 2), nullable=False)
    competence_month = Column(Date, nullable=False, index=True)

    status = Column(String(20), nullable=False, default="pending", index=True) # pending, released, suspended, cancelled
    released_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    assignment = relationship("SDRAssignment", back_populates="commissions")
    installment = relationship("Installment")
    sdr = relationship("Profile")

    def __repr__(self):
        return f"<SDRCommission(id={self.id}, assignment_id={self.sdr_assignment_id}, installment_id={self.installment_id}, value={self.commission_value})>"
