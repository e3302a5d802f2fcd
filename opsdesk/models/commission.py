from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from opsdesk.db.base_class import Base

class Commission(Base):
    __tablename__ = "commissions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # One live seller commission per installment; regeneration replaces the row.
    installment_id = Column(Integer, ForeignKey("installments.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    seller_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    installment_value = Column(Numeric(12, 2), nullable=False) # Copied from the installment at generation time
    commission_percent = Column(Numeric(5, 2), nullable=False) # Copied from the sale at generation time
    commission_value = Column(Numeric(12, 2), nullable=False)
    competence_month = Column(Date, nullable=False, index=True) # First day of the installment's due-date month

    status = Column(String(20), nullable=False, default="pending", index=True) # pending, released, suspended, cancelled
    released_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    installment = relationship("Installment", backref=backref("commissions", passive_deletes=True))
    seller = relationship("Profile")

    def __repr__(self):
        return f"<Commission(id={self.id}, installment_id={self.installment_id}, seller_id={self.seller_id}, value={self.commission_value}, status='{self.status}')>"
