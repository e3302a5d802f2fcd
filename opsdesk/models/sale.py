from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opsdesk.db.base_class import Base

class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    external_id = Column(String(255), nullable=False, unique=True, index=True) # Source platform transaction id
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True, index=True)
    client_phone = Column(String(50), nullable=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    product_name = Column(String(255), nullable=True)

    total_value = Column(Numeric(12, 2), nullable=False)
    installments_count = Column(Integer, nullable=False, default=1)
    sale_date = Column(Date, nullable=False, index=True)
    platform = Column(String(50), nullable=False, default="manual")
    payment_type = Column(String(50), nullable=True)
    proof_link = Column(String(500), nullable=True)

    status = Column(String(20), nullable=False, default="active", index=True) # active, cancelled
    seller_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    commission_percent = Column(Numeric(5, 2), nullable=True)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    product = relationship("Product")
    seller = relationship("Profile", foreign_keys=[seller_id])
    installments = relationship(
        "Installment",
        back_populates="sale",
        order_by="Installment.installment_number",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, external_id='{self.external_id}', total_value={self.total_value}, status='{self.status}')>"


class Installment(Base):
    __tablename__ = "installments"
    __table_args__ = (UniqueConstraint("sale_id", "installment_number", name="uq_installment_sale_number"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=False)
    value = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    payment_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True) # pending, paid, overdue, cancelled, refunded

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    sale = relationship("Sale", back_populates="installments")

    def __repr__(self):
        return f"<Installment(id={self.id}, sale_id={self.sale_id}, number={self.installment_number}/{self.total_installments}, status='{self.status}')>"
