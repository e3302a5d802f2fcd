from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opsdesk.db.base_class import Base

class Funnel(Base):
    __tablename__ = "funnels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True) # active, finished
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    products = relationship("FunnelProduct", back_populates="funnel", cascade="all, delete-orphan")
    sales_products = relationship("FunnelSalesProduct", back_populates="funnel", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Funnel(id={self.id}, name='{self.name}', status='{self.status}')>"


class FunnelProduct(Base):
    """Structured link between a funnel and a registered product."""
    __tablename__ = "funnel_products"
    __table_args__ = (UniqueConstraint("funnel_id", "product_id", name="uq_funnel_product"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    funnel_id = Column(Integer, ForeignKey("funnels.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    funnel = relationship("Funnel", back_populates="products")
    product = relationship("Product")


class FunnelSalesProduct(Base):
    """Free-text product name linked to a funnel, for sales recorded without a product reference."""
    __tablename__ = "funnel_sales_products"
    __table_args__ = (UniqueConstraint("funnel_id", "product_name", name="uq_funnel_sales_product"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    funnel_id = Column(Integer, ForeignKey("funnels.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    funnel = relationship("Funnel", back_populates="sales_products")
