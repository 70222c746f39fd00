from sqlalchemy import Column, Integer, String, DateTime, Numeric, CheckConstraint, text
from sqlalchemy.orm import relationship
from ..core.db import Base, utcnow
from .mixins import AddressMixin

class Supplier(AddressMixin, Base):
    __tablename__ = "Supplier"

    id                 = Column(Integer, primary_key=True, autoincrement=True)
    name               = Column(String(200), nullable=False)
    contact_person     = Column(String(200))
    email              = Column(String(200))
    phone              = Column(String(50))
    reliability_rating = Column(Numeric(3, 2), nullable=False, server_default=text("3"), default=3)
    payment_terms      = Column(String(200))
    notes              = Column(String(1000))
    created_at         = Column(DateTime, nullable=False, default=utcnow)
    updated_at         = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("reliability_rating >= 0 AND reliability_rating <= 5", name="CK_Supplier_Reliability"),
    )

    product_links = relationship("ProductSupplier", back_populates="supplier")
    demand_lists  = relationship("DemandList", back_populates="supplier")
