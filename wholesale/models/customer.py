from sqlalchemy import Column, Integer, String, DateTime, Numeric, CheckConstraint, text
from sqlalchemy.orm import relationship
from ..core.db import Base, utcnow
from .mixins import AddressMixin

class Customer(AddressMixin, Base):
    __tablename__ = "Customer"

    id                  = Column(Integer, primary_key=True, autoincrement=True)
    name                = Column(String(200), nullable=False)
    store_id            = Column(String(50), unique=True)
    contact_person      = Column(String(200))
    email               = Column(String(200))
    phone               = Column(String(50))
    payment_terms       = Column(String(200))
    credit_limit        = Column(Numeric(12, 2), nullable=False, server_default=text("0"), default=0)
    # signed: overpayment may push it below zero
    outstanding_balance = Column(Numeric(12, 2), nullable=False, server_default=text("0"), default=0)
    notes               = Column(String(1000))
    created_at          = Column(DateTime, nullable=False, default=utcnow)
    updated_at          = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("credit_limit >= 0", name="CK_Customer_CreditLimit_NonNeg"),
    )

    orders       = relationship("Order", back_populates="customer")
    price_links  = relationship("ProductCustomerPrice", back_populates="customer")
