from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from ..core.db import Base, utcnow
from ..domain.state_machine import OrderStatus, PaymentStatus
from ..domain.constants import DEFAULT_PAYMENT_METHOD
from .mixins import in_list

class Order(Base):
    # ORDER is a reserved word in SQL
    __tablename__ = "SalesOrder"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    order_number     = Column(String(30), unique=True)
    customer_id      = Column(Integer, ForeignKey("Customer.id"), nullable=False, index=True)
    order_date       = Column(DateTime, nullable=False, default=utcnow, index=True)
    status           = Column(String(20), nullable=False, default=OrderStatus.PENDING)
    # fixed at creation, never recomputed from items
    total_amount     = Column(Numeric(12, 2), nullable=False)
    payment_status   = Column(String(20), nullable=False, default=PaymentStatus.PENDING)
    notes            = Column(String(1000))
    fulfillment_date = Column(DateTime)
    created_at       = Column(DateTime, nullable=False, default=utcnow)
    updated_at       = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(in_list("status", OrderStatus.all()), name="CK_Order_Status"),
        CheckConstraint(in_list("payment_status", PaymentStatus.all()), name="CK_Order_PaymentStatus"),
    )

    customer = relationship("Customer", back_populates="orders")
    items    = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )
    # demand list lines that may fulfil this order (DemandListItem.related_orders)
    demand_items = relationship(
        "DemandListItem",
        secondary="DemandItemOrder",
        back_populates="related_orders",
    )

    def item_for(self, product_id: int):
        return next((i for i in self.items if i.product_id == product_id), None)

    @property
    def total_paid(self):
        return sum((p.amount for p in self.payments), Decimal("0"))


class OrderItem(Base):
    __tablename__ = "OrderItem"

    id                 = Column(Integer, primary_key=True, autoincrement=True)
    order_id           = Column(Integer, ForeignKey("SalesOrder.id"), nullable=False, index=True)
    product_id         = Column(Integer, ForeignKey("Product.id"), nullable=False, index=True)
    quantity           = Column(Integer, nullable=False)
    # price snapshot at order time
    sell_price         = Column(Numeric(12, 2), nullable=False)
    fulfilled_quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="CK_OrderItem_Qty_Positive"),
        CheckConstraint("fulfilled_quantity >= 0", name="CK_OrderItem_Fulfilled_NonNeg"),
    )

    order   = relationship("Order", back_populates="items")
    product = relationship("Product")


class Payment(Base):
    __tablename__ = "OrderPayment"

    id        = Column(Integer, primary_key=True, autoincrement=True)
    order_id  = Column(Integer, ForeignKey("SalesOrder.id"), nullable=False, index=True)
    amount    = Column(Numeric(12, 2), nullable=False)
    date      = Column("paid_at", DateTime, nullable=False, default=utcnow)
    method    = Column(String(50), nullable=False, default=DEFAULT_PAYMENT_METHOD)
    reference = Column(String(200))

    __table_args__ = (
        CheckConstraint("amount > 0", name="CK_OrderPayment_Amount_Positive"),
    )

    order = relationship("Order", back_populates="payments")
