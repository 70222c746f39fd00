from sqlalchemy import (
    Table, Column, Integer, String, DateTime, Numeric, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from ..core.db import Base, utcnow
from ..domain.state_machine import DemandListStatus, DemandItemStatus
from .mixins import in_list

# DemandListItem.related_orders <-> Order.demand_items
demand_item_orders = Table(
    "DemandItemOrder",
    Base.metadata,
    Column("demand_item_id", Integer, ForeignKey("DemandListItem.id"), primary_key=True),
    Column("order_id",       Integer, ForeignKey("SalesOrder.id"),     primary_key=True),
)

class DemandList(Base):
    __tablename__ = "DemandList"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    supplier_id      = Column(Integer, ForeignKey("Supplier.id"), nullable=False, index=True)
    demand_date      = Column(DateTime, nullable=False, default=utcnow)
    status           = Column(String(20), nullable=False, default=DemandListStatus.DRAFT)
    estimated_total  = Column(Numeric(12, 2), nullable=False)
    notes            = Column(String(1000))
    fulfillment_date = Column(DateTime)
    created_at       = Column(DateTime, nullable=False, default=utcnow)
    updated_at       = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(in_list("status", DemandListStatus.all()), name="CK_DemandList_Status"),
    )

    supplier = relationship("Supplier", back_populates="demand_lists")
    items    = relationship(
        "DemandListItem",
        back_populates="demand_list",
        cascade="all, delete-orphan",
        order_by="DemandListItem.id",
    )

    def item_for(self, product_id: int):
        return next((i for i in self.items if i.product_id == product_id), None)


class DemandListItem(Base):
    __tablename__ = "DemandListItem"

    id                 = Column(Integer, primary_key=True, autoincrement=True)
    demand_list_id     = Column(Integer, ForeignKey("DemandList.id"), nullable=False, index=True)
    product_id         = Column(Integer, ForeignKey("Product.id"), nullable=False, index=True)
    quantity           = Column(Integer, nullable=False)
    # price snapshot at creation time
    purchase_price     = Column(Numeric(12, 2), nullable=False)
    available_quantity = Column(Integer, nullable=False, default=0)
    status             = Column(String(20), nullable=False, default=DemandItemStatus.PENDING)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="CK_DemandListItem_Qty_Positive"),
        CheckConstraint("available_quantity >= 0", name="CK_DemandListItem_Available_NonNeg"),
        CheckConstraint(in_list("status", DemandItemStatus.all()), name="CK_DemandListItem_Status"),
    )

    demand_list    = relationship("DemandList", back_populates="items")
    product        = relationship("Product")
    related_orders = relationship(
        "Order",
        secondary=demand_item_orders,
        back_populates="demand_items",
        order_by="Order.id",
    )

    @property
    def related_order_ids(self):
        return [o.id for o in self.related_orders]
