from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey,
    CheckConstraint, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from ..core.db import Base, utcnow

class Product(Base):
    __tablename__ = "Product"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    name             = Column(String(200), nullable=False)
    description      = Column(String(1000))
    sku              = Column(String(50), unique=True)
    category         = Column(String(100), index=True)
    company_name     = Column(String(200))
    retail_price     = Column(Numeric(12, 2), nullable=False)
    purchase_price   = Column(Numeric(12, 2), nullable=False)
    sell_price       = Column(Numeric(12, 2), nullable=False)
    quantity_on_hand = Column(Integer, nullable=False, server_default=text("0"), default=0)
    created_at       = Column(DateTime, nullable=False, default=utcnow)
    updated_at       = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("quantity_on_hand >= 0", name="CK_Product_QtyOnHand_NonNeg"),
        CheckConstraint("retail_price >= 0 AND purchase_price >= 0 AND sell_price >= 0",
                        name="CK_Product_Prices_NonNeg"),
    )

    # supplier-specific purchase prices
    suppliers = relationship(
        "ProductSupplier",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductSupplier.id",
    )
    # customer-specific sell prices
    customers = relationship(
        "ProductCustomerPrice",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductCustomerPrice.id",
    )

    def supplier_link(self, supplier_id: int):
        return next((s for s in self.suppliers if s.supplier_id == supplier_id), None)

    def customer_price(self, customer_id: int):
        link = next((c for c in self.customers if c.customer_id == customer_id), None)
        return link.custom_sell_price if link is not None and link.custom_sell_price is not None else None


class ProductSupplier(Base):
    __tablename__ = "ProductSupplier"

    id                 = Column(Integer, primary_key=True, autoincrement=True)
    product_id         = Column(Integer, ForeignKey("Product.id"),  nullable=False)
    supplier_id        = Column(Integer, ForeignKey("Supplier.id"), nullable=False)
    purchase_price     = Column(Numeric(12, 2))
    is_preferred       = Column(Boolean, nullable=False, default=False)
    last_purchase_date = Column(DateTime)

    __table_args__ = (
        UniqueConstraint("product_id", "supplier_id", name="UQ_ProductSupplier"),
        CheckConstraint("purchase_price IS NULL OR purchase_price >= 0", name="CK_ProductSupplier_Price_NonNeg"),
    )

    product  = relationship("Product",  back_populates="suppliers")
    supplier = relationship("Supplier", back_populates="product_links")


class ProductCustomerPrice(Base):
    __tablename__ = "ProductCustomerPrice"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    product_id        = Column(Integer, ForeignKey("Product.id"),  nullable=False)
    customer_id       = Column(Integer, ForeignKey("Customer.id"), nullable=False)
    custom_sell_price = Column(Numeric(12, 2))

    __table_args__ = (
        UniqueConstraint("product_id", "customer_id", name="UQ_ProductCustomerPrice"),
        CheckConstraint("custom_sell_price IS NULL OR custom_sell_price >= 0",
                        name="CK_ProductCustomerPrice_NonNeg"),
    )

    product  = relationship("Product",  back_populates="customers")
    customer = relationship("Customer", back_populates="price_links")
