"""initial schema: users, parties, catalog, orders, demand lists

Revision ID: a1c3e5f70001
Revises:
Create Date: 2025-10-06 10:12:44.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f70001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)


def _address_columns():
    return [
        sa.Column("address_street", sa.String(200)),
        sa.Column("address_city", sa.String(100)),
        sa.Column("address_state", sa.String(100)),
        sa.Column("address_zip_code", sa.String(20)),
        sa.Column("address_country", sa.String(100)),
    ]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "AppUser",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(200), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("role in ('user','manager','admin')", name="CK_AppUser_Role"),
    )

    op.create_table(
        "Supplier",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("contact_person", sa.String(200)),
        sa.Column("email", sa.String(200)),
        sa.Column("phone", sa.String(50)),
        *_address_columns(),
        sa.Column("reliability_rating", sa.Numeric(3, 2), nullable=False, server_default=sa.text("3")),
        sa.Column("payment_terms", sa.String(200)),
        sa.Column("notes", sa.String(1000)),
        *_timestamps(),
        sa.CheckConstraint("reliability_rating >= 0 AND reliability_rating <= 5", name="CK_Supplier_Reliability"),
    )

    op.create_table(
        "Customer",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("store_id", sa.String(50), unique=True),
        sa.Column("contact_person", sa.String(200)),
        sa.Column("email", sa.String(200)),
        sa.Column("phone", sa.String(50)),
        *_address_columns(),
        sa.Column("payment_terms", sa.String(200)),
        sa.Column("credit_limit", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("outstanding_balance", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.String(1000)),
        *_timestamps(),
        sa.CheckConstraint("credit_limit >= 0", name="CK_Customer_CreditLimit_NonNeg"),
    )

    op.create_table(
        "Product",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000)),
        sa.Column("sku", sa.String(50), unique=True),
        sa.Column("category", sa.String(100)),
        sa.Column("company_name", sa.String(200)),
        sa.Column("retail_price", MONEY, nullable=False),
        sa.Column("purchase_price", MONEY, nullable=False),
        sa.Column("sell_price", MONEY, nullable=False),
        sa.Column("quantity_on_hand", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("quantity_on_hand >= 0", name="CK_Product_QtyOnHand_NonNeg"),
        sa.CheckConstraint(
            "retail_price >= 0 AND purchase_price >= 0 AND sell_price >= 0",
            name="CK_Product_Prices_NonNeg",
        ),
    )
    op.create_index("ix_Product_category", "Product", ["category"])

    op.create_table(
        "ProductSupplier",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("Product.id"), nullable=False),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("Supplier.id"), nullable=False),
        sa.Column("purchase_price", MONEY),
        sa.Column("is_preferred", sa.Boolean(), nullable=False),
        sa.Column("last_purchase_date", sa.DateTime()),
        sa.UniqueConstraint("product_id", "supplier_id", name="UQ_ProductSupplier"),
        sa.CheckConstraint("purchase_price IS NULL OR purchase_price >= 0", name="CK_ProductSupplier_Price_NonNeg"),
    )

    op.create_table(
        "ProductCustomerPrice",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("Product.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("Customer.id"), nullable=False),
        sa.Column("custom_sell_price", MONEY),
        sa.UniqueConstraint("product_id", "customer_id", name="UQ_ProductCustomerPrice"),
        sa.CheckConstraint(
            "custom_sell_price IS NULL OR custom_sell_price >= 0",
            name="CK_ProductCustomerPrice_NonNeg",
        ),
    )

    op.create_table(
        "SalesOrder",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.String(30), unique=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("Customer.id"), nullable=False),
        sa.Column("order_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("notes", sa.String(1000)),
        sa.Column("fulfillment_date", sa.DateTime()),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('Pending', 'Processing', 'Partial', 'Fulfilled', 'Cancelled')",
            name="CK_Order_Status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('Pending', 'Partial', 'Paid')",
            name="CK_Order_PaymentStatus",
        ),
    )
    op.create_index("ix_SalesOrder_customer_id", "SalesOrder", ["customer_id"])
    op.create_index("ix_SalesOrder_order_date", "SalesOrder", ["order_date"])

    op.create_table(
        "OrderItem",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("SalesOrder.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("Product.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("sell_price", MONEY, nullable=False),
        sa.Column("fulfilled_quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="CK_OrderItem_Qty_Positive"),
        sa.CheckConstraint("fulfilled_quantity >= 0", name="CK_OrderItem_Fulfilled_NonNeg"),
    )
    op.create_index("ix_OrderItem_order_id", "OrderItem", ["order_id"])
    op.create_index("ix_OrderItem_product_id", "OrderItem", ["product_id"])

    op.create_table(
        "OrderPayment",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("SalesOrder.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("paid_at", sa.DateTime(), nullable=False),
        sa.Column("method", sa.String(50), nullable=False),
        sa.Column("reference", sa.String(200)),
        sa.CheckConstraint("amount > 0", name="CK_OrderPayment_Amount_Positive"),
    )
    op.create_index("ix_OrderPayment_order_id", "OrderPayment", ["order_id"])

    op.create_table(
        "DemandList",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("Supplier.id"), nullable=False),
        sa.Column("demand_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("estimated_total", MONEY, nullable=False),
        sa.Column("notes", sa.String(1000)),
        sa.Column("fulfillment_date", sa.DateTime()),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('Draft', 'Submitted', 'Confirmed', 'Partial', 'Fulfilled', 'Cancelled')",
            name="CK_DemandList_Status",
        ),
    )
    op.create_index("ix_DemandList_supplier_id", "DemandList", ["supplier_id"])

    op.create_table(
        "DemandListItem",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("demand_list_id", sa.Integer(), sa.ForeignKey("DemandList.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("Product.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchase_price", MONEY, nullable=False),
        sa.Column("available_quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="CK_DemandListItem_Qty_Positive"),
        sa.CheckConstraint("available_quantity >= 0", name="CK_DemandListItem_Available_NonNeg"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Available', 'Unavailable', 'Partial')",
            name="CK_DemandListItem_Status",
        ),
    )
    op.create_index("ix_DemandListItem_demand_list_id", "DemandListItem", ["demand_list_id"])
    op.create_index("ix_DemandListItem_product_id", "DemandListItem", ["product_id"])

    op.create_table(
        "DemandItemOrder",
        sa.Column("demand_item_id", sa.Integer(), sa.ForeignKey("DemandListItem.id"), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("SalesOrder.id"), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table("DemandItemOrder")
    op.drop_index("ix_DemandListItem_product_id", table_name="DemandListItem")
    op.drop_index("ix_DemandListItem_demand_list_id", table_name="DemandListItem")
    op.drop_table("DemandListItem")
    op.drop_index("ix_DemandList_supplier_id", table_name="DemandList")
    op.drop_table("DemandList")
    op.drop_index("ix_OrderPayment_order_id", table_name="OrderPayment")
    op.drop_table("OrderPayment")
    op.drop_index("ix_OrderItem_product_id", table_name="OrderItem")
    op.drop_index("ix_OrderItem_order_id", table_name="OrderItem")
    op.drop_table("OrderItem")
    op.drop_index("ix_SalesOrder_order_date", table_name="SalesOrder")
    op.drop_index("ix_SalesOrder_customer_id", table_name="SalesOrder")
    op.drop_table("SalesOrder")
    op.drop_table("ProductCustomerPrice")
    op.drop_table("ProductSupplier")
    op.drop_index("ix_Product_category", table_name="Product")
    op.drop_table("Product")
    op.drop_table("Customer")
    op.drop_table("Supplier")
    op.drop_table("AppUser")
