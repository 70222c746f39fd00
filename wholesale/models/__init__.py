from .user import AppUser
from .supplier import Supplier
from .customer import Customer
from .product import Product, ProductSupplier, ProductCustomerPrice
from .order import Order, OrderItem, Payment
from .demand_list import DemandList, DemandListItem, demand_item_orders
__all__ = [
    "AppUser", "Supplier", "Customer",
    "Product", "ProductSupplier", "ProductCustomerPrice",
    "Order", "OrderItem", "Payment",
    "DemandList", "DemandListItem", "demand_item_orders",
]
