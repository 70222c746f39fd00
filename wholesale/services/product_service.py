from __future__ import annotations
from typing import Iterable, List, Optional
import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session, selectinload

from ..models import (
    Product, ProductSupplier, ProductCustomerPrice, Supplier, Customer,
    OrderItem, DemandListItem,
)
from ..domain.constants import LOW_STOCK_LIST_BELOW
from .common import bad_request, get_or_404, lock_for_update, not_found, to_money, transaction

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "quantity_on_hand")
_NULLABLE_FIELDS = ("description", "sku", "category", "company_name")
_MONEY_FIELDS = ("retail_price", "purchase_price", "sell_price")


def _query(db: Session):
    return db.query(Product).options(
        selectinload(Product.suppliers),
        selectinload(Product.customers),
    )


def list_products(db: Session) -> List[Product]:
    return _query(db).order_by(Product.id).all()


def get_product(db: Session, product_id: int) -> Product:
    return get_or_404(db, Product, product_id)


def _ensure_sku_free(db: Session, sku: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not sku:
        return
    q = db.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise bad_request("Product with this SKU already exists")


def _sync_supplier_links(db: Session, product: Product, links: Iterable) -> None:
    """Make product.suppliers match `links`, updating rows in place."""
    wanted = {}
    for link in links:
        if link.supplier in wanted:
            raise bad_request(f"Supplier {link.supplier} is listed more than once")
        if db.get(Supplier, link.supplier) is None:
            raise not_found(f"Supplier {link.supplier} not found")
        wanted[link.supplier] = link

    for row in list(product.suppliers):
        if row.supplier_id not in wanted:
            product.suppliers.remove(row)
    for supplier_id, link in wanted.items():
        row = product.supplier_link(supplier_id)
        if row is None:
            row = ProductSupplier(supplier_id=supplier_id)
            product.suppliers.append(row)
        row.purchase_price = (
            to_money(link.purchase_price, "purchasePrice") if link.purchase_price is not None else None
        )
        row.is_preferred = bool(link.is_preferred)
        row.last_purchase_date = link.last_purchase_date


def _sync_customer_prices(db: Session, product: Product, links: Iterable) -> None:
    wanted = {}
    for link in links:
        if link.customer in wanted:
            raise bad_request(f"Customer {link.customer} is listed more than once")
        if db.get(Customer, link.customer) is None:
            raise not_found(f"Customer {link.customer} not found")
        wanted[link.customer] = link

    for row in list(product.customers):
        if row.customer_id not in wanted:
            product.customers.remove(row)
    existing = {row.customer_id: row for row in product.customers}
    for customer_id, link in wanted.items():
        row = existing.get(customer_id)
        if row is None:
            row = ProductCustomerPrice(customer_id=customer_id)
            product.customers.append(row)
        row.custom_sell_price = (
            to_money(link.custom_sell_price, "customSellPrice")
            if link.custom_sell_price is not None else None
        )


def create_product(db: Session, payload) -> Product:
    with transaction(db, "create_product", sku=payload.sku):
        _ensure_sku_free(db, payload.sku)
        product = Product(**{f: getattr(payload, f) for f in _REQUIRED_FIELDS + _NULLABLE_FIELDS})
        for f in _MONEY_FIELDS:
            setattr(product, f, to_money(getattr(payload, f), f))
        _sync_supplier_links(db, product, payload.suppliers)
        _sync_customer_prices(db, product, payload.customers)
        db.add(product)
    db.refresh(product)
    logger.info("product created id=%s sku=%s", product.id, product.sku)
    return product


def update_product(db: Session, product_id: int, payload) -> Product:
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, "update_product", product_id=product_id):
        product = lock_for_update(db, Product, product_id)
        if product is None:
            raise not_found("Product not found")
        if "sku" in changes:
            changes["sku"] = (changes["sku"] or "").strip() or None
            _ensure_sku_free(db, changes["sku"], exclude_id=product.id)
        for f in _REQUIRED_FIELDS:
            if changes.get(f) is not None:
                setattr(product, f, changes[f])
        for f in _NULLABLE_FIELDS:
            if f in changes:
                setattr(product, f, changes[f])
        for f in _MONEY_FIELDS:
            if changes.get(f) is not None:
                setattr(product, f, to_money(changes[f], f))
        if payload.suppliers is not None:
            _sync_supplier_links(db, product, payload.suppliers)
        if payload.customers is not None:
            _sync_customer_prices(db, product, payload.customers)
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> int:
    with transaction(db, "delete_product", product_id=product_id):
        product = get_or_404(db, Product, product_id)
        if db.query(exists().where(OrderItem.product_id == product_id)).scalar():
            raise bad_request("Cannot delete product referenced by orders")
        if db.query(exists().where(DemandListItem.product_id == product_id)).scalar():
            raise bad_request("Cannot delete product referenced by demand lists")
        db.delete(product)
    logger.info("product deleted id=%s", product_id)
    return product_id


def set_inventory(db: Session, product_id: int, quantity_on_hand: int) -> Product:
    if quantity_on_hand is None or quantity_on_hand < 0:
        raise bad_request("quantityOnHand must be >= 0")
    with transaction(db, "set_inventory", product_id=product_id):
        product = lock_for_update(db, Product, product_id)
        if product is None:
            raise not_found("Product not found")
        product.quantity_on_hand = int(quantity_on_hand)
    db.refresh(product)
    return product


def products_by_supplier(db: Session, supplier_id: int) -> List[Product]:
    return (
        _query(db)
        .filter(Product.suppliers.any(ProductSupplier.supplier_id == supplier_id))
        .order_by(Product.id)
        .all()
    )


def products_by_category(db: Session, category: str) -> List[Product]:
    return _query(db).filter(Product.category == category).order_by(Product.id).all()


def low_stock_products(db: Session, below: int = LOW_STOCK_LIST_BELOW) -> List[Product]:
    return (
        _query(db)
        .filter(Product.quantity_on_hand < below)
        .order_by(Product.quantity_on_hand, Product.id)
        .all()
    )
