"""
Demand lists and the fulfillment engine.

A demand list asks one supplier for a set of products. When the supplier
reports what it can deliver (process_fulfillment) the engine:

  1. records availableQuantity and the derived status on each line,
  2. books the newly available goods into Product.quantityOnHand and stamps
     the supplier purchase record on the product,
  3. rolls the list status up (Fulfilled / Partial / unchanged),
  4. pushes the delivered quantity into the open orders linked to each line.

Everything happens in one database transaction.
"""
from __future__ import annotations
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session, selectinload

from ..core.db import utcnow
from ..models import DemandList, DemandListItem, Supplier, Product, ProductSupplier, Order
from ..domain.state_machine import (
    DemandListStatus, DemandItemStatus, OrderStatus,
    check_demand_list_transition, can_update_demand_list, can_delete_demand_list,
    can_fulfill_demand_list, demand_item_status, rollup_demand_list_status,
    rollup_order_status, is_order_terminal,
)
from .common import bad_request, get_or_404, lock_for_update, not_found, to_money, transaction

logger = logging.getLogger(__name__)


def _query(db: Session):
    return db.query(DemandList).options(
        selectinload(DemandList.items).selectinload(DemandListItem.related_orders),
    )


def _lock_demand_list(db: Session, demand_list_id: int) -> DemandList:
    dl = lock_for_update(db, DemandList, demand_list_id)
    if dl is None:
        raise not_found("Demand list not found")
    return dl


# ---- Queries ----
def list_demand_lists(db: Session, *, supplier_id: Optional[int] = None, status: Optional[str] = None) -> List[DemandList]:
    q = _query(db)
    if supplier_id:
        q = q.filter(DemandList.supplier_id == supplier_id)
    if status:
        if status not in DemandListStatus.all():
            raise bad_request("Invalid status")
        q = q.filter(DemandList.status == status)
    return q.order_by(DemandList.demand_date.desc(), DemandList.id.desc()).all()


def demand_lists_by_supplier(db: Session, supplier_id: int) -> List[DemandList]:
    get_or_404(db, Supplier, supplier_id)
    return list_demand_lists(db, supplier_id=supplier_id)


def get_demand_list(db: Session, demand_list_id: int) -> DemandList:
    return get_or_404(db, DemandList, demand_list_id, "Demand list")


# ---- Create / update / delete ----
def _build_items(db: Session, supplier_id: int, items: Iterable) -> List[DemandListItem]:
    """Lines with a purchase price snapshot: supplier-specific price, else Product.purchasePrice."""
    lines: List[DemandListItem] = []
    for item in items:
        product = db.get(Product, item.product)
        if product is None:
            raise not_found(f"Product with ID {item.product} not found")
        link = product.supplier_link(supplier_id)
        price = link.purchase_price if link is not None and link.purchase_price is not None else product.purchase_price

        orders: List[Order] = []
        for order_id in dict.fromkeys(item.related_orders or []):
            order = db.get(Order, order_id)
            if order is None:
                raise not_found(f"Order with ID {order_id} not found")
            orders.append(order)

        lines.append(DemandListItem(
            product_id=product.id,
            quantity=int(item.quantity),
            purchase_price=to_money(price, "purchasePrice"),
            available_quantity=0,
            status=DemandItemStatus.PENDING,
            related_orders=orders,
        ))
    return lines


def _estimated_total(lines: Iterable[DemandListItem]) -> Decimal:
    return to_money(sum((l.purchase_price * l.quantity for l in lines), Decimal("0")), "estimatedTotal")


def create_demand_list(db: Session, *, supplier_id: int, items, notes: Optional[str] = None) -> DemandList:
    if not items:
        raise bad_request("Please provide supplier and demand list items")

    with transaction(db, "create_demand_list", supplier_id=supplier_id):
        if db.get(Supplier, supplier_id) is None:
            raise not_found("Supplier not found")
        lines = _build_items(db, supplier_id, items)
        dl = DemandList(
            supplier_id=supplier_id,
            demand_date=utcnow(),
            status=DemandListStatus.DRAFT,
            items=lines,
            estimated_total=_estimated_total(lines),
            notes=notes,
        )
        db.add(dl)
    db.refresh(dl)
    logger.info("demand list created id=%s supplier=%s total=%s", dl.id, supplier_id, dl.estimated_total)
    return dl


def update_demand_list(db: Session, demand_list_id: int, payload) -> DemandList:
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, "update_demand_list", demand_list_id=demand_list_id):
        dl = _lock_demand_list(db, demand_list_id)
        check = can_update_demand_list(dl.status)
        if not check.allowed:
            raise bad_request(check.reason)
        if "notes" in changes:
            dl.notes = changes["notes"]
        if payload.items is not None:
            if dl.status != DemandListStatus.DRAFT:
                raise bad_request(f"Cannot change items of a {dl.status.lower()} demand list")
            if not payload.items:
                raise bad_request("Please provide demand list items")
            dl.items.clear()
            db.flush()
            dl.items.extend(_build_items(db, dl.supplier_id, payload.items))
            dl.estimated_total = _estimated_total(dl.items)
    db.refresh(dl)
    return dl


def delete_demand_list(db: Session, demand_list_id: int) -> int:
    with transaction(db, "delete_demand_list", demand_list_id=demand_list_id):
        dl = _lock_demand_list(db, demand_list_id)
        check = can_delete_demand_list(dl.status)
        if not check.allowed:
            raise bad_request(check.reason)
        for line in dl.items:
            line.related_orders = []
        db.delete(dl)
    logger.info("demand list deleted id=%s", demand_list_id)
    return demand_list_id


def update_demand_list_status(db: Session, demand_list_id: int, new_status: str) -> DemandList:
    if not new_status or new_status not in DemandListStatus.all():
        raise bad_request("Please provide a valid status")

    with transaction(db, "update_demand_list_status", demand_list_id=demand_list_id, status=new_status):
        dl = _lock_demand_list(db, demand_list_id)
        current = dl.status
        check = check_demand_list_transition(current, new_status)
        if not check.allowed:
            raise bad_request(check.reason)
        dl.status = new_status
        if new_status == DemandListStatus.FULFILLED and current != new_status:
            dl.fulfillment_date = utcnow()
    db.refresh(dl)
    logger.info("demand list %s status %s -> %s", demand_list_id, current, new_status)
    return dl


# ---- Fulfillment engine ----
def _book_into_stock(db: Session, line: DemandListItem, supplier_id: int, received: int, now) -> None:
    product = lock_for_update(db, Product, line.product_id)
    if product is None:
        raise not_found(f"Product with ID {line.product_id} not found")
    if received > 0:
        product.quantity_on_hand = int(product.quantity_on_hand or 0) + received

    link = product.supplier_link(supplier_id)
    if link is not None:
        link.last_purchase_date = now
    else:
        product.suppliers.append(ProductSupplier(
            supplier_id=supplier_id,
            purchase_price=line.purchase_price,
            is_preferred=False,
            last_purchase_date=now,
        ))


def _propagate_to_orders(db: Session, line: DemandListItem, now) -> List[int]:
    """
    Push a line's availableQuantity into its related open orders.
    Each order takes min(remaining, availableQuantity) on its matching line.
    """
    touched: List[int] = []
    available = int(line.available_quantity or 0)
    if available <= 0:
        return touched

    for related in list(line.related_orders):
        order = lock_for_update(db, Order, related.id)
        if order is None or is_order_terminal(order.status):
            continue
        order_line = order.item_for(line.product_id)
        if order_line is None:
            continue
        remaining = order_line.quantity - (order_line.fulfilled_quantity or 0)
        fulfillable = min(remaining, available)
        if fulfillable <= 0:
            continue

        order_line.fulfilled_quantity = (order_line.fulfilled_quantity or 0) + fulfillable
        new_status = rollup_order_status(order.items, order.status)
        if new_status == OrderStatus.FULFILLED and order.status != OrderStatus.FULFILLED:
            order.fulfillment_date = now
        order.status = new_status
        touched.append(order.id)
    return touched


def process_fulfillment(db: Session, demand_list_id: int, items) -> DemandList:
    if not items:
        raise bad_request("Please provide items with available quantities")

    with transaction(db, "process_fulfillment", demand_list_id=demand_list_id):
        dl = _lock_demand_list(db, demand_list_id)
        check = can_fulfill_demand_list(dl.status)
        if not check.allowed:
            raise bad_request(check.reason)

        now = utcnow()
        updated: Dict[int, DemandListItem] = {}
        for item in items:
            line = dl.item_for(item.product)
            if line is None:
                raise bad_request(f"Product {item.product} is not part of this demand list")
            if item.available_quantity is None or item.available_quantity < 0:
                raise bad_request(f"availableQuantity for product {item.product} must be >= 0")

            previous = int(line.available_quantity or 0)
            line.available_quantity = int(item.available_quantity)
            line.status = demand_item_status(line.quantity, line.available_quantity)
            received = max(0, line.available_quantity - previous)
            if line.available_quantity > 0:
                _book_into_stock(db, line, dl.supplier_id, received, now)
            updated[line.id] = line

        new_status = rollup_demand_list_status(dl.items, dl.status)
        if new_status == DemandListStatus.FULFILLED and dl.status != DemandListStatus.FULFILLED:
            dl.fulfillment_date = now
        dl.status = new_status

        touched_orders = set()
        for line in updated.values():
            touched_orders.update(_propagate_to_orders(db, line, now))
        dl.updated_at = now

    db.refresh(dl)
    logger.info(
        "demand list %s fulfillment processed -> %s (orders touched: %s)",
        demand_list_id, dl.status, sorted(touched_orders),
    )
    return dl
