from __future__ import annotations
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy.orm import Session, selectinload

from ..core.db import utcnow
from ..models import Order, OrderItem, Payment, Customer, Product
from ..domain.constants import ORDER_NUMBER_FORMAT, DEFAULT_PAYMENT_METHOD
from ..domain.state_machine import (
    OrderStatus, PaymentStatus,
    check_order_transition, can_update_order, can_delete_order, can_fulfill_order,
    all_items_fulfilled, payment_status,
)
from .common import bad_request, get_or_404, lock_for_update, not_found, to_money, transaction

logger = logging.getLogger(__name__)


def _query(db: Session):
    return db.query(Order).options(
        selectinload(Order.items),
        selectinload(Order.payments),
    )


def _lock_order(db: Session, order_id: int) -> Order:
    order = lock_for_update(db, Order, order_id)
    if order is None:
        raise not_found("Order not found")
    return order


def _lock_customer(db: Session, customer_id: int) -> Optional[Customer]:
    return lock_for_update(db, Customer, customer_id)


def _adjust_stock(db: Session, product_id: int, delta: int) -> None:
    """quantityOnHand += delta, floored at zero."""
    if not delta:
        return
    product = lock_for_update(db, Product, product_id)
    if product is None:
        logger.warning("stock adjust skipped: product %s missing", product_id)
        return
    product.quantity_on_hand = max(0, int(product.quantity_on_hand or 0) + int(delta))


# ---- Queries ----
def list_orders(
    db: Session,
    *,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
) -> List[Order]:
    q = _query(db)
    if status:
        if status not in OrderStatus.all():
            raise bad_request("Invalid status")
        q = q.filter(Order.status == status)
    if customer_id:
        q = q.filter(Order.customer_id == customer_id)
    return q.order_by(Order.order_date.desc(), Order.id.desc()).all()


def list_orders_by_status(db: Session, status: str) -> List[Order]:
    if status not in OrderStatus.all():
        raise bad_request("Invalid status")
    return list_orders(db, status=status)


def get_order(db: Session, order_id: int) -> Order:
    return get_or_404(db, Order, order_id, "Order")


# ---- Create / update / delete ----
def create_order(db: Session, *, customer_id: int, items, notes: Optional[str] = None) -> Order:
    """
    Create a Pending order with price snapshots and charge its total to the
    customer balance. Customer-specific prices win over Product.sellPrice.
    """
    if not items:
        raise bad_request("Please provide customer and order items")

    with transaction(db, "create_order", customer_id=customer_id):
        customer = _lock_customer(db, customer_id)
        if customer is None:
            raise not_found("Customer not found")

        total = Decimal("0")
        lines: List[OrderItem] = []
        for item in items:
            product = db.get(Product, item.product)
            if product is None:
                raise not_found(f"Product with ID {item.product} not found")
            if item.quantity is None or item.quantity < 1:
                raise bad_request("quantity must be at least 1")
            custom = product.customer_price(customer.id)
            sell_price = to_money(custom if custom is not None else product.sell_price, "sellPrice")
            lines.append(OrderItem(
                product_id=product.id,
                quantity=int(item.quantity),
                sell_price=sell_price,
                fulfilled_quantity=0,
            ))
            total += sell_price * int(item.quantity)

        total = to_money(total, "totalAmount")
        order = Order(
            customer_id=customer.id,
            order_date=utcnow(),
            status=OrderStatus.PENDING,
            total_amount=total,
            payment_status=PaymentStatus.PAID if total <= 0 else PaymentStatus.PENDING,
            notes=notes,
            items=lines,
        )
        db.add(order)
        db.flush()
        order.order_number = ORDER_NUMBER_FORMAT.format(year=order.order_date.year, seq=order.id)

        customer.outstanding_balance = to_money((customer.outstanding_balance or 0) + total)

    db.refresh(order)
    logger.info("order created %s customer=%s total=%s", order.order_number, customer_id, total)
    return order


def update_order(db: Session, order_id: int, *, notes: Optional[str] = None) -> Order:
    with transaction(db, "update_order", order_id=order_id):
        order = _lock_order(db, order_id)
        check = can_update_order(order.status)
        if not check.allowed:
            raise bad_request(check.reason)
        order.notes = notes
    db.refresh(order)
    return order


def delete_order(db: Session, order_id: int) -> int:
    with transaction(db, "delete_order", order_id=order_id):
        order = _lock_order(db, order_id)
        check = can_delete_order(order.status)
        if not check.allowed:
            raise bad_request(check.reason)

        customer = _lock_customer(db, order.customer_id)
        if customer is not None:
            customer.outstanding_balance = to_money((customer.outstanding_balance or 0) - order.total_amount)
        # detach from demand list lines that pointed at it
        order.demand_items = []
        db.delete(order)
    logger.info("order deleted id=%s", order_id)
    return order_id


# ---- Fulfillment ----
def fulfill_order(db: Session, order_id: int, items) -> Order:
    """
    Set delivered quantities per product.

    Stock moves by the difference to the previously delivered quantity, so
    lowering a value returns goods to stock. The order becomes Fulfilled when
    every line is complete, Partial otherwise.
    """
    if not items:
        raise bad_request("Please provide items to fulfill")

    with transaction(db, "fulfill_order", order_id=order_id):
        order = _lock_order(db, order_id)
        check = can_fulfill_order(order.status)
        if not check.allowed:
            raise bad_request(check.reason)

        for item in items:
            line = order.item_for(item.product)
            if line is None:
                raise bad_request(f"Product {item.product} is not part of this order")
            new_qty = item.fulfilled_quantity
            if new_qty is None or new_qty < 0 or new_qty > line.quantity:
                raise bad_request(
                    f"fulfilledQuantity for product {item.product} must be between 0 and {line.quantity}"
                )
            previous = line.fulfilled_quantity or 0
            line.fulfilled_quantity = int(new_qty)
            _adjust_stock(db, line.product_id, -(int(new_qty) - previous))

        if all_items_fulfilled(order.items):
            order.status = OrderStatus.FULFILLED
            order.fulfillment_date = utcnow()
        else:
            order.status = OrderStatus.PARTIAL
            order.fulfillment_date = None

    db.refresh(order)
    logger.info("order %s fulfilled -> %s", order_id, order.status)
    return order


# ---- Status ----
def update_order_status(db: Session, order_id: int, new_status: str) -> Order:
    """
    Explicit status change. Cancelling returns delivered goods to stock and
    removes the full order total from the customer balance.
    """
    if not new_status or new_status not in OrderStatus.all():
        raise bad_request("Please provide a valid status")

    with transaction(db, "update_order_status", order_id=order_id, status=new_status):
        order = _lock_order(db, order_id)
        current = order.status
        check = check_order_transition(current, new_status, order.items)
        if not check.allowed:
            raise bad_request(check.reason)
        if current == new_status:
            return order

        order.status = new_status
        if new_status == OrderStatus.FULFILLED:
            order.fulfillment_date = utcnow()
        elif new_status == OrderStatus.CANCELLED:
            for line in order.items:
                if (line.fulfilled_quantity or 0) > 0:
                    _adjust_stock(db, line.product_id, line.fulfilled_quantity)
            customer = _lock_customer(db, order.customer_id)
            if customer is not None:
                customer.outstanding_balance = to_money(
                    (customer.outstanding_balance or 0) - order.total_amount
                )

    db.refresh(order)
    logger.info("order %s status %s -> %s", order_id, current, new_status)
    return order


# ---- Payments ----
def record_payment(
    db: Session,
    order_id: int,
    *,
    amount,
    method: Optional[str] = None,
    reference: Optional[str] = None,
) -> Order:
    value = to_money(amount, "amount")
    if value <= 0:
        raise bad_request("amount must be greater than 0")

    with transaction(db, "record_payment", order_id=order_id, amount=str(value)):
        order = _lock_order(db, order_id)
        order.payments.append(Payment(
            amount=value,
            date=utcnow(),
            method=method or DEFAULT_PAYMENT_METHOD,
            reference=reference,
        ))
        order.payment_status = payment_status(order.total_paid, order.total_amount)

        customer = _lock_customer(db, order.customer_id)
        if customer is not None:
            customer.outstanding_balance = to_money((customer.outstanding_balance or 0) - value)

    db.refresh(order)
    logger.info("payment %s recorded on order %s -> %s", value, order_id, order.payment_status)
    return order
