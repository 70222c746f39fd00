from __future__ import annotations
from typing import List, Optional
import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session, selectinload

from ..models import Customer, Order, ProductCustomerPrice
from .common import bad_request, get_or_404, lock_for_update, not_found, to_money, transaction

logger = logging.getLogger(__name__)

_FIELDS = ("name", "store_id", "contact_person", "email", "phone", "payment_terms", "notes")


def list_customers(db: Session) -> List[Customer]:
    return db.query(Customer).order_by(Customer.id).all()


def get_customer(db: Session, customer_id: int) -> Customer:
    return get_or_404(db, Customer, customer_id)


def _ensure_store_id_free(db: Session, store_id: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not store_id:
        return
    q = db.query(Customer.id).filter(Customer.store_id == store_id)
    if exclude_id is not None:
        q = q.filter(Customer.id != exclude_id)
    if q.first() is not None:
        raise bad_request("Customer with this Store ID already exists")


def create_customer(db: Session, payload) -> Customer:
    with transaction(db, "create_customer", store_id=payload.store_id):
        _ensure_store_id_free(db, payload.store_id)
        customer = Customer(**{f: getattr(payload, f) for f in _FIELDS})
        customer.address = payload.address.model_dump() if payload.address else None
        customer.credit_limit = to_money(payload.credit_limit, "creditLimit")
        # the balance only ever moves through orders and payments
        customer.outstanding_balance = to_money(0)
        db.add(customer)
    db.refresh(customer)
    logger.info("customer created id=%s store_id=%s", customer.id, customer.store_id)
    return customer


def update_customer(db: Session, customer_id: int, payload) -> Customer:
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, "update_customer", customer_id=customer_id):
        customer = lock_for_update(db, Customer, customer_id)
        if customer is None:
            raise not_found("Customer not found")
        if changes.get("name") is None:
            changes.pop("name", None)
        if "store_id" in changes:
            _ensure_store_id_free(db, changes["store_id"], exclude_id=customer.id)
        for f in _FIELDS:
            if f in changes:
                setattr(customer, f, changes[f])
        if "address" in changes:
            customer.address = changes["address"]
        if changes.get("credit_limit") is not None:
            customer.credit_limit = to_money(changes["credit_limit"], "creditLimit")
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: int) -> int:
    with transaction(db, "delete_customer", customer_id=customer_id):
        customer = get_or_404(db, Customer, customer_id)
        if db.query(exists().where(Order.customer_id == customer_id)).scalar():
            raise bad_request("Cannot delete customer with existing orders")
        db.query(ProductCustomerPrice).filter(
            ProductCustomerPrice.customer_id == customer_id
        ).delete(synchronize_session="fetch")
        db.delete(customer)
    logger.info("customer deleted id=%s", customer_id)
    return customer_id


def customer_orders(db: Session, customer_id: int) -> List[Order]:
    get_or_404(db, Customer, customer_id)
    return (
        db.query(Order)
        .options(selectinload(Order.items), selectinload(Order.payments))
        .filter(Order.customer_id == customer_id)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )
