from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import List
import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session

from ..models import Supplier, ProductSupplier, DemandList
from .common import bad_request, get_or_404, lock_for_update, not_found, transaction

logger = logging.getLogger(__name__)

_FIELDS = ("name", "contact_person", "email", "phone", "payment_terms", "notes")
RELIABILITY_MIN = Decimal("0")
RELIABILITY_MAX = Decimal("5")


def list_suppliers(db: Session) -> List[Supplier]:
    return db.query(Supplier).order_by(Supplier.id).all()


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    return get_or_404(db, Supplier, supplier_id)


def _rating(value) -> Decimal:
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        d = None
    if d is None or not d.is_finite() or d < RELIABILITY_MIN or d > RELIABILITY_MAX:
        raise bad_request("Please provide a valid reliability rating (0-5)")
    return d


def create_supplier(db: Session, payload) -> Supplier:
    with transaction(db, "create_supplier", name=payload.name):
        supplier = Supplier(**{f: getattr(payload, f) for f in _FIELDS})
        supplier.address = payload.address.model_dump() if payload.address else None
        supplier.reliability_rating = _rating(payload.reliability_rating)
        db.add(supplier)
    db.refresh(supplier)
    logger.info("supplier created id=%s", supplier.id)
    return supplier


def update_supplier(db: Session, supplier_id: int, payload) -> Supplier:
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, "update_supplier", supplier_id=supplier_id):
        supplier = lock_for_update(db, Supplier, supplier_id)
        if supplier is None:
            raise not_found("Supplier not found")
        if changes.get("name") is None:
            changes.pop("name", None)
        for f in _FIELDS:
            if f in changes:
                setattr(supplier, f, changes[f])
        if "address" in changes:
            supplier.address = changes["address"]
        if changes.get("reliability_rating") is not None:
            supplier.reliability_rating = _rating(changes["reliability_rating"])
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: int) -> int:
    with transaction(db, "delete_supplier", supplier_id=supplier_id):
        supplier = get_or_404(db, Supplier, supplier_id)
        if db.query(exists().where(ProductSupplier.supplier_id == supplier_id)).scalar():
            raise bad_request("Cannot delete supplier with linked products")
        if db.query(exists().where(DemandList.supplier_id == supplier_id)).scalar():
            raise bad_request("Cannot delete supplier with demand lists")
        db.delete(supplier)
    logger.info("supplier deleted id=%s", supplier_id)
    return supplier_id


def set_reliability(db: Session, supplier_id: int, rating) -> Supplier:
    value = _rating(rating)
    with transaction(db, "set_reliability", supplier_id=supplier_id):
        supplier = lock_for_update(db, Supplier, supplier_id)
        if supplier is None:
            raise not_found("Supplier not found")
        supplier.reliability_rating = value
    db.refresh(supplier)
    return supplier
