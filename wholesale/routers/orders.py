# wholesale/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.base import DeletedOut, StatusIn
from ..schemas.order import OrderCreate, OrderUpdate, OrderFulfillIn, PaymentIn, OrderRead
from ..services import order_service

router = APIRouter(
    prefix="/api/orders",
    tags=["orders"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[OrderRead])
def list_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    customer: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return order_service.list_orders(db, status=status_filter, customer_id=customer)


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    return order_service.create_order(
        db,
        customer_id=payload.customer,
        items=payload.items,
        notes=payload.notes,
    )


@router.get("/status/{order_status}", response_model=List[OrderRead])
def orders_by_status(order_status: str, db: Session = Depends(get_db)):
    return order_service.list_orders_by_status(db, order_status)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get_order(db, order_id)


@router.put("/{order_id}", response_model=OrderRead)
def update_order(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db)):
    return order_service.update_order(db, order_id, notes=payload.notes)


@router.delete("/{order_id}", response_model=DeletedOut)
def delete_order(order_id: int, db: Session = Depends(get_db)):
    return {"id": order_service.delete_order(db, order_id)}


@router.put("/{order_id}/fulfill", response_model=OrderRead)
def fulfill_order(order_id: int, payload: OrderFulfillIn, db: Session = Depends(get_db)):
    return order_service.fulfill_order(db, order_id, payload.items)


@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    return order_service.update_order_status(db, order_id, payload.status)


@router.post("/{order_id}/payment", response_model=OrderRead)
def record_payment(order_id: int, payload: PaymentIn, db: Session = Depends(get_db)):
    return order_service.record_payment(
        db,
        order_id,
        amount=payload.amount,
        method=payload.method,
        reference=payload.reference,
    )
