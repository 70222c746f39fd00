# wholesale/routers/customers.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.base import DeletedOut
from ..schemas.customer import CustomerCreate, CustomerUpdate, CustomerRead
from ..schemas.order import OrderRead
from ..services import customer_service

router = APIRouter(
    prefix="/api/customers",
    tags=["customers"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[CustomerRead])
def list_customers(db: Session = Depends(get_db)):
    return customer_service.list_customers(db)


@router.post("", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    return customer_service.create_customer(db, payload)


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return customer_service.get_customer(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerRead)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    return customer_service.update_customer(db, customer_id, payload)


@router.delete("/{customer_id}", response_model=DeletedOut)
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    return {"id": customer_service.delete_customer(db, customer_id)}


@router.get("/{customer_id}/orders", response_model=List[OrderRead])
def customer_orders(customer_id: int, db: Session = Depends(get_db)):
    return customer_service.customer_orders(db, customer_id)
