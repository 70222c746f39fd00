# wholesale/routers/suppliers.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.base import DeletedOut
from ..schemas.product import ProductRead
from ..schemas.supplier import SupplierCreate, SupplierUpdate, SupplierRead, ReliabilityIn
from ..services import product_service, supplier_service

router = APIRouter(
    prefix="/api/suppliers",
    tags=["suppliers"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[SupplierRead])
def list_suppliers(db: Session = Depends(get_db)):
    return supplier_service.list_suppliers(db)


@router.post("", response_model=SupplierRead, status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)):
    return supplier_service.create_supplier(db, payload)


@router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return supplier_service.get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierRead)
def update_supplier(supplier_id: int, payload: SupplierUpdate, db: Session = Depends(get_db)):
    return supplier_service.update_supplier(db, supplier_id, payload)


@router.delete("/{supplier_id}", response_model=DeletedOut)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return {"id": supplier_service.delete_supplier(db, supplier_id)}


@router.get("/{supplier_id}/products", response_model=List[ProductRead])
def supplier_products(supplier_id: int, db: Session = Depends(get_db)):
    supplier_service.get_supplier(db, supplier_id)
    return product_service.products_by_supplier(db, supplier_id)


@router.put("/{supplier_id}/reliability", response_model=SupplierRead)
def update_reliability(supplier_id: int, payload: ReliabilityIn, db: Session = Depends(get_db)):
    return supplier_service.set_reliability(db, supplier_id, payload.reliability_rating)
