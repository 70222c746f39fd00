# wholesale/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.base import DeletedOut
from ..schemas.product import ProductCreate, ProductUpdate, ProductRead, InventoryIn
from ..services import product_service

router = APIRouter(
    prefix="/api/products",
    tags=["products"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return product_service.list_products(db)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return product_service.create_product(db, payload)


# fixed paths first so they are not captured by /{product_id}
@router.get("/lowstock", response_model=List[ProductRead])
def low_stock_products(db: Session = Depends(get_db)):
    return product_service.low_stock_products(db)


@router.get("/supplier/{supplier_id}", response_model=List[ProductRead])
def products_by_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return product_service.products_by_supplier(db, supplier_id)


@router.get("/category/{category}", response_model=List[ProductRead])
def products_by_category(category: str, db: Session = Depends(get_db)):
    return product_service.products_by_category(db, category)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return product_service.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return product_service.update_product(db, product_id, payload)


@router.delete("/{product_id}", response_model=DeletedOut)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    return {"id": product_service.delete_product(db, product_id)}


@router.put("/{product_id}/inventory", response_model=ProductRead)
def update_inventory(product_id: int, payload: InventoryIn, db: Session = Depends(get_db)):
    return product_service.set_inventory(db, product_id, payload.quantity_on_hand)
