# wholesale/routers/demand_lists.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import get_current_user
from ..schemas.base import DeletedOut, StatusIn
from ..schemas.demand_list import DemandListCreate, DemandListUpdate, DemandFulfillIn, DemandListRead
from ..services import demand_list_service

router = APIRouter(
    prefix="/api/demandlists",
    tags=["demandlists"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[DemandListRead])
def list_demand_lists(
    supplier: Optional[int] = Query(None, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return demand_list_service.list_demand_lists(db, supplier_id=supplier, status=status_filter)


@router.post("", response_model=DemandListRead, status_code=status.HTTP_201_CREATED)
def create_demand_list(payload: DemandListCreate, db: Session = Depends(get_db)):
    return demand_list_service.create_demand_list(
        db,
        supplier_id=payload.supplier,
        items=payload.items,
        notes=payload.notes,
    )


@router.get("/supplier/{supplier_id}", response_model=List[DemandListRead])
def demand_lists_by_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return demand_list_service.demand_lists_by_supplier(db, supplier_id)


@router.get("/{demand_list_id}", response_model=DemandListRead)
def get_demand_list(demand_list_id: int, db: Session = Depends(get_db)):
    return demand_list_service.get_demand_list(db, demand_list_id)


@router.put("/{demand_list_id}", response_model=DemandListRead)
def update_demand_list(demand_list_id: int, payload: DemandListUpdate, db: Session = Depends(get_db)):
    return demand_list_service.update_demand_list(db, demand_list_id, payload)


@router.delete("/{demand_list_id}", response_model=DeletedOut)
def delete_demand_list(demand_list_id: int, db: Session = Depends(get_db)):
    return {"id": demand_list_service.delete_demand_list(db, demand_list_id)}


@router.put("/{demand_list_id}/status", response_model=DemandListRead)
def update_demand_list_status(demand_list_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    return demand_list_service.update_demand_list_status(db, demand_list_id, payload.status)


@router.post("/{demand_list_id}/fulfill", response_model=DemandListRead)
def process_fulfillment(demand_list_id: int, payload: DemandFulfillIn, db: Session = Depends(get_db)):
    return demand_list_service.process_fulfillment(db, demand_list_id, payload.items)
