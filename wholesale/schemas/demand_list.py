from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema, Money


class DemandItemIn(BaseCreateSchema):
    product: int = Field(ge=1)
    quantity: int = Field(ge=1)
    related_orders: List[int] = Field(default_factory=list)


class DemandListCreate(BaseCreateSchema):
    supplier: int = Field(ge=1)
    items: List[DemandItemIn] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=1000)


class DemandListUpdate(BaseUpdateSchema):
    notes: Optional[str] = Field(default=None, max_length=1000)
    # replacing the lines is only possible while the list is a Draft
    items: Optional[List[DemandItemIn]] = None


class AvailabilityIn(BaseCreateSchema):
    product: int = Field(ge=1)
    available_quantity: int = Field(ge=0)


class DemandFulfillIn(BaseCreateSchema):
    items: List[AvailabilityIn] = Field(default_factory=list)


class DemandListItemRead(BaseResponseSchema):
    id: int
    product: int = Field(validation_alias="product_id")
    quantity: int
    purchase_price: Money
    available_quantity: int
    status: str
    related_orders: List[int] = Field(
        default_factory=list,
        validation_alias="related_order_ids",
        serialization_alias="relatedOrders",
    )


class DemandListRead(BaseResponseSchema):
    id: int
    supplier: int = Field(validation_alias="supplier_id")
    demand_date: datetime
    status: str
    items: List[DemandListItemRead] = []
    estimated_total: Money
    notes: Optional[str] = None
    fulfillment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
