from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..domain.constants import DEFAULT_PAYMENT_METHOD
from .base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema, Money


class OrderItemIn(BaseCreateSchema):
    product: int = Field(ge=1)
    quantity: int = Field(ge=1)


class OrderCreate(BaseCreateSchema):
    customer: int = Field(ge=1)
    # emptiness is reported by the service as a 400 naming "items"
    items: List[OrderItemIn] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=1000)


class OrderUpdate(BaseUpdateSchema):
    notes: Optional[str] = Field(default=None, max_length=1000)


class FulfillItemIn(BaseCreateSchema):
    product: int = Field(ge=1)
    # bounds are checked against the order line in the service
    fulfilled_quantity: int


class OrderFulfillIn(BaseCreateSchema):
    items: List[FulfillItemIn] = Field(default_factory=list)


class PaymentIn(BaseCreateSchema):
    amount: Decimal
    method: str = Field(default=DEFAULT_PAYMENT_METHOD, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=200)


class OrderItemRead(BaseResponseSchema):
    id: int
    product: int = Field(validation_alias="product_id")
    quantity: int
    sell_price: Money
    fulfilled_quantity: int


class PaymentRead(BaseResponseSchema):
    amount: Money
    date: datetime
    method: str
    reference: Optional[str] = None


class OrderRead(BaseResponseSchema):
    id: int
    order_number: Optional[str] = None
    customer: int = Field(validation_alias="customer_id")
    order_date: datetime
    status: str
    items: List[OrderItemRead] = []
    total_amount: Money
    payment_status: str
    payment_history: List[PaymentRead] = Field(
        default_factory=list,
        validation_alias="payments",
        serialization_alias="paymentHistory",
    )
    notes: Optional[str] = None
    fulfillment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
