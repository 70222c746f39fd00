from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .base import Address, BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema, Money


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    v = (v or "").strip()
    return v or None


# outstandingBalance is deliberately absent from the input schemas:
# only order, payment and cancellation operations move it.
class CustomerCreate(BaseCreateSchema):
    name: str = Field(min_length=1, max_length=200)
    store_id: Optional[str] = Field(default=None, max_length=50)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    payment_terms: Optional[str] = None
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None

    @field_validator("store_id")
    @classmethod
    def _blank_store_id(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class CustomerUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    store_id: Optional[str] = Field(default=None, max_length=50)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    payment_terms: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("store_id")
    @classmethod
    def _blank_store_id(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class CustomerRead(BaseResponseSchema):
    id: int
    name: str
    store_id: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    payment_terms: Optional[str] = None
    credit_limit: Money
    outstanding_balance: Money
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
