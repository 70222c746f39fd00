from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field

from .base import Address, BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema, Money


class SupplierCreate(BaseCreateSchema):
    name: str = Field(min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    reliability_rating: Decimal = Field(default=Decimal("3"), ge=0, le=5)
    payment_terms: Optional[str] = None
    notes: Optional[str] = None


class SupplierUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    reliability_rating: Optional[Decimal] = Field(default=None, ge=0, le=5)
    payment_terms: Optional[str] = None
    notes: Optional[str] = None


class ReliabilityIn(BaseCreateSchema):
    # range is checked in the service so the message names the field
    reliability_rating: Decimal


class SupplierRead(BaseResponseSchema):
    id: int
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    reliability_rating: Money
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
