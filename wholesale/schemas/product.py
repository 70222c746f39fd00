from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from .base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema, Money


class ProductSupplierIn(BaseCreateSchema):
    supplier: int = Field(ge=1)
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    is_preferred: bool = False
    last_purchase_date: Optional[datetime] = None


class ProductCustomerPriceIn(BaseCreateSchema):
    customer: int = Field(ge=1)
    custom_sell_price: Optional[Decimal] = Field(default=None, ge=0)


class ProductCreate(BaseCreateSchema):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(default=None, max_length=50)
    category: Optional[str] = None
    company_name: Optional[str] = None
    retail_price: Decimal = Field(ge=0)
    purchase_price: Decimal = Field(ge=0)
    sell_price: Decimal = Field(ge=0)
    quantity_on_hand: int = Field(default=0, ge=0)
    suppliers: List[ProductSupplierIn] = Field(default_factory=list)
    customers: List[ProductCustomerPriceIn] = Field(default_factory=list)

    @field_validator("sku")
    @classmethod
    def _blank_sku(cls, v: Optional[str]) -> Optional[str]:
        # "" would collide on the unique index
        v = (v or "").strip()
        return v or None


class ProductUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(default=None, max_length=50)
    category: Optional[str] = None
    company_name: Optional[str] = None
    retail_price: Optional[Decimal] = Field(default=None, ge=0)
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    sell_price: Optional[Decimal] = Field(default=None, ge=0)
    quantity_on_hand: Optional[int] = Field(default=None, ge=0)
    suppliers: Optional[List[ProductSupplierIn]] = None
    customers: Optional[List[ProductCustomerPriceIn]] = None


class InventoryIn(BaseCreateSchema):
    quantity_on_hand: int = Field(ge=0)


class ProductSupplierRead(BaseResponseSchema):
    supplier: int = Field(validation_alias="supplier_id")
    purchase_price: Optional[Money] = None
    is_preferred: bool
    last_purchase_date: Optional[datetime] = None


class ProductCustomerPriceRead(BaseResponseSchema):
    customer: int = Field(validation_alias="customer_id")
    custom_sell_price: Optional[Money] = None


class ProductRead(BaseResponseSchema):
    id: int
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    company_name: Optional[str] = None
    retail_price: Money
    purchase_price: Money
    sell_price: Money
    quantity_on_hand: int
    suppliers: List[ProductSupplierRead] = []
    customers: List[ProductCustomerPriceRead] = []
    created_at: datetime
    updated_at: datetime
