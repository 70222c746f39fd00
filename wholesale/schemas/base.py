"""
Base schema classes.

Request and response bodies use camelCase keys while the ORM uses
snake_case attributes; every schema inherits one of the bases below so the
alias mapping is configured in a single place.

Money values are Decimal internally and plain JSON numbers on the wire.
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class BaseResponseSchema(BaseModel):
    """
    Base class for response schemas read from ORM objects.

    Reference columns (customer_id, product_id, ...) are exposed under the
    entity name, e.g. ``customer: int = Field(validation_alias="customer_id")``.
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class BaseUpdateSchema(BaseModel):
    """All fields optional; only the keys the client sent are applied."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Address(BaseCreateSchema):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class StatusIn(BaseCreateSchema):
    status: str


class DeletedOut(BaseModel):
    id: int
