from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from .base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema

RoleLiteral = Literal["user", "manager", "admin"]


class UserCreate(BaseCreateSchema):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    # no role here: public sign-ups are always "user", admins promote via PUT /api/users/{id}


class LoginIn(BaseCreateSchema):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)


class UserUpdate(ProfileUpdate):
    role: Optional[RoleLiteral] = None
    is_active: Optional[bool] = None


class PermissionsIn(BaseCreateSchema):
    permissions: List[str]


class UserRead(BaseResponseSchema):
    id: int
    name: str
    email: str
    role: RoleLiteral
    permissions: List[str] = []
    is_active: bool
    created_at: datetime


class AuthOut(UserRead):
    token: str
    token_type: str = "bearer"
