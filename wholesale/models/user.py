from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, JSON, CheckConstraint, text
)
from ..core.db import Base, utcnow

ALLOWED_ROLES = ("user", "manager", "admin")

class AppUser(Base):
    __tablename__ = "AppUser"

    id              = Column(Integer, primary_key=True, autoincrement=True)
    name            = Column(String(100), nullable=False)
    email           = Column(String(200), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    role            = Column(String(20),  nullable=False, server_default=text("'user'"))
    permissions     = Column(JSON,        nullable=False, default=list)
    is_active       = Column(Boolean,     nullable=False, default=True)
    created_at      = Column(DateTime,    nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role in ('user','manager','admin')",
            name="CK_AppUser_Role"
        ),
    )
