# wholesale/services/common.py
"""
Helpers shared by the service modules: money rounding, row locking,
error shortcuts and the commit/rollback wrapper every write goes through.
"""
from __future__ import annotations
from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterator, Optional, Type, TypeVar
import logging

from fastapi import HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.db import Base
from ..domain.constants import MONEY_PLACES

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


def _dialect(db: Session) -> str:
    bind = db.get_bind()
    return bind.dialect.name if bind is not None else "unknown"


def to_money(val, field: str = "amount") -> Decimal:
    try:
        d = val if isinstance(val, Decimal) else Decimal(str(val))
        return d.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise bad_request(f"{field} must be a valid decimal")


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def get_or_404(db: Session, model: Type[M], obj_id: int, label: Optional[str] = None) -> M:
    obj = db.get(model, obj_id)
    if obj is None:
        raise not_found(f"{label or model.__name__} not found")
    return obj


def lock_for_update(db: Session, model: Type[M], obj_id: int) -> Optional[M]:
    """
    Load a row for update and return the fresh instance.
    MSSQL takes UPDLOCK+ROWLOCK; other backends use SELECT ... FOR UPDATE
    (SQLite has no row locks and simply reads the row).
    """
    if _dialect(db) == "mssql":
        db.execute(
            text(f"SELECT id FROM [{model.__tablename__}] WITH (UPDLOCK, ROWLOCK) WHERE id=:id"),
            {"id": obj_id},
        )
        obj = db.get(model, obj_id)
        # keep pending in-memory changes of a row locked earlier in this unit of work
        if obj is not None and not db.is_modified(obj):
            db.refresh(obj)
        return obj
    return (
        db.query(model)
        .filter(model.id == obj_id)
        .with_for_update()
        .one_or_none()
    )


@contextmanager
def transaction(db: Session, op: str, **ctx) -> Iterator[Session]:
    """
    Run one service operation as a single unit of work.

    Commits on success. HTTPExceptions raised inside roll back and propagate
    unchanged, integrity violations become 400, anything else is logged and
    becomes 500.
    """
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning("%s integrity error %s: %s", op, ctx, e.orig)
        raise bad_request(f"{op} failed: duplicate value or invalid reference")
    except Exception as e:
        db.rollback()
        logger.exception("%s error %s", op, ctx)
        raise HTTPException(status_code=500, detail=f"{op} error: {type(e).__name__}: {e}")
