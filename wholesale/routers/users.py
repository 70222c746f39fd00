# wholesale/routers/users.py
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import (
    hash_password, verify_password, create_access_token, get_current_user, require_roles
)
from ..models.user import AppUser, ALLOWED_ROLES
from ..schemas.user import (
    UserCreate, LoginIn, ProfileUpdate, UserUpdate, PermissionsIn, UserRead, AuthOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

AdminGuard = require_roles("admin")


def _auth_payload(user: AppUser) -> dict:
    data = UserRead.model_validate(user).model_dump()
    data["token"] = create_access_token(sub=str(user.id), role=user.role)
    return data


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _get_user_or_404(db: Session, user_id: int) -> AppUser:
    user = db.get(AppUser, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _ensure_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(AppUser.id).filter(AppUser.email == email)
    if exclude_id is not None:
        q = q.filter(AppUser.id != exclude_id)
    if q.first() is not None:
        raise HTTPException(status_code=400, detail="User already exists")


def _apply_changes(db: Session, user: AppUser, payload: ProfileUpdate) -> None:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name"):
        user.name = changes["name"].strip()
    if changes.get("email"):
        email = _normalize_email(changes["email"])
        _ensure_email_free(db, email, exclude_id=user.id)
        user.email = email
    if changes.get("password"):
        user.hashed_password = hash_password(changes["password"])
    if changes.get("role"):
        if changes["role"] not in ALLOWED_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role '{changes['role']}'")
        user.role = changes["role"]
    if changes.get("is_active") is not None:
        user.is_active = bool(changes["is_active"])


# ---- Public ----
@router.post("", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)
    _ensure_email_free(db, email)

    user = AppUser(
        name=payload.name.strip(),
        email=email,
        hashed_password=hash_password(payload.password),
        role="user",
        permissions=[],
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user registered id=%s role=%s", user.id, user.role)
    return _auth_payload(user)


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.query(AppUser).filter(AppUser.email == _normalize_email(payload.email)).first()
    if (not user) or (not user.is_active) or (not verify_password(payload.password, user.hashed_password)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _auth_payload(user)


# ---- Own profile ----
@router.get("/profile", response_model=UserRead)
def get_profile(current: AppUser = Depends(get_current_user)):
    return current


@router.put("/profile", response_model=AuthOut)
def update_profile(
    payload: ProfileUpdate,
    current: AppUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _apply_changes(db, current, payload)
    db.commit()
    db.refresh(current)
    return _auth_payload(current)


# ---- Admin ----
@router.get("", response_model=List[UserRead], dependencies=[Depends(AdminGuard)])
def list_users(db: Session = Depends(get_db)):
    return db.query(AppUser).order_by(AppUser.id).all()


@router.get("/{user_id}", response_model=UserRead, dependencies=[Depends(AdminGuard)])
def get_user(user_id: int, db: Session = Depends(get_db)):
    return _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserRead, dependencies=[Depends(AdminGuard)])
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    _apply_changes(db, user, payload)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", dependencies=[Depends(AdminGuard)])
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    return {"id": user_id, "message": "User removed"}


@router.put("/{user_id}/permissions", response_model=UserRead, dependencies=[Depends(AdminGuard)])
def update_permissions(user_id: int, payload: PermissionsIn, db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    user.permissions = list(payload.permissions)
    db.commit()
    db.refresh(user)
    return user
