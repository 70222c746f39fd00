# wholesale/core/security.py
import os
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security.utils import get_authorization_scheme_param
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .db import get_db
from ..models.user import AppUser

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = os.getenv("JWT_ALG", "HS256")
# 30 days by default
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

# ---- Password helpers ----
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

# ---- JWT ----
def create_access_token(sub: str, role: str, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.now(tz=timezone.utc) + timedelta(
        minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {"sub": sub, "role": role, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

def _credentials_error(detail: str = "Not authorized, no token") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

# ---- Tolerant Authorization header parsing ----
def _extract_bearer_token(request: Request) -> str:
    """
    Parses the 'Authorization' header leniently:
      - extra spaces:      "Bearer   <JWT>"
      - doubled scheme:    "Bearer Bearer <JWT>"
      - quoted value:      Authorization: "Bearer <JWT>"
    """
    auth = request.headers.get("Authorization")
    if not auth:
        raise _credentials_error()

    scheme, param = get_authorization_scheme_param(auth.strip(" \"'"))
    if scheme.lower() != "bearer":
        raise _credentials_error()

    # drop a repeated scheme, a JWT never contains spaces
    parts = param.split()
    if parts and parts[0].lower() == "bearer":
        parts = parts[1:]
    token = "".join(parts)
    if not token:
        raise _credentials_error()
    return token

# ---- Resolve user from token ----
def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(_extract_bearer_token),
) -> AppUser:
    try:
        data = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        sub = data.get("sub")
        if not sub:
            raise _credentials_error("Not authorized, token failed")
        user_id = int(sub)
    except (JWTError, ValueError):
        raise _credentials_error("Not authorized, token failed")

    user = db.get(AppUser, user_id)
    if not user or not user.is_active:
        raise _credentials_error("Not authorized, token failed")
    return user

# ---- Role guard ----
def require_roles(*roles: str):
    UserDep = Annotated[AppUser, Depends(get_current_user)]
    def _dep(current: UserDep) -> AppUser:
        if current.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not authorized, requires role: {' | '.join(roles)}",
            )
        return current
    return _dep
