# wholesale/core/db.py
import os
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv, find_dotenv

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
DEFAULT_DOTENV = os.path.join(BASE_DIR, ".env")

# the process environment (CI, container) wins over .env; utf-8-sig drops a BOM
dotenv_path = DEFAULT_DOTENV if os.path.exists(DEFAULT_DOTENV) else find_dotenv(filename=".env", usecwd=True)
if dotenv_path:
    load_dotenv(dotenv_path, override=False, encoding="utf-8-sig")

DSN = os.environ.get("DATABASE_URL") or os.environ.get("MSSQL_DSN")
if not DSN or not DSN.strip():
    raise RuntimeError(f"DATABASE_URL / MSSQL_DSN is not set. .env: {dotenv_path or '(not found)'}")

url = make_url(DSN)
engine_kwargs = dict(pool_pre_ping=True)

backend = url.get_backend_name()  # e.g. 'sqlite', 'postgresql', 'mssql'
if backend.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # in-memory database: every session must share the single connection
    if url.database in (None, "", ":memory:"):
        engine_kwargs["poolclass"] = StaticPool
elif backend.startswith("mssql"):
    engine_kwargs.update(pool_size=5, max_overflow=10, fast_executemany=True)

engine = create_engine(DSN, **engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
