# wholesale/main.py
import os, json, logging, time
from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy import text

from .core.db import get_db, engine, Base
from . import models  # noqa: F401  registers every table on Base.metadata

# --- Routers ---
from .routers.products import router as products_router
from .routers.customers import router as customers_router
from .routers.suppliers import router as suppliers_router
from .routers.orders import router as orders_router
from .routers.demand_lists import router as demand_lists_router
from .routers.reports import router as reports_router
from .routers.users import router as users_router

# --- API envelopes ---
from .core.api import ok, fail, UTF8JSONResponse

# --- CORS ---
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("wholesale")

SERVICE_NAME = "Wholesale Back Office"

app = FastAPI(title=SERVICE_NAME, default_response_class=UTF8JSONResponse)


# JSON Content-Type charset + one log line per request
@app.middleware("http")
async def _log_and_force_json_charset(request: Request, call_next):
    started = time.perf_counter()
    resp = await call_next(request)
    ct = resp.headers.get("content-type", "")
    if ct.lower().startswith("application/json") and "charset=" not in ct.lower():
        resp.headers["content-type"] = "application/json; charset=utf-8"
    logger.info(
        "%s %s -> %s (%.1f ms)",
        request.method, request.url.path, resp.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return resp


# -----------------------------
# Global error envelope
# -----------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_to_envelope(request: Request, exc: StarletteHTTPException):
    resp = fail(str(exc.detail) if exc.detail else exc.__class__.__name__, status_code=exc.status_code)
    if exc.headers:
        resp.headers.update(exc.headers)
    return resp


@app.exception_handler(RequestValidationError)
async def validation_exception_to_envelope(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    # loc is e.g. ("body", "items", 0, "quantity"); name the field, not the container
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else (first.get("msg") or "Validation error")
    return fail(message, status_code=400, meta={"errors": errors})


@app.exception_handler(IntegrityError)
async def integrity_error_to_envelope(request: Request, exc: IntegrityError):
    logger.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return fail("Duplicate value or invalid reference", status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_to_envelope(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return fail(f"{type(exc).__name__}: {exc}", status_code=500)


# -----------------------------
# CORS (.env)
# -----------------------------
def _parse_origins(env_val: str | None):
    if not env_val or env_val.strip() == "*":
        return ["*"]
    try:
        parsed = json.loads(env_val)
        if isinstance(parsed, list):
            return [str(x) for x in parsed]
    except ValueError:
        pass
    return [s.strip() for s in env_val.split(",") if s.strip()]


ALLOWED_ORIGINS = _parse_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
logger.info("CORS allow_origins = %s", ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    # browsers reject credentials with a wildcard origin
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _env_flag(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


# ---- startup: create missing tables (alembic owns real deployments) ----
@app.on_event("startup")
def _ensure_tables():
    if not _env_flag("AUTO_CREATE_TABLES", True):
        return
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("tables ensured on %s", engine.url.get_backend_name())


# ---- Health ----
@app.get("/health")
def health():
    return ok({"service": SERVICE_NAME})


@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    val = db.execute(text("SELECT 1")).scalar()
    return ok({"db": "ok", "select1": val})


# =========================
# Routers
# =========================
app.include_router(users_router)
app.include_router(products_router)
app.include_router(customers_router)
app.include_router(suppliers_router)
app.include_router(orders_router)
app.include_router(demand_lists_router)
app.include_router(reports_router)
