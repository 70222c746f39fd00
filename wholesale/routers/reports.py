# wholesale/routers/reports.py
from datetime import date
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.api import ok
from ..core.db import get_db
from ..core.security import get_current_user
from ..domain.constants import DEFAULT_FORECAST_DAYS, FORECAST_HISTORY_DAYS
from ..services import report_service
from ..services.report_service import DEFAULT_WINDOWS, resolve_window

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_user)],
)


Period = Tuple[Optional[date], Optional[date]]


# ---------- Shared: date range validation ----------
def validate_period(
    start: Optional[date] = Query(None, alias="startDate", description="ISO date, e.g. 2025-08-01"),
    end: Optional[date] = Query(None, alias="endDate", description="ISO date, inclusive"),
) -> Period:
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")
    return (start, end)


def _windowed(name: str, period: Period):
    return resolve_window(period[0], period[1], DEFAULT_WINDOWS[name])


@router.get("/sales")
def sales(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    window = _windowed("sales", period)
    return ok(report_service.sales_report(db, window), meta={"period": window.meta()})


@router.get("/inventory")
def inventory(db: Session = Depends(get_db)):
    return ok(report_service.inventory_report(db))


@router.get("/product-performance")
def product_performance(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    window = _windowed("product-performance", period)
    return ok(report_service.product_performance_report(db, window), meta={"period": window.meta()})


@router.get("/customer-analysis")
def customer_analysis(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    window = _windowed("customer-analysis", period)
    return ok(report_service.customer_analysis_report(db, window), meta={"period": window.meta()})


@router.get("/supplier-performance")
def supplier_performance(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    window = _windowed("supplier-performance", period)
    return ok(report_service.supplier_performance_report(db, window), meta={"period": window.meta()})


@router.get("/revenue")
def revenue(
    period: Period = Depends(validate_period),
    group_by: str = Query("day", alias="groupBy"),
    db: Session = Depends(get_db),
):
    window = _windowed("revenue", period)
    data = report_service.revenue_report(db, window, group_by)
    return ok(data, meta={"period": {**window.meta(), "groupBy": group_by}})


@router.get("/demand-forecast")
def demand_forecast(
    forecast_days: int = Query(DEFAULT_FORECAST_DAYS, alias="period", ge=1, le=365),
    db: Session = Depends(get_db),
):
    data = report_service.demand_forecast_report(db, forecast_days)
    return ok(data, meta={"period": {"forecastDays": forecast_days, "historyDays": FORECAST_HISTORY_DAYS}})


@router.get("/profit-margins")
def profit_margins(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    window = _windowed("profit-margins", period)
    return ok(report_service.profit_margin_report(db, window), meta={"period": window.meta()})


# older clients call the singular path
@router.get("/profit-margin", include_in_schema=False)
def profit_margin_alias(period: Period = Depends(validate_period), db: Session = Depends(get_db)):
    return profit_margins(period=period, db=db)
