"""
Read-only report computations.

Every report loads the committed rows it needs, folds them into
per-entity accumulators (dicts keyed by entity id, insertion ordered) and
returns plain JSON-ready dicts. Sums are kept in Decimal and converted to
float only on output.
"""
from __future__ import annotations
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, NamedTuple, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..core.db import utcnow
from ..models import Order, OrderItem, Product, Customer, Supplier, DemandList
from ..domain.state_machine import OrderStatus, DemandListStatus
from ..domain.constants import (
    MONEY_PLACES, LOW_STOCK_THRESHOLD, OVERSTOCK_THRESHOLD,
    DEFAULT_REPORT_DAYS, DEFAULT_PARTY_REPORT_DAYS, FORECAST_HISTORY_DAYS,
    DEFAULT_FORECAST_DAYS, FORECAST_SAFETY_FACTOR, NO_STOCKOUT_DAYS,
    AT_RISK_CUSTOMER_DAYS, TOP_N, AT_RISK_PRODUCTS_N,
)
from .common import bad_request

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
SOLD_STATUSES = (OrderStatus.FULFILLED, OrderStatus.PARTIAL)
GROUP_BY_OPTIONS = ("day", "week", "month")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class Window(NamedTuple):
    start: datetime
    end: datetime

    def meta(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


# =============================================================================
# PURE HELPERS
# =============================================================================

def resolve_window(
    start: Optional[date],
    end: Optional[date],
    default_days: int,
    now: Optional[datetime] = None,
) -> Window:
    """
    Turn optional start/end dates into a datetime window.
    Missing start defaults to `default_days` before the end date (or before
    now when no end is given); end is inclusive to the end of its day.
    """
    now = now or utcnow()
    if start:
        start_dt = datetime.combine(start, time.min)
    elif end:
        start_dt = datetime.combine(end, time.min) - timedelta(days=default_days)
    else:
        start_dt = now - timedelta(days=default_days)
    end_dt = datetime.combine(end or now.date(), time.max)
    if end_dt < start_dt:
        raise bad_request("endDate must not be before startDate")
    return Window(start_dt, end_dt)


def fulfilled_qty(item) -> int:
    return max(0, min(int(item.quantity or 0), int(item.fulfilled_quantity or 0)))


def margin_percent(profit: Decimal, revenue: Decimal) -> float:
    if revenue <= 0:
        return 0.0
    return float((profit / revenue * HUNDRED).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP))


def percent(part: Decimal, whole: Decimal) -> float:
    return margin_percent(Decimal(part), Decimal(whole))


def money(value) -> float:
    return float(Decimal(value or 0).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP))


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def period_key(moment: datetime, group_by: str) -> str:
    if group_by == "week":
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    if group_by == "month":
        return f"{moment.year}-{moment.month:02d}"
    return moment.date().isoformat()


def forecast_product(total_demand: int, current_stock: int, forecast_days: int,
                     history_days: int = FORECAST_HISTORY_DAYS) -> Dict[str, Any]:
    """Linear demand projection for one product."""
    avg = Decimal(total_demand) / Decimal(history_days)
    projected = round_half_up(avg * forecast_days)
    if avg > 0:
        days_left = round_half_up(Decimal(current_stock) / avg)
    else:
        days_left = NO_STOCKOUT_DAYS
    recommended = max(0, round_half_up(Decimal(projected) * FORECAST_SAFETY_FACTOR - current_stock))
    return {
        "averageDailyDemand": float(avg.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)),
        "totalDemand90Days": total_demand,
        "projectedDemand": projected,
        "daysUntilStockout": days_left,
        "recommendedOrder": recommended,
    }


def _category(product: Optional[Product]) -> str:
    return (product.category if product is not None else None) or UNCATEGORIZED


def _sold_orders(db: Session, window: Window) -> List[Order]:
    return (
        db.query(Order)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.customer),
        )
        .filter(
            Order.order_date >= window.start,
            Order.order_date <= window.end,
            Order.status.in_(SOLD_STATUSES),
        )
        .order_by(Order.order_date, Order.id)
        .all()
    )


# =============================================================================
# SALES
# =============================================================================

def sales_report(db: Session, window: Window) -> Dict[str, Any]:
    orders = _sold_orders(db, window)

    total_sales = ZERO
    by_product: Dict[int, Dict[str, Any]] = {}
    by_category: Dict[str, Dict[str, Any]] = {}
    by_customer: Dict[int, Dict[str, Any]] = {}
    by_date: Dict[str, Decimal] = {}

    for order in orders:
        total_sales += order.total_amount
        day = order.order_date.date().isoformat()
        by_date[day] = by_date.get(day, ZERO) + order.total_amount

        cust = by_customer.setdefault(order.customer_id, {
            "customer": order.customer_id,
            "name": order.customer.name if order.customer else "Unknown",
            "orders": 0,
            "total": ZERO,
        })
        cust["orders"] += 1
        cust["total"] += order.total_amount

        for item in order.items:
            qty = fulfilled_qty(item)
            revenue = item.sell_price * qty
            prod = by_product.setdefault(item.product_id, {
                "product": item.product_id,
                "name": item.product.name if item.product else "Unknown",
                "total": 0,
                "quantity": 0,
                "revenue": ZERO,
            })
            prod["total"] += 1
            prod["quantity"] += qty
            prod["revenue"] += revenue

            cat_name = _category(item.product)
            cat = by_category.setdefault(cat_name, {"category": cat_name, "total": 0, "quantity": 0, "revenue": ZERO})
            cat["total"] += 1
            cat["quantity"] += qty
            cat["revenue"] += revenue

    return {
        "totalSales": money(total_sales),
        "totalOrders": len(orders),
        "salesByProduct": [{**p, "revenue": money(p["revenue"])} for p in by_product.values()],
        "salesByCategory": [{**c, "revenue": money(c["revenue"])} for c in by_category.values()],
        "salesByCustomer": [{**c, "total": money(c["total"])} for c in by_customer.values()],
        "salesTimeline": [{"date": d, "amount": money(by_date[d])} for d in sorted(by_date)],
    }


# =============================================================================
# INVENTORY
# =============================================================================

def inventory_report(db: Session) -> Dict[str, Any]:
    products = db.query(Product).order_by(Product.id).all()

    total_value = ZERO
    by_category: Dict[str, Dict[str, Any]] = {}
    low, out, over = [], [], []

    for p in products:
        qty = int(p.quantity_on_hand or 0)
        value = p.purchase_price * qty
        total_value += value

        cat_name = _category(p)
        cat = by_category.setdefault(cat_name, {"category": cat_name, "count": 0, "value": ZERO, "quantityTotal": 0})
        cat["count"] += 1
        cat["value"] += value
        cat["quantityTotal"] += qty

        row = {"id": p.id, "name": p.name, "sku": p.sku, "category": p.category}
        if qty == 0:
            out.append(row)
        elif qty <= LOW_STOCK_THRESHOLD:
            low.append({**row, "quantityOnHand": qty})
        elif qty >= OVERSTOCK_THRESHOLD:
            over.append({**row, "quantityOnHand": qty, "value": money(value)})

    return {
        "totalProducts": len(products),
        "inventoryValue": money(total_value),
        "inventoryByCategory": [{**c, "value": money(c["value"])} for c in by_category.values()],
        "lowStockItems": low,
        "outOfStockItems": out,
        "overstockItems": over,
        "stockThresholds": {"low": LOW_STOCK_THRESHOLD, "overstock": OVERSTOCK_THRESHOLD},
    }


# =============================================================================
# PRODUCT PERFORMANCE
# =============================================================================

def product_performance_report(db: Session, window: Window) -> Dict[str, Any]:
    perf: Dict[int, Dict[str, Any]] = {}
    for p in db.query(Product).order_by(Product.id).all():
        perf[p.id] = {
            "id": p.id, "name": p.name, "sku": p.sku, "category": _category(p),
            "quantitySold": 0, "revenue": ZERO, "cost": ZERO, "profit": ZERO,
            "timesOrdered": 0, "_purchase_price": p.purchase_price,
        }

    for order in _sold_orders(db, window):
        for item in order.items:
            row = perf.get(item.product_id)
            if row is None:
                continue
            qty = fulfilled_qty(item)
            revenue = item.sell_price * qty
            cost = row["_purchase_price"] * qty
            row["quantitySold"] += qty
            row["revenue"] += revenue
            row["cost"] += cost
            row["profit"] += revenue - cost
            row["timesOrdered"] += 1

    sold = [r for r in perf.values() if r["quantitySold"] > 0]
    sold.sort(key=lambda r: r["profit"], reverse=True)

    categories: Dict[str, Dict[str, Any]] = {}
    for r in sold:
        cat = categories.setdefault(r["category"], {
            "category": r["category"], "productCount": 0, "quantitySold": 0,
            "revenue": ZERO, "cost": ZERO, "profit": ZERO,
        })
        cat["productCount"] += 1
        cat["quantitySold"] += r["quantitySold"]
        cat["revenue"] += r["revenue"]
        cat["cost"] += r["cost"]
        cat["profit"] += r["profit"]

    def _out(r: Dict[str, Any]) -> Dict[str, Any]:
        out = {k: v for k, v in r.items() if not k.startswith("_")}
        out["marginPercentage"] = margin_percent(r["profit"], r["revenue"])
        for k in ("revenue", "cost", "profit"):
            out[k] = money(r[k])
        return out

    rows = [_out(r) for r in sold]
    return {
        "productPerformance": rows,
        "topPerformers": rows[:TOP_N],
        "categoryPerformance": [_out(c) for c in categories.values()],
    }


# =============================================================================
# CUSTOMER ANALYSIS
# =============================================================================

def customer_analysis_report(db: Session, window: Window, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    stats: Dict[int, Dict[str, Any]] = {}
    for c in db.query(Customer).order_by(Customer.id).all():
        stats[c.id] = {
            "id": c.id, "name": c.name, "storeId": c.store_id,
            "orderCount": 0, "totalSpent": ZERO, "lastOrderDate": None,
            "outstandingBalance": c.outstanding_balance or ZERO,
        }

    orders = (
        db.query(Order)
        .filter(
            Order.order_date >= window.start,
            Order.order_date <= window.end,
            Order.status != OrderStatus.CANCELLED,
        )
        .all()
    )
    for order in orders:
        row = stats.get(order.customer_id)
        if row is None:
            continue
        row["orderCount"] += 1
        row["totalSpent"] += order.total_amount
        if row["lastOrderDate"] is None or order.order_date > row["lastOrderDate"]:
            row["lastOrderDate"] = order.order_date

    rows = []
    for r in stats.values():
        count = r["orderCount"]
        aov = (r["totalSpent"] / count) if count else ZERO
        last = r["lastOrderDate"]
        rows.append({
            **r,
            "totalSpent": money(r["totalSpent"]),
            "outstandingBalance": money(r["outstandingBalance"]),
            "averageOrderValue": money(aov),
            "lastOrderDate": last.isoformat() if last else None,
            "recency": round_half_up(Decimal((now - last).total_seconds()) / Decimal(86400)) if last else None,
        })

    return {
        "customerAnalysis": rows,
        "topCustomers": sorted(rows, key=lambda r: r["totalSpent"], reverse=True)[:TOP_N],
        "mostFrequent": sorted(rows, key=lambda r: r["orderCount"], reverse=True)[:TOP_N],
        "highestAOV": sorted(
            (r for r in rows if r["orderCount"] > 0),
            key=lambda r: r["averageOrderValue"], reverse=True,
        )[:TOP_N],
        "atRiskCustomers": sorted(
            (r for r in rows if r["recency"] is not None and r["recency"] > AT_RISK_CUSTOMER_DAYS),
            key=lambda r: r["recency"],
        ),
    }


# =============================================================================
# SUPPLIER PERFORMANCE
# =============================================================================

def supplier_performance_report(db: Session, window: Window) -> Dict[str, Any]:
    stats: Dict[int, Dict[str, Any]] = {}
    for s in db.query(Supplier).order_by(Supplier.id).all():
        stats[s.id] = {
            "id": s.id, "name": s.name,
            "demandListCount": 0, "itemsRequested": 0, "itemsFulfilled": 0,
            "totalPurchased": ZERO,
            "reliabilityRating": float(s.reliability_rating or 0),
            "lastFulfillmentDate": None,
        }

    # Partial lists carry no fulfillment date; their last update stands in for it
    effective = func.coalesce(DemandList.fulfillment_date, DemandList.updated_at)
    lists = (
        db.query(DemandList, effective.label("effective_date"))
        .options(selectinload(DemandList.items))
        .filter(
            DemandList.status.in_((DemandListStatus.FULFILLED, DemandListStatus.PARTIAL)),
            effective >= window.start,
            effective <= window.end,
        )
        .all()
    )
    for dl, when in lists:
        row = stats.get(dl.supplier_id)
        if row is None:
            continue
        row["demandListCount"] += 1
        for item in dl.items:
            available = int(item.available_quantity or 0)
            row["itemsRequested"] += int(item.quantity)
            row["itemsFulfilled"] += available
            row["totalPurchased"] += item.purchase_price * available
        if when is not None and (row["lastFulfillmentDate"] is None or when > row["lastFulfillmentDate"]):
            row["lastFulfillmentDate"] = when

    rows = []
    for r in stats.values():
        last = r["lastFulfillmentDate"]
        rows.append({
            **r,
            "totalPurchased": money(r["totalPurchased"]),
            "fulfilledPercent": percent(r["itemsFulfilled"], r["itemsRequested"]),
            "lastFulfillmentDate": last.isoformat() if isinstance(last, datetime) else last,
        })

    return {
        "supplierPerformance": rows,
        "topSuppliers": sorted(rows, key=lambda r: r["totalPurchased"], reverse=True)[:TOP_N],
        "mostReliable": sorted(
            (r for r in rows if r["itemsRequested"] > 0),
            key=lambda r: r["fulfilledPercent"], reverse=True,
        )[:TOP_N],
    }


# =============================================================================
# REVENUE
# =============================================================================

def revenue_report(db: Session, window: Window, group_by: str = "day") -> Dict[str, Any]:
    if group_by not in GROUP_BY_OPTIONS:
        raise bad_request(f"groupBy must be one of: {', '.join(GROUP_BY_OPTIONS)}")

    buckets: Dict[str, Dict[str, Any]] = {}
    total_revenue = total_cost = ZERO

    for order in _sold_orders(db, window):
        key = period_key(order.order_date, group_by)
        bucket = buckets.setdefault(key, {"period": key, "revenue": ZERO, "cost": ZERO, "orders": 0})
        cost = sum(
            ((item.product.purchase_price * fulfilled_qty(item)) for item in order.items if item.product),
            ZERO,
        )
        bucket["revenue"] += order.total_amount
        bucket["cost"] += cost
        bucket["orders"] += 1
        total_revenue += order.total_amount
        total_cost += cost

    timeline = []
    for key in sorted(buckets):
        b = buckets[key]
        timeline.append({
            "period": key,
            "revenue": money(b["revenue"]),
            "cost": money(b["cost"]),
            "profit": money(b["revenue"] - b["cost"]),
            "orders": b["orders"],
        })

    total_profit = total_revenue - total_cost
    return {
        "totalRevenue": money(total_revenue),
        "totalCost": money(total_cost),
        "totalProfit": money(total_profit),
        "profitMargin": margin_percent(total_profit, total_revenue),
        "timelineData": timeline,
    }


# =============================================================================
# DEMAND FORECAST
# =============================================================================

def demand_forecast_report(
    db: Session,
    forecast_days: int = DEFAULT_FORECAST_DAYS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    if forecast_days < 1 or forecast_days > 365:
        raise bad_request("period must be between 1 and 365")

    now = now or utcnow()
    history = Window(now - timedelta(days=FORECAST_HISTORY_DAYS), now)

    demand: Dict[int, int] = {}
    for order in _sold_orders(db, history):
        for item in order.items:
            demand[item.product_id] = demand.get(item.product_id, 0) + fulfilled_qty(item)

    forecasts = []
    for p in db.query(Product).order_by(Product.id).all():
        stock = int(p.quantity_on_hand or 0)
        forecasts.append({
            "id": p.id,
            "name": p.name,
            "category": _category(p),
            "currentStock": stock,
            **forecast_product(demand.get(p.id, 0), stock, forecast_days),
        })

    categories: Dict[str, Dict[str, Any]] = {}
    for f in forecasts:
        cat = categories.setdefault(f["category"], {
            "category": f["category"], "totalProjectedDemand": 0,
            "totalCurrentStock": 0, "avgDaysUntilStockout": 0, "productCount": 0,
        })
        cat["totalProjectedDemand"] += f["projectedDemand"]
        cat["totalCurrentStock"] += f["currentStock"]
        cat["avgDaysUntilStockout"] += f["daysUntilStockout"]
        cat["productCount"] += 1
    for cat in categories.values():
        cat["avgDaysUntilStockout"] = round_half_up(
            Decimal(cat["avgDaysUntilStockout"]) / cat["productCount"]
        )

    at_risk = sorted(
        (f for f in forecasts if f["averageDailyDemand"] > 0),
        key=lambda f: f["daysUntilStockout"],
    )[:AT_RISK_PRODUCTS_N]

    return {
        "forecastPeriod": forecast_days,
        "productForecasts": forecasts,
        "atRiskProducts": at_risk,
        "categoryForecasts": list(categories.values()),
    }


# =============================================================================
# PROFIT MARGINS
# =============================================================================

def profit_margin_report(db: Session, window: Window) -> Dict[str, Any]:
    total_revenue = total_cost = ZERO
    by_product: Dict[int, Dict[str, Any]] = {}
    by_category: Dict[str, Dict[str, Any]] = {}

    for order in _sold_orders(db, window):
        for item in order.items:
            if item.product is None:
                continue
            qty = fulfilled_qty(item)
            revenue = item.sell_price * qty
            cost = item.product.purchase_price * qty
            total_revenue += revenue
            total_cost += cost

            cat_name = _category(item.product)
            prod = by_product.setdefault(item.product_id, {
                "id": item.product_id, "name": item.product.name, "category": cat_name,
                "revenue": ZERO, "cost": ZERO, "units": 0,
            })
            cat = by_category.setdefault(cat_name, {
                "category": cat_name, "revenue": ZERO, "cost": ZERO, "units": 0,
            })
            for acc in (prod, cat):
                acc["revenue"] += revenue
                acc["cost"] += cost
                acc["units"] += qty

    def _rows(accs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        out = []
        for a in accs:
            profit = a["revenue"] - a["cost"]
            out.append({
                **a,
                "revenue": money(a["revenue"]),
                "cost": money(a["cost"]),
                "profit": money(profit),
                "margin": margin_percent(profit, a["revenue"]),
            })
        out.sort(key=lambda r: r["margin"], reverse=True)
        return out

    products = _rows(by_product.values())
    total_profit = total_revenue - total_cost
    return {
        "totalRevenue": money(total_revenue),
        "totalCost": money(total_cost),
        "totalProfit": money(total_profit),
        "overallMargin": margin_percent(total_profit, total_revenue),
        "productMargins": products,
        "categoryMargins": _rows(by_category.values()),
        "topMarginProducts": products[:TOP_N],
        "bottomMarginProducts": list(reversed(products))[:TOP_N],
    }


# Default look-back per report, in days
DEFAULT_WINDOWS = {
    "sales": DEFAULT_REPORT_DAYS,
    "product-performance": DEFAULT_REPORT_DAYS,
    "revenue": DEFAULT_REPORT_DAYS,
    "profit-margins": DEFAULT_REPORT_DAYS,
    "customer-analysis": DEFAULT_PARTY_REPORT_DAYS,
    "supplier-performance": DEFAULT_PARTY_REPORT_DAYS,
}
