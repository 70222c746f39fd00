from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi import HTTPException

from wholesale.core.db import utcnow
from wholesale.services.report_service import (
    forecast_product, margin_percent, period_key, resolve_window,
)


# ---- pure helpers ----
def test_forecast_product_projection():
    f = forecast_product(90, 10, 30)
    assert f["averageDailyDemand"] == 1.0
    assert f["projectedDemand"] == 30
    assert f["daysUntilStockout"] == 10
    assert f["recommendedOrder"] == 26

    half = forecast_product(45, 0, 30)
    assert half["projectedDemand"] == 15
    assert half["daysUntilStockout"] == 0
    assert half["recommendedOrder"] == 18


def test_forecast_without_demand_never_runs_out():
    f = forecast_product(0, 5, 30)
    assert f["daysUntilStockout"] == 999
    assert f["recommendedOrder"] == 0


@pytest.mark.parametrize("moment,group_by,key", [
    (datetime(2025, 3, 7, 15, 30), "day", "2025-03-07"),
    (datetime(2025, 3, 7), "month", "2025-03"),
    (datetime(2025, 1, 1), "week", "2025-W01"),
    # ISO weeks belong to the year that holds their Thursday
    (datetime(2024, 12, 30), "week", "2025-W01"),
])
def test_period_key(moment, group_by, key):
    assert period_key(moment, group_by) == key


def test_margin_percent_rounds_half_up_and_handles_zero_revenue():
    assert margin_percent(Decimal("1"), Decimal("8")) == 12.5
    assert margin_percent(Decimal("1"), Decimal("3")) == 33.33
    assert margin_percent(Decimal("5"), Decimal("0")) == 0.0


def test_resolve_window():
    now = datetime(2025, 6, 30, 12, 0)
    w = resolve_window(None, None, 30, now=now)
    assert w.start == datetime(2025, 5, 31, 12, 0)
    assert w.end.date() == date(2025, 6, 30)
    assert w.end.hour == 23

    explicit = resolve_window(date(2025, 6, 1), date(2025, 6, 1), 30, now=now)
    assert explicit.start == datetime(2025, 6, 1)
    assert explicit.end.date() == date(2025, 6, 1)

    with pytest.raises(HTTPException) as exc:
        resolve_window(date(2025, 6, 2), date(2025, 6, 1), 30, now=now)
    assert exc.value.status_code == 400


# ---- endpoints ----
@pytest.fixture
def sold(api):
    customer = api.customer(name="Buyer")
    rice = api.product(name="Rice", category="Grains", purchasePrice=6, sellPrice=10, quantityOnHand=20)
    order = api.order(customer["id"], (rice["id"], 5))
    api.put(f"/api/orders/{order['id']}/fulfill", {"items": [{"product": rice["id"], "fulfilledQuantity": 5}]})
    # cancelled orders never count as sales
    dropped = api.order(customer["id"], (rice["id"], 3))
    api.put(f"/api/orders/{dropped['id']}/status", {"status": "Cancelled"})
    return customer, rice, order


def test_sales_report(api, sold):
    customer, rice, _ = sold
    body = api.get("/api/reports/sales")

    assert body["ok"] is True
    assert set(body["meta"]["period"]) == {"start", "end"}
    data = body["data"]
    assert data["totalSales"] == 50.0
    assert data["totalOrders"] == 1
    assert data["salesByProduct"][0]["product"] == rice["id"]
    assert data["salesByProduct"][0]["quantity"] == 5
    assert data["salesByCategory"][0]["category"] == "Grains"
    assert data["salesByCustomer"][0]["customer"] == customer["id"]
    assert len(data["salesTimeline"]) == 1


def test_revenue_and_profit_margins(api, sold):
    revenue = api.get("/api/reports/revenue", groupBy="month")
    assert revenue["meta"]["period"]["groupBy"] == "month"
    data = revenue["data"]
    assert data["totalRevenue"] == 50.0
    assert data["totalCost"] == 30.0
    assert data["totalProfit"] == 20.0
    assert data["profitMargin"] == 40.0
    assert len(data["timelineData"]) == 1

    margins = api.get("/api/reports/profit-margins")["data"]
    assert margins["overallMargin"] == 40.0
    assert margins["productMargins"][0]["units"] == 5
    assert api.get("/api/reports/profit-margin")["data"] == margins

    r = api.client.get("/api/reports/revenue", params={"groupBy": "year"}, headers=api.headers)
    assert r.status_code == 400


def test_product_performance_and_customer_analysis(api, sold):
    customer, rice, _ = sold

    perf = api.get("/api/reports/product-performance")["data"]
    assert perf["topPerformers"][0]["id"] == rice["id"]
    assert perf["topPerformers"][0]["profit"] == 20.0
    assert perf["topPerformers"][0]["marginPercentage"] == 40.0

    analysis = api.get("/api/reports/customer-analysis")["data"]
    row = next(r for r in analysis["customerAnalysis"] if r["id"] == customer["id"])
    assert row["orderCount"] == 1
    assert row["totalSpent"] == 50.0
    assert row["recency"] == 0
    assert analysis["atRiskCustomers"] == []


def test_inventory_report_buckets(api):
    api.product(name="Empty", quantityOnHand=0)
    api.product(name="Low", quantityOnHand=5)
    api.product(name="Heap", quantityOnHand=150, purchasePrice=2)

    data = api.get("/api/reports/inventory")["data"]

    assert data["totalProducts"] == 3
    assert [p["name"] for p in data["outOfStockItems"]] == ["Empty"]
    assert [p["name"] for p in data["lowStockItems"]] == ["Low"]
    assert [p["name"] for p in data["overstockItems"]] == ["Heap"]
    assert data["inventoryValue"] == 330.0
    assert data["inventoryByCategory"][0]["category"] == "Uncategorized"


def test_supplier_performance_counts_partial_lists(api):
    supplier = api.supplier(name="Partial Co")
    product = api.product(purchasePrice=2, quantityOnHand=0)
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [{"product": product["id"], "quantity": 10}]})
    api.put(f"/api/demandlists/{dl['id']}/status", {"status": "Submitted"})
    api.post(f"/api/demandlists/{dl['id']}/fulfill", {"items": [{"product": product["id"], "availableQuantity": 4}]},
             expect=200)

    data = api.get("/api/reports/supplier-performance")["data"]
    row = next(r for r in data["supplierPerformance"] if r["id"] == supplier["id"])
    assert row["demandListCount"] == 1
    assert row["itemsRequested"] == 10
    assert row["itemsFulfilled"] == 4
    assert row["fulfilledPercent"] == 40.0
    assert row["totalPurchased"] == 8.0


def test_demand_forecast(api, sold):
    _, rice, _ = sold
    body = api.get("/api/reports/demand-forecast", period=45)

    assert body["meta"]["period"] == {"forecastDays": 45, "historyDays": 90}
    row = next(f for f in body["data"]["productForecasts"] if f["id"] == rice["id"])
    assert row["totalDemand90Days"] == 5
    assert row["currentStock"] == 15
    assert [f["id"] for f in body["data"]["atRiskProducts"]] == [rice["id"]]

    r = api.client.get("/api/reports/demand-forecast", params={"period": 0}, headers=api.headers)
    assert r.status_code == 400


def test_report_period_validation(api):
    r = api.client.get("/api/reports/sales", params={"startDate": "2025-06-02", "endDate": "2025-06-01"},
                       headers=api.headers)
    assert r.status_code == 400
    assert r.json() == {"ok": False, "message": "endDate must not be before startDate"}

    empty = api.get("/api/reports/sales", startDate="2020-01-01", endDate="2020-01-31")
    assert empty["data"]["totalSales"] == 0.0
    assert empty["meta"]["period"]["start"].startswith("2020-01-01")


def test_resolve_window_with_only_end_date():
    now = datetime(2026, 10, 19, 12, 0)
    w = resolve_window(None, date(2026, 1, 31), 30, now=now)
    assert w.start == datetime(2026, 1, 1)
    assert w.end.date() == date(2026, 1, 31)


def test_report_with_only_end_date(api, sold):
    body = api.get("/api/reports/sales", endDate="2020-01-31")
    assert body["data"]["totalSales"] == 0.0
    assert body["meta"]["period"]["start"].startswith("2020-01-01")
    assert body["meta"]["period"]["end"].startswith("2020-01-31")

    # a window ending today still sees today's sales
    today = api.get("/api/reports/sales", endDate=utcnow().date().isoformat())
    assert today["data"]["totalSales"] == 50.0
