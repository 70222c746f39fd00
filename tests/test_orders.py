import pytest


@pytest.fixture
def catalog(api):
    customer = api.customer(storeId="ST-100")
    rice = api.product(name="Rice", sku="RICE", sellPrice=10, quantityOnHand=50)
    oil = api.product(name="Oil", sku="OIL", sellPrice=20, quantityOnHand=20)
    return customer, rice, oil


def balance(api, customer_id):
    return api.get(f"/api/customers/{customer_id}")["outstandingBalance"]


def stock(api, product_id):
    return api.get(f"/api/products/{product_id}")["quantityOnHand"]


def test_create_order_snapshots_prices_and_charges_customer(api, catalog):
    customer, rice, oil = catalog

    order = api.order(customer["id"], (rice["id"], 5), (oil["id"], 3))

    assert order["status"] == "Pending"
    assert order["paymentStatus"] == "Pending"
    assert order["totalAmount"] == 110.0
    assert order["orderNumber"].startswith("ORD-")
    assert order["orderNumber"].endswith(f"{order['id']:04d}")
    assert [i["sellPrice"] for i in order["items"]] == [10.0, 20.0]
    assert all(i["fulfilledQuantity"] == 0 for i in order["items"])
    assert balance(api, customer["id"]) == 110.0

    # later price changes do not touch the order
    api.put(f"/api/products/{rice['id']}", {"sellPrice": 99})
    again = api.get(f"/api/orders/{order['id']}")
    assert again["totalAmount"] == 110.0
    assert again["items"][0]["sellPrice"] == 10.0


def test_customer_specific_price_wins(api, catalog):
    customer, rice, _ = catalog
    api.put(f"/api/products/{rice['id']}", {"customers": [{"customer": customer["id"], "customSellPrice": 8}]})

    order = api.order(customer["id"], (rice["id"], 5))

    assert order["items"][0]["sellPrice"] == 8.0
    assert order["totalAmount"] == 40.0


def test_create_order_validation(api, catalog):
    customer, rice, _ = catalog

    r = api.client.post("/api/orders", json={"customer": customer["id"], "items": []}, headers=api.headers)
    assert r.status_code == 400
    assert r.json() == {"ok": False, "message": "Please provide customer and order items"}

    r = api.client.post("/api/orders", json={"customer": 999, "items": [{"product": rice["id"], "quantity": 1}]},
                        headers=api.headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Customer not found"

    r = api.client.post("/api/orders", json={"customer": customer["id"], "items": [{"product": 999, "quantity": 1}]},
                        headers=api.headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Product with ID 999 not found"
    # nothing was charged by the failed attempts
    assert balance(api, customer["id"]) == 0.0


def test_payments_move_payment_status_and_balance(api, catalog):
    customer, rice, oil = catalog
    order = api.order(customer["id"], (rice["id"], 5), (oil["id"], 3))

    paid = api.post(f"/api/orders/{order['id']}/payment", {"amount": 50, "method": "Check", "reference": "CHK-1"},
                    expect=200)
    assert paid["paymentStatus"] == "Partial"
    assert paid["paymentHistory"][0]["amount"] == 50.0
    assert paid["paymentHistory"][0]["method"] == "Check"
    assert balance(api, customer["id"]) == 60.0

    paid = api.post(f"/api/orders/{order['id']}/payment", {"amount": 60}, expect=200)
    assert paid["paymentStatus"] == "Paid"
    assert paid["paymentHistory"][1]["method"] == "Cash"
    assert balance(api, customer["id"]) == 0.0


def test_payment_amount_must_be_positive(api, catalog):
    customer, rice, _ = catalog
    order = api.order(customer["id"], (rice["id"], 1))

    r = api.client.post(f"/api/orders/{order['id']}/payment", json={"amount": 0}, headers=api.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "amount must be greater than 0"


def test_fulfill_moves_stock_by_difference(api, catalog):
    customer, rice, oil = catalog
    order = api.order(customer["id"], (rice["id"], 5), (oil["id"], 2))

    partial = api.put(f"/api/orders/{order['id']}/fulfill",
                      {"items": [{"product": rice["id"], "fulfilledQuantity": 3}]})
    assert partial["status"] == "Partial"
    assert partial["fulfillmentDate"] is None
    assert stock(api, rice["id"]) == 47

    # lowering the delivered quantity returns goods
    api.put(f"/api/orders/{order['id']}/fulfill", {"items": [{"product": rice["id"], "fulfilledQuantity": 1}]})
    assert stock(api, rice["id"]) == 49

    done = api.put(f"/api/orders/{order['id']}/fulfill", {"items": [
        {"product": rice["id"], "fulfilledQuantity": 5},
        {"product": oil["id"], "fulfilledQuantity": 2},
    ]})
    assert done["status"] == "Fulfilled"
    assert done["fulfillmentDate"] is not None
    assert stock(api, rice["id"]) == 45
    assert stock(api, oil["id"]) == 18


def test_fulfill_rejects_out_of_range_quantity(api, catalog):
    customer, rice, oil = catalog
    order = api.order(customer["id"], (rice["id"], 5))

    r = api.client.put(f"/api/orders/{order['id']}/fulfill",
                       json={"items": [{"product": rice["id"], "fulfilledQuantity": 6}]}, headers=api.headers)
    assert r.status_code == 400
    assert r.json()["message"] == f"fulfilledQuantity for product {rice['id']} must be between 0 and 5"

    r = api.client.put(f"/api/orders/{order['id']}/fulfill",
                       json={"items": [{"product": oil["id"], "fulfilledQuantity": 1}]}, headers=api.headers)
    assert r.status_code == 400
    assert stock(api, rice["id"]) == 50


def test_fulfilled_status_requires_complete_lines(api, catalog):
    customer, rice, _ = catalog
    order = api.order(customer["id"], (rice["id"], 5))

    r = api.client.put(f"/api/orders/{order['id']}/status", json={"status": "Fulfilled"}, headers=api.headers)
    assert r.status_code == 400
    assert r.json()["ok"] is False

    processing = api.put(f"/api/orders/{order['id']}/status", {"status": "Processing"})
    assert processing["status"] == "Processing"

    r = api.client.put(f"/api/orders/{order['id']}/status", json={"status": "Pending"}, headers=api.headers)
    assert r.status_code == 400


def test_cancel_restocks_and_reverses_balance(api, catalog):
    customer, rice, _ = catalog
    order = api.order(customer["id"], (rice["id"], 5))
    api.put(f"/api/orders/{order['id']}/fulfill", {"items": [{"product": rice["id"], "fulfilledQuantity": 3}]})
    assert stock(api, rice["id"]) == 47
    assert balance(api, customer["id"]) == 50.0

    cancelled = api.put(f"/api/orders/{order['id']}/status", {"status": "Cancelled"})

    assert cancelled["status"] == "Cancelled"
    assert stock(api, rice["id"]) == 50
    assert balance(api, customer["id"]) == 0.0

    # cancelling twice changes nothing
    api.put(f"/api/orders/{order['id']}/status", {"status": "Cancelled"})
    assert stock(api, rice["id"]) == 50
    assert balance(api, customer["id"]) == 0.0

    r = api.client.put(f"/api/orders/{order['id']}", json={"notes": "late"}, headers=api.headers)
    assert r.status_code == 400


def test_delete_only_pending_orders(api, catalog):
    customer, rice, _ = catalog
    keep = api.order(customer["id"], (rice["id"], 1))
    drop = api.order(customer["id"], (rice["id"], 2))
    api.put(f"/api/orders/{keep['id']}/status", {"status": "Processing"})

    r = api.client.delete(f"/api/orders/{keep['id']}", headers=api.headers)
    assert r.status_code == 400

    assert api.delete(f"/api/orders/{drop['id']}") == {"id": drop["id"]}
    assert balance(api, customer["id"]) == 10.0
    api.get(f"/api/orders/{drop['id']}", expect=404)


def test_list_filters(api, catalog):
    customer, rice, _ = catalog
    other = api.customer(name="Other", storeId="ST-200")
    first = api.order(customer["id"], (rice["id"], 1))
    api.order(other["id"], (rice["id"], 1))
    api.put(f"/api/orders/{first['id']}/status", {"status": "Processing"})

    assert [o["id"] for o in api.get("/api/orders/status/Processing")] == [first["id"]]
    assert [o["id"] for o in api.get("/api/orders", customer=customer["id"])] == [first["id"]]
    assert len(api.get("/api/orders")) == 2
    assert [o["id"] for o in api.get(f"/api/customers/{customer['id']}/orders")] == [first["id"]]
    api.get("/api/orders/status/Shipped", expect=400)
