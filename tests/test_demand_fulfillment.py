import pytest


@pytest.fixture
def setup(api):
    supplier = api.supplier(name="Northwind")
    customer = api.customer(storeId="ST-1")
    a = api.product(name="A", sku="A", purchasePrice=4, quantityOnHand=0,
                    suppliers=[{"supplier": supplier["id"], "purchasePrice": 3.5, "isPreferred": True}])
    b = api.product(name="B", sku="B", purchasePrice=2, quantityOnHand=0)
    c = api.product(name="C", sku="C", purchasePrice=1, quantityOnHand=0)
    return supplier, customer, a, b, c


def submit(api, dl_id):
    return api.put(f"/api/demandlists/{dl_id}/status", {"status": "Submitted"})


def fulfill(api, dl_id, *pairs, expect=200):
    items = [{"product": p, "availableQuantity": q} for p, q in pairs]
    return api.post(f"/api/demandlists/{dl_id}/fulfill", {"items": items}, expect=expect)


def test_create_snapshots_supplier_price(api, setup):
    supplier, _, a, b, _ = setup

    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 10},
        {"product": b["id"], "quantity": 5},
    ]})

    assert dl["status"] == "Draft"
    assert [i["purchasePrice"] for i in dl["items"]] == [3.5, 2.0]
    assert dl["estimatedTotal"] == 45.0
    assert all(i["status"] == "Pending" and i["availableQuantity"] == 0 for i in dl["items"])


def test_availability_sets_item_status_and_books_stock(api, setup):
    supplier, _, a, b, c = setup
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 10},
        {"product": b["id"], "quantity": 10},
        {"product": c["id"], "quantity": 10},
    ]})
    submit(api, dl["id"])

    result = fulfill(api, dl["id"], (a["id"], 10), (b["id"], 4), (c["id"], 0))

    assert [i["status"] for i in result["items"]] == ["Available", "Partial", "Unavailable"]
    assert result["status"] == "Partial"
    assert result["fulfillmentDate"] is None
    assert api.get(f"/api/products/{a['id']}")["quantityOnHand"] == 10
    assert api.get(f"/api/products/{b['id']}")["quantityOnHand"] == 4
    assert api.get(f"/api/products/{c['id']}")["quantityOnHand"] == 0

    # B gained a supplier record, C received nothing
    b_suppliers = api.get(f"/api/products/{b['id']}")["suppliers"]
    assert [s["supplier"] for s in b_suppliers] == [supplier["id"]]
    assert b_suppliers[0]["lastPurchaseDate"] is not None
    assert api.get(f"/api/products/{c['id']}")["suppliers"] == []


def test_everything_available_fulfills_list(api, setup):
    supplier, _, a, b, _ = setup
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 3},
        {"product": b["id"], "quantity": 2},
    ]})
    submit(api, dl["id"])
    api.put(f"/api/demandlists/{dl['id']}/status", {"status": "Confirmed"})

    result = fulfill(api, dl["id"], (a["id"], 3), (b["id"], 5))

    assert result["status"] == "Fulfilled"
    assert result["fulfillmentDate"] is not None
    assert [p["id"] for p in api.get(f"/api/products/supplier/{supplier['id']}")] == [a["id"], b["id"]]


def test_delivery_propagates_to_related_orders(api, setup):
    supplier, customer, a, _, _ = setup
    order = api.order(customer["id"], (a["id"], 5))
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 5, "relatedOrders": [order["id"]]},
    ]})
    assert dl["items"][0]["relatedOrders"] == [order["id"]]
    submit(api, dl["id"])

    fulfill(api, dl["id"], (a["id"], 3))

    updated = api.get(f"/api/orders/{order['id']}")
    assert updated["items"][0]["fulfilledQuantity"] == 3
    assert updated["status"] == "Partial"
    # goods were booked in; the order was not shipped out of stock here
    assert api.get(f"/api/products/{a['id']}")["quantityOnHand"] == 3


def test_propagation_completes_order_and_skips_terminal(api, setup):
    supplier, customer, a, _, _ = setup
    open_order = api.order(customer["id"], (a["id"], 2))
    cancelled = api.order(customer["id"], (a["id"], 2))
    api.put(f"/api/orders/{cancelled['id']}/status", {"status": "Cancelled"})
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 4, "relatedOrders": [open_order["id"], cancelled["id"]]},
    ]})
    submit(api, dl["id"])

    fulfill(api, dl["id"], (a["id"], 4))

    done = api.get(f"/api/orders/{open_order['id']}")
    assert done["status"] == "Fulfilled"
    assert done["fulfillmentDate"] is not None
    skipped = api.get(f"/api/orders/{cancelled['id']}")
    assert skipped["status"] == "Cancelled"
    assert skipped["items"][0]["fulfilledQuantity"] == 0


def test_fulfillment_guards(api, setup):
    supplier, _, a, b, _ = setup
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [{"product": a["id"], "quantity": 2}]})

    # still a draft
    r = api.client.post(f"/api/demandlists/{dl['id']}/fulfill",
                        json={"items": [{"product": a["id"], "availableQuantity": 1}]}, headers=api.headers)
    assert r.status_code == 400

    submit(api, dl["id"])
    r = api.client.post(f"/api/demandlists/{dl['id']}/fulfill", json={"items": []}, headers=api.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Please provide items with available quantities"

    # unknown line: nothing is booked
    r = api.client.post(f"/api/demandlists/{dl['id']}/fulfill", json={"items": [
        {"product": a["id"], "availableQuantity": 2},
        {"product": b["id"], "availableQuantity": 1},
    ]}, headers=api.headers)
    assert r.status_code == 400
    assert api.get(f"/api/products/{a['id']}")["quantityOnHand"] == 0
    assert api.get(f"/api/demandlists/{dl['id']}")["status"] == "Submitted"


def test_draft_edit_and_delete(api, setup):
    supplier, _, a, b, _ = setup
    dl = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [{"product": a["id"], "quantity": 2}]})

    edited = api.put(f"/api/demandlists/{dl['id']}", {"notes": "rush", "items": [{"product": b["id"], "quantity": 3}]})
    assert edited["notes"] == "rush"
    assert [i["product"] for i in edited["items"]] == [b["id"]]
    assert edited["estimatedTotal"] == 6.0

    submitted = api.post("/api/demandlists", {"supplier": supplier["id"], "items": [{"product": a["id"], "quantity": 1}]})
    submit(api, submitted["id"])
    r = api.client.delete(f"/api/demandlists/{submitted['id']}", headers=api.headers)
    assert r.status_code == 400

    assert api.delete(f"/api/demandlists/{dl['id']}") == {"id": dl["id"]}
    assert [d["id"] for d in api.get(f"/api/demandlists/supplier/{supplier['id']}")] == [submitted["id"]]
    assert [d["id"] for d in api.get("/api/demandlists", status="Submitted")] == [submitted["id"]]


def test_create_requires_existing_references(api, setup):
    supplier, _, a, _, _ = setup

    r = api.client.post("/api/demandlists", json={"supplier": 999, "items": [{"product": a["id"], "quantity": 1}]},
                        headers=api.headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Supplier not found"

    r = api.client.post("/api/demandlists", json={"supplier": supplier["id"], "items": [
        {"product": a["id"], "quantity": 1, "relatedOrders": [4242]},
    ]}, headers=api.headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Order with ID 4242 not found"
