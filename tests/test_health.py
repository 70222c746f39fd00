def test_health_ok(client):
    r = client.get("/health")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    data = r.json()
    assert data["ok"] is True
    assert data["data"]["service"] == "Wholesale Back Office"


def test_db_ping(client):
    r = client.get("/db-ping")
    assert r.status_code == 200
    assert r.json()["data"]["select1"] == 1
