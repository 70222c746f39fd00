import os

# must be set before wholesale.core.db is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from fastapi.testclient import TestClient

from wholesale.core.db import Base, engine, SessionLocal
from wholesale.core.security import create_access_token
from wholesale.main import app
from wholesale.models import AppUser


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


def _make_user(db, email, role):
    user = AppUser(
        name=email.split("@")[0],
        email=email,
        # never used for login in these fixtures
        hashed_password="x",
        role=role,
        permissions=[],
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "clerk@example.com", "user")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def admin_headers(db):
    admin = _make_user(db, "boss@example.com", "admin")
    return {"Authorization": f"Bearer {create_access_token(str(admin.id), admin.role)}"}


# ---- API helpers ----
class Api:
    def __init__(self, client, headers):
        self.client = client
        self.headers = headers

    def post(self, path, json=None, expect=201):
        r = self.client.post(path, json=json, headers=self.headers)
        assert r.status_code == expect, r.text
        return r.json()

    def put(self, path, json=None, expect=200):
        r = self.client.put(path, json=json, headers=self.headers)
        assert r.status_code == expect, r.text
        return r.json()

    def get(self, path, expect=200, **params):
        r = self.client.get(path, params=params or None, headers=self.headers)
        assert r.status_code == expect, r.text
        return r.json()

    def delete(self, path, expect=200):
        r = self.client.delete(path, headers=self.headers)
        assert r.status_code == expect, r.text
        return r.json()

    # factories
    def supplier(self, **kw):
        return self.post("/api/suppliers", {"name": "Acme Supply", **kw})

    def customer(self, **kw):
        return self.post("/api/customers", {"name": "Corner Shop", **kw})

    def product(self, **kw):
        body = {
            "name": "Widget",
            "retailPrice": 15,
            "purchasePrice": 6,
            "sellPrice": 10,
            "quantityOnHand": 50,
            **kw,
        }
        return self.post("/api/products", body)

    def order(self, customer_id, *lines):
        items = [{"product": p, "quantity": q} for p, q in lines]
        return self.post("/api/orders", {"customer": customer_id, "items": items})


@pytest.fixture
def api(client, auth_headers):
    return Api(client, auth_headers)
