"""
Idempotent demo data: an admin account, a few suppliers, customers and products.

    python -m wholesale.scripts.seed
"""
from contextlib import contextmanager
from decimal import Decimal
import logging
import os

from sqlalchemy import select

from wholesale.core.db import SessionLocal, engine, Base
from wholesale.core.security import hash_password
from wholesale.models import AppUser, Supplier, Customer, Product, ProductSupplier, ProductCustomerPrice

logger = logging.getLogger("wholesale.seed")


@contextmanager
def session_scope():
    """One session per block; rollback on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_one(db, model, **by):
    return db.execute(select(model).filter_by(**by)).scalars().first()


def get_or_create(db, model, unique_by: dict, defaults: dict | None = None):
    """Look up by unique_by, create when missing. The caller commits."""
    inst = get_one(db, model, **unique_by)
    if inst:
        return inst, False
    inst = model(**{**unique_by, **(defaults or {})})
    db.add(inst)
    return inst, True


ADMIN = {
    "name": "Admin",
    "email": os.getenv("SEED_ADMIN_EMAIL", "admin@example.com"),
    "password": os.getenv("SEED_ADMIN_PASSWORD", "admin123"),
}

SUPPLIERS = [
    {"name": "Northwind Foods", "contact_person": "Dana Reyes", "email": "sales@northwind.example",
     "phone": "555-0100", "reliability_rating": Decimal("4.5"), "payment_terms": "Net 30"},
    {"name": "Blue Ridge Beverages", "contact_person": "Sam Ortiz", "email": "orders@blueridge.example",
     "phone": "555-0101", "reliability_rating": Decimal("3.8"), "payment_terms": "Net 15"},
]

CUSTOMERS = [
    {"name": "Corner Market", "store_id": "ST-001", "contact_person": "Lee Park",
     "payment_terms": "Net 30", "credit_limit": Decimal("5000")},
    {"name": "Hilltop Grocers", "store_id": "ST-002", "contact_person": "Ari Cohen",
     "payment_terms": "COD", "credit_limit": Decimal("2500")},
]

# supplier name, purchase price override, preferred
PRODUCTS = [
    ({"sku": "RICE-5KG", "name": "Basmati Rice 5kg", "category": "Grains", "company_name": "Golden Field",
      "retail_price": Decimal("14.99"), "purchase_price": Decimal("8.50"), "sell_price": Decimal("11.00"),
      "quantity_on_hand": 120},
     [("Northwind Foods", Decimal("8.25"), True)]),
    ({"sku": "OIL-1L", "name": "Sunflower Oil 1L", "category": "Pantry", "company_name": "Sunny",
      "retail_price": Decimal("4.49"), "purchase_price": Decimal("2.10"), "sell_price": Decimal("3.20"),
      "quantity_on_hand": 8},
     [("Northwind Foods", None, False)]),
    ({"sku": "COLA-24", "name": "Cola 24-pack", "category": "Beverages", "company_name": "Fizz",
      "retail_price": Decimal("12.99"), "purchase_price": Decimal("6.00"), "sell_price": Decimal("9.50"),
      "quantity_on_hand": 40},
     [("Blue Ridge Beverages", Decimal("5.80"), True)]),
]

# store id, sku, custom sell price
CUSTOMER_PRICES = [
    ("ST-001", "RICE-5KG", Decimal("10.50")),
]


def run():
    Base.metadata.create_all(bind=engine, checkfirst=True)

    with session_scope() as db:
        logger.info("seeding users, suppliers, customers")
        _, created = get_or_create(db, AppUser, {"email": ADMIN["email"]}, defaults={
            "name": ADMIN["name"],
            "hashed_password": hash_password(ADMIN["password"]),
            "role": "admin",
            "permissions": [],
            "is_active": True,
        })
        if created:
            logger.info("admin account created: %s", ADMIN["email"])

        for s in SUPPLIERS:
            get_or_create(db, Supplier, {"name": s["name"]}, defaults=s)
        for c in CUSTOMERS:
            get_or_create(db, Customer, {"store_id": c["store_id"]}, defaults=c)

    with session_scope() as db:
        logger.info("seeding products and price links")
        for data, links in PRODUCTS:
            product, created = get_or_create(db, Product, {"sku": data["sku"]}, defaults=data)
            if not created:
                continue
            for supplier_name, price, preferred in links:
                supplier = get_one(db, Supplier, name=supplier_name)
                if supplier is not None:
                    product.suppliers.append(ProductSupplier(
                        supplier_id=supplier.id, purchase_price=price, is_preferred=preferred,
                    ))
        db.flush()

        for store_id, sku, price in CUSTOMER_PRICES:
            customer = get_one(db, Customer, store_id=store_id)
            product = get_one(db, Product, sku=sku)
            if customer is None or product is None:
                continue
            get_or_create(
                db, ProductCustomerPrice,
                {"product_id": product.id, "customer_id": customer.id},
                defaults={"custom_sell_price": price},
            )

    logger.info("seed done")


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run()
