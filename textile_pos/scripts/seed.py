"""Seed the database with demo suppliers and products.

Usage:
    alembic upgrade head
    python -m textile_pos.scripts.seed
"""

from __future__ import annotations

from decimal import Decimal

from textile_pos.app.core.database import SessionLocal
from textile_pos.app.models.catalog import Product, Supplier

SUPPLIERS: list[tuple[str, str, str, str, str]] = [
    ("S-001", "Kanchi Weavers", "9876543210", "33ABCDE1234F1Z5", "Chennai, Tamil Nadu"),
    ("S-002", "Benaras Creations", "9876543211", "09ABCDE1234F1Z6", "Varanasi, Uttar Pradesh"),
]

# code, name, price, cost price, stock, GST %, supplier code
PRODUCTS: list[tuple[str, str, Decimal, Decimal, int, Decimal, str]] = [
    ("123456", "AJ FUNAFLUN", Decimal("219.00"), Decimal("160.00"), 18, Decimal("5"), "S-001"),
    ("123457", "AJ FOUR EVER", Decimal("349.00"), Decimal("255.00"), 8, Decimal("5"), "S-002"),
]


def seed() -> None:
    db = SessionLocal()
    try:
        suppliers: dict[str, Supplier] = {}
        for code, name, contact, gst_number, address in SUPPLIERS:
            supplier = db.query(Supplier).filter_by(code=code).first()
            if not supplier:
                supplier = Supplier(
                    code=code,
                    name=name,
                    contact=contact,
                    gst_number=gst_number,
                    address=address,
                )
                db.add(supplier)
                db.flush()
                print(f"Created supplier {code} - {name}")
            suppliers[code] = supplier

        for code, name, price, cost_price, stock, gst_rate, supplier_code in PRODUCTS:
            if db.query(Product).filter_by(code=code).first():
                continue
            db.add(
                Product(
                    code=code,
                    name=name,
                    price=price,
                    cost_price=cost_price,
                    stock=stock,
                    gst_rate=gst_rate,
                    supplier_id=suppliers[supplier_code].id,
                )
            )
            print(f"Created product {code} - {name}")

        db.commit()
        print("Seed complete.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
