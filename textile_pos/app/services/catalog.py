from __future__ import annotations

import logging
import random
import re
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from textile_pos.app.models.catalog import Product, Supplier
from textile_pos.app.schemas.catalog import (
    ProductCreate,
    ProductUpdate,
    SupplierCreate,
    SupplierUpdate,
)
from textile_pos.app.services.ledger import CatalogEntry

logger = logging.getLogger(__name__)

_SUPPLIER_CODE = re.compile(r"^S-(\d+)$")
_CODE_ATTEMPTS = 20


# ─── Catalog view for the ledger ─────────────────────────────────────────────


def to_catalog_entry(product: Product) -> CatalogEntry:
    return CatalogEntry(
        product_id=str(product.id),
        code=product.code,
        name=product.name,
        price=Decimal(str(product.price)),
        cost_price=Decimal(str(product.cost_price)),
        quantity_on_hand=product.stock,
        tax_rate=Decimal(str(product.gst_rate)),
    )


def catalog_entries(db: Session) -> list[CatalogEntry]:
    return [to_catalog_entry(p) for p in db.query(Product).order_by(Product.name).all()]


def catalog_for_lookup(db: Session, key: str) -> list[CatalogEntry]:
    """Products that could match ``key`` by id, code or exact name.

    Id and code are narrowed in SQL. Names are compared with ``casefold()``
    in Python, since SQLite's ``lower()`` only folds ASCII. The ledger
    still makes the final exact match so the lookup rules live in one place.
    """
    key = key.strip()
    if not key:
        return []
    conditions = [Product.code == key]
    try:
        conditions.append(Product.id == UUID(key))
    except ValueError:
        pass
    products = db.query(Product).filter(or_(*conditions)).all()
    if not products:
        folded = key.casefold()
        products = [p for p in db.query(Product).all() if p.name.casefold() == folded]
    return [to_catalog_entry(p) for p in products]


# ─── Products ────────────────────────────────────────────────────────────────


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise ValueError(f"Product {product_id} not found")
    return product


def list_products(db: Session, search: str | None = None) -> list[Product]:
    query = db.query(Product)
    if search:
        term = search.strip()
        query = query.filter(
            or_(
                func.lower(Product.name).contains(term.lower(), autoescape=True),
                Product.code.contains(term, autoescape=True),
            )
        )
    return query.order_by(Product.name).all()


def generate_product_code(db: Session) -> str:
    """Random 6-digit barcode value not yet used by another product."""
    for _ in range(_CODE_ATTEMPTS):
        code = str(random.randint(100000, 999999))
        if not db.query(Product).filter(Product.code == code).first():
            return code
    raise ValueError("Could not generate a free product code")


def _check_code_free(db: Session, code: str, exclude: UUID | None = None) -> None:
    query = db.query(Product).filter(Product.code == code)
    if exclude is not None:
        query = query.filter(Product.id != exclude)
    if query.first():
        raise ValueError(f"Product code {code} is already in use")


def _check_supplier(db: Session, supplier_id: UUID | None) -> None:
    if supplier_id is not None and not db.get(Supplier, supplier_id):
        raise ValueError(f"Supplier {supplier_id} not found")


def create_product(db: Session, payload: ProductCreate, default_gst: Decimal) -> Product:
    code = (payload.code or "").strip() or generate_product_code(db)
    _check_code_free(db, code)
    _check_supplier(db, payload.supplier_id)

    product = Product(
        code=code,
        name=payload.name,
        price=payload.price,
        cost_price=payload.cost_price,
        stock=payload.stock,
        gst_rate=payload.gst_rate if payload.gst_rate is not None else default_gst,
        supplier_id=payload.supplier_id,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Created product %s (%s)", product.code, product.name)
    return product


def update_product(db: Session, product_id: UUID, payload: ProductUpdate) -> Product:
    """Update a product in place; the row and its id are preserved."""
    product = get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "code" in changes:
        code = (changes["code"] or "").strip()
        if not code:
            raise ValueError("Product code cannot be blank")
        _check_code_free(db, code, exclude=product.id)
        changes["code"] = code
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Product name cannot be blank")
        changes["name"] = name
    if "supplier_id" in changes:
        _check_supplier(db, changes["supplier_id"])
    for field in ("price", "cost_price", "stock", "gst_rate"):
        if field in changes and changes[field] is None:
            raise ValueError(f"{field} cannot be null")

    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: UUID) -> None:
    product = get_product(db, product_id)
    db.delete(product)
    db.commit()
    logger.info("Deleted product %s", product_id)


# ─── Suppliers ───────────────────────────────────────────────────────────────


def get_supplier(db: Session, supplier_id: UUID) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise ValueError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers(db: Session, search: str | None = None) -> list[Supplier]:
    query = db.query(Supplier)
    if search:
        term = search.strip().lower()
        query = query.filter(
            or_(
                func.lower(Supplier.name).contains(term, autoescape=True),
                func.lower(Supplier.code).contains(term, autoescape=True),
            )
        )
    return query.order_by(Supplier.code).all()


def next_supplier_code(db: Session) -> str:
    """Next ``S-NNN`` code, one past the highest existing number."""
    highest = 0
    for (code,) in db.query(Supplier.code).all():
        match = _SUPPLIER_CODE.match(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"S-{highest + 1:03d}"


def create_supplier(db: Session, payload: SupplierCreate) -> Supplier:
    supplier = Supplier(code=next_supplier_code(db), **payload.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info("Created supplier %s (%s)", supplier.code, supplier.name)
    return supplier


def update_supplier(db: Session, supplier_id: UUID, payload: SupplierUpdate) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise ValueError("Supplier name cannot be null")
    for field, value in changes.items():
        setattr(supplier, field, value)
    db.commit()
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: UUID) -> None:
    """Delete a supplier; its products stay in the catalog unassigned."""
    supplier = get_supplier(db, supplier_id)
    for product in supplier.products:
        product.supplier_id = None
    db.delete(supplier)
    db.commit()
    logger.info("Deleted supplier %s", supplier.code)
