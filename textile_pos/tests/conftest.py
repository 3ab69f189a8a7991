"""Shared test fixtures.

Every test gets its own in-memory SQLite database with the full schema and
a fresh ``MemoryStore``, so tests never share counters, ledgers or rows.
"""

from __future__ import annotations

import os

# Keep app start-up away from the real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from collections.abc import Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from textile_pos.app.api.deps import get_store
from textile_pos.app.core.database import Base, get_db
from textile_pos.app.main import app
from textile_pos.app.models import catalog, storage, transaction  # noqa: F401
from textile_pos.app.models.catalog import Product, Supplier
from textile_pos.app.services.storage import MemoryStore


# ─── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def client(db: Session, store: MemoryStore) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test database and store."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Catalog fixtures ─────────────────────────────────────────────────────────


@pytest.fixture()
def supplier(db: Session) -> Supplier:
    s = Supplier(
        code="S-001",
        name="Kanchi Weavers",
        contact="9876543210",
        gst_number="33ABCDE1234F1Z5",
        address="Chennai, Tamil Nadu",
    )
    db.add(s)
    db.commit()
    return s


@pytest.fixture()
def saree(db: Session, supplier: Supplier) -> Product:
    p = Product(
        code="123456",
        name="Silk Saree",
        price=Decimal("100.00"),
        cost_price=Decimal("70.00"),
        stock=20,
        gst_rate=Decimal("5"),
        supplier_id=supplier.id,
    )
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def dhoti(db: Session) -> Product:
    p = Product(
        code="654321",
        name="Cotton Dhoti",
        price=Decimal("50.00"),
        cost_price=Decimal("30.00"),
        stock=10,
        gst_rate=Decimal("0"),
    )
    db.add(p)
    db.commit()
    return p