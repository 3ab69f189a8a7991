from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from textile_pos.app.models.transaction import Transaction, TransactionType
from textile_pos.app.services.catalog import catalog_for_lookup, get_supplier
from textile_pos.app.services.ledger import Ledger, LedgerOutcome, LineSnapshot, TransactionKind
from textile_pos.app.services.storage import (
    KeyValueStore,
    edit_ledger,
    ledger_key,
    load_ledger,
    save_ledger,
)
from textile_pos.app.services.transactions import (
    finalize_ledger,
    get_transaction,
    lock_products,
    recover_finalized,
)

logger = logging.getLogger(__name__)

PURCHASE = TransactionKind.PURCHASE


def get_purchase_ledger(store: KeyValueStore, terminal_id: str) -> Ledger:
    return load_ledger(store, ledger_key(PURCHASE, terminal_id), PURCHASE)


def add_purchase_item(
    db: Session, store: KeyValueStore, terminal_id: str, lookup: str
) -> tuple[Ledger, LedgerOutcome]:
    catalog = catalog_for_lookup(db, lookup)
    return edit_ledger(
        store, PURCHASE, terminal_id, lambda ledger: ledger.add_or_increment(catalog, lookup)
    )


def reset_purchase(store: KeyValueStore, terminal_id: str) -> Ledger:
    ledger = Ledger(PURCHASE)
    save_ledger(store, ledger_key(PURCHASE, terminal_id), ledger)
    return ledger


def save_purchase(
    db: Session,
    store: KeyValueStore,
    terminal_id: str,
    supplier_id: UUID | None = None,
    supplier_bill_no: str | None = None,
    now: datetime | None = None,
) -> Transaction:
    """Finalize the purchase ledger into stock.

    Each line adds its quantity to stock, sets the product's cost price to
    the buy rate and, when a retail rate was entered, its selling price.
    """
    key = ledger_key(PURCHASE, terminal_id)
    ledger = load_ledger(store, key, PURCHASE)
    if ledger.is_empty:
        raise ValueError("Add at least one item!")
    recovered = recover_finalized(db, store, key, ledger)
    if recovered is not None:
        return recovered
    supplier = get_supplier(db, supplier_id) if supplier_id else None

    products = lock_products(db, [item.product_id for item in ledger.items])
    missing = [item.name for item in ledger.items if item.product_id not in products]
    if missing:
        raise ValueError(f"Products no longer in the catalog: {', '.join(missing)}")

    def receive(line: LineSnapshot) -> None:
        product = products[line.product_id]
        product.stock += line.quantity
        product.cost_price = line.unit_price
        if line.retail_rate is not None:
            product.price = line.retail_rate

    return finalize_ledger(
        db,
        store,
        key,
        ledger,
        receive,
        now=now,
        supplier_id=supplier.id if supplier else None,
        supplier_name=supplier.name if supplier else None,
        supplier_bill_no=supplier_bill_no or None,
    )


def get_purchase(db: Session, number: str) -> Transaction:
    return get_transaction(db, number, TransactionType.PURCHASE)
