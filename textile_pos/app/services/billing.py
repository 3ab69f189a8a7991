from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from textile_pos.app.models.catalog import Product
from textile_pos.app.models.transaction import PaymentMethod, Transaction, TransactionType
from textile_pos.app.services.catalog import catalog_for_lookup
from textile_pos.app.services.ledger import (
    Ledger,
    LedgerOutcome,
    LineSnapshot,
    TransactionKind,
    money,
)
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

SALE = TransactionKind.SALE
HOLD_PREFIX = "hold:"
ZERO = Decimal("0")


def get_sale_ledger(store: KeyValueStore, terminal_id: str) -> Ledger:
    return load_ledger(store, ledger_key(SALE, terminal_id), SALE)


def scan_item(
    db: Session, store: KeyValueStore, terminal_id: str, lookup: str
) -> tuple[Ledger, LedgerOutcome]:
    """Add the scanned/typed product to the terminal's bill."""
    catalog = catalog_for_lookup(db, lookup)
    return edit_ledger(
        store, SALE, terminal_id, lambda ledger: ledger.add_or_increment(catalog, lookup)
    )


def reset_sale(store: KeyValueStore, terminal_id: str) -> Ledger:
    ledger = Ledger(SALE)
    save_ledger(store, ledger_key(SALE, terminal_id), ledger)
    return ledger


# ─── Checkout ────────────────────────────────────────────────────────────────


def change_due(
    payment_method: PaymentMethod, amount_received: Decimal | None, total: Decimal
) -> Decimal:
    """Cash change for ``total``; zero for non-cash or exact payments."""
    if payment_method is not PaymentMethod.CASH or amount_received is None:
        return ZERO
    if amount_received < total:
        raise ValueError(
            f"Amount received ({money(amount_received)}) is less than the bill total ({total})"
        )
    return money(amount_received - total)


def checkout(
    db: Session,
    store: KeyValueStore,
    terminal_id: str,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    amount_received: Decimal | None = None,
    now: datetime | None = None,
) -> Transaction:
    """Finalize the terminal's bill into a sale.

    Checks stock for every line, consumes one invoice number, stores the
    frozen bill and deducts stock in one commit, then clears the terminal.
    """
    key = ledger_key(SALE, terminal_id)
    ledger = load_ledger(store, key, SALE)
    if ledger.is_empty:
        raise ValueError("Add at least one item!")
    recovered = recover_finalized(db, store, key, ledger)
    if recovered is not None:
        return recovered

    products = lock_products(db, [item.product_id for item in ledger.items])
    for item in ledger.items:
        product = products.get(item.product_id)
        if product is None:
            raise ValueError(f"Product '{item.name}' is no longer in the catalog")
        if product.stock < item.quantity:
            raise ValueError(
                f"Insufficient stock for '{product.name}': "
                f"{product.stock} available, {item.quantity} requested"
            )

    total = ledger.totals.grand_total
    change = change_due(payment_method, amount_received, total)

    def deduct(line: LineSnapshot) -> None:
        product: Product = products[line.product_id]
        product.stock -= line.quantity

    return finalize_ledger(
        db,
        store,
        key,
        ledger,
        deduct,
        now=now,
        customer_name=customer_name or None,
        customer_phone=customer_phone or None,
        payment_method=payment_method,
        amount_received=amount_received,
        change_due=change,
    )


def get_bill(db: Session, number: str) -> Transaction:
    return get_transaction(db, number, TransactionType.SALE)


# ─── Held bills ──────────────────────────────────────────────────────────────


def hold_bill(
    store: KeyValueStore,
    terminal_id: str,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    payment_method: PaymentMethod = PaymentMethod.CASH,
) -> dict[str, Any]:
    """Park the terminal's bill and start a fresh one."""
    key = ledger_key(SALE, terminal_id)
    ledger = load_ledger(store, key, SALE)
    if ledger.is_empty:
        raise ValueError("Add at least one item!")

    record = {
        "id": uuid.uuid4().hex,
        "terminal_id": terminal_id,
        "created_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "customer_name": customer_name,
        "customer_phone": customer_phone,
        "payment_method": payment_method.value,
        "item_count": ledger.totals.item_count,
        "final_amount": str(ledger.totals.grand_total),
        "ledger": ledger.to_dict(),
    }
    store.set(HOLD_PREFIX + record["id"], record)
    ledger.reset()
    save_ledger(store, key, ledger)
    logger.info("Held bill %s from terminal %s", record["id"], terminal_id)
    return record


def list_holds(store: KeyValueStore) -> list[dict[str, Any]]:
    holds = [store.get(key) for key in store.keys(HOLD_PREFIX)]
    return sorted((h for h in holds if h is not None), key=lambda h: h["created_at"])


def _get_hold(store: KeyValueStore, hold_id: str) -> dict[str, Any]:
    record = store.get(HOLD_PREFIX + hold_id)
    if record is None:
        raise ValueError(f"Held bill {hold_id} not found")
    return record


def retrieve_hold(
    store: KeyValueStore, terminal_id: str, hold_id: str
) -> tuple[Ledger, dict[str, Any]]:
    """Replace the terminal's bill with a held one and drop the hold."""
    record = _get_hold(store, hold_id)
    ledger = Ledger.from_dict(record["ledger"])
    save_ledger(store, ledger_key(SALE, terminal_id), ledger)
    store.delete(HOLD_PREFIX + hold_id)
    return ledger, record


def delete_hold(store: KeyValueStore, hold_id: str) -> None:
    _get_hold(store, hold_id)
    store.delete(HOLD_PREFIX + hold_id)
