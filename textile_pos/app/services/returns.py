from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from textile_pos.app.models.transaction import Transaction, TransactionType
from textile_pos.app.services.billing import get_bill
from textile_pos.app.services.ledger import (
    Ledger,
    LineSnapshot,
    SaleLineItem,
    TransactionKind,
    money,
)
from textile_pos.app.services.storage import KeyValueStore, ledger_key, load_ledger, save_ledger
from textile_pos.app.services.transactions import (
    finalize_ledger,
    lock_products,
    recover_finalized,
)

logger = logging.getLogger(__name__)

RETURN = TransactionKind.RETURN


def returnable_quantities(db: Session, bill: Transaction) -> dict[str, int]:
    """Per product: quantity sold on ``bill`` minus everything already returned."""
    remaining: dict[str, int] = {}
    for line in bill.lines:
        remaining[line.product_id] = remaining.get(line.product_id, 0) + line.quantity

    previous = (
        db.query(Transaction)
        .filter(
            Transaction.original_id == bill.id,
            Transaction.kind == TransactionType.RETURN,
        )
        .all()
    )
    for txn in previous:
        for line in txn.lines:
            if line.product_id in remaining:
                remaining[line.product_id] -= line.quantity
    return remaining


def lookup_returnable(db: Session, invoice_number: str) -> dict:
    """What can still be returned from a bill, per product."""
    bill = get_bill(db, invoice_number)
    remaining = returnable_quantities(db, bill)
    sold: dict[str, int] = {}
    names: dict[str, str] = {}
    for line in bill.lines:
        sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity
        names.setdefault(line.product_id, line.name)
    return {
        "invoice_number": bill.number,
        "created_at": bill.created_at.isoformat(timespec="seconds"),
        "grand_total": str(money(Decimal(str(bill.grand_total)))),
        "items": [
            {
                "product_id": product_id,
                "name": names[product_id],
                "quantity_sold": quantity,
                "returnable_quantity": max(remaining[product_id], 0),
            }
            for product_id, quantity in sold.items()
        ],
    }


def get_return_ledger(store: KeyValueStore, terminal_id: str) -> Ledger:
    return load_ledger(store, ledger_key(RETURN, terminal_id), RETURN)


def start_return(
    db: Session, store: KeyValueStore, terminal_id: str, invoice_number: str
) -> Ledger:
    """Load a bill's returnable lines into the terminal's return ledger.

    Each line is refunded at what the customer actually paid per unit
    (line subtotal / quantity sold) and capped at the returnable quantity.
    """
    bill = get_bill(db, invoice_number)
    remaining = returnable_quantities(db, bill)

    items: list[SaleLineItem] = []
    for line in bill.lines:
        quantity = remaining.get(line.product_id, 0)
        if quantity <= 0:
            continue
        paid_per_unit = money(Decimal(str(line.subtotal)) / line.quantity)
        items.append(
            SaleLineItem(
                product_id=line.product_id,
                name=line.name,
                unit_price=paid_per_unit,
                quantity=quantity,
                tax_rate=line.tax_rate,
                unit_cost=line.unit_cost,
            )
        )
    if not items:
        raise ValueError(f"All items on invoice {invoice_number} have already been returned")

    ledger = Ledger(RETURN, items)
    for item in items:
        ledger.limit_quantity(item.product_id, item.quantity)
    ledger.reference = bill.number
    save_ledger(store, ledger_key(RETURN, terminal_id), ledger)
    return ledger


def cancel_return(store: KeyValueStore, terminal_id: str) -> Ledger:
    ledger = Ledger(RETURN)
    save_ledger(store, ledger_key(RETURN, terminal_id), ledger)
    return ledger


def complete_return(
    db: Session,
    store: KeyValueStore,
    terminal_id: str,
    now: datetime | None = None,
) -> Transaction:
    """Record the return and put the returned units back into stock."""
    key = ledger_key(RETURN, terminal_id)
    ledger = load_ledger(store, key, RETURN)
    if ledger.is_empty or ledger.reference is None:
        raise ValueError("No return in progress")
    recovered = recover_finalized(db, store, key, ledger)
    if recovered is not None:
        return recovered

    bill = get_bill(db, ledger.reference)
    # Lock first so concurrent returns of the same bill see each other
    products = lock_products(db, [item.product_id for item in ledger.items])
    remaining = returnable_quantities(db, bill)
    for item in ledger.items:
        if item.quantity > remaining.get(item.product_id, 0):
            raise ValueError(
                f"Only {max(remaining.get(item.product_id, 0), 0)} unit(s) of "
                f"'{item.name}' can still be returned"
            )

    def restock(line: LineSnapshot) -> None:
        product = products.get(line.product_id)
        if product is None:
            logger.warning(
                "Returned product %s (%s) is no longer in the catalog; not restocked",
                line.product_id,
                line.name,
            )
            return
        product.stock += line.quantity

    return finalize_ledger(
        db,
        store,
        key,
        ledger,
        restock,
        now=now,
        original_id=bill.id,
        customer_name=bill.customer_name,
        customer_phone=bill.customer_phone,
        payment_method=bill.payment_method,
    )
