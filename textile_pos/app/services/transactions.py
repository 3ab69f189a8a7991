"""Writing and reading finalized transactions.

A transaction is written exactly once, by ``finalize_ledger``, in the same
database transaction that consumes its sequence number and moves stock.
Everything else only reads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from textile_pos.app.models.catalog import Product
from textile_pos.app.models.transaction import Transaction, TransactionLine, TransactionType
from textile_pos.app.services.ledger import FinalizedTransaction, Ledger, LineSnapshot, money
from textile_pos.app.services.sequence import sequence_for
from textile_pos.app.services.storage import KeyValueStore, save_ledger

logger = logging.getLogger(__name__)


def record_transaction(
    db: Session, snapshot: FinalizedTransaction, **header: Any
) -> Transaction:
    """Add a ``Transaction`` row with its lines for ``snapshot``; no commit."""
    totals = snapshot.totals
    txn = Transaction(
        number=snapshot.number,
        kind=TransactionType(snapshot.kind.value),
        created_at=snapshot.created_at,
        item_count=totals.item_count,
        total_quantity=totals.total_quantity,
        sub_total=totals.sub_total,
        total_discount=totals.total_discount,
        total_tax=totals.total_tax,
        grand_total=totals.grand_total,
        ledger_token=snapshot.token,
        **header,
    )
    for position, line in enumerate(snapshot.lines):
        txn.lines.append(
            TransactionLine(
                position=position,
                product_id=line.product_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_discount=line.line_discount,
                tax_rate=line.tax_rate,
                tax_amount=line.tax_amount,
                subtotal=line.subtotal,
                unit_cost=line.unit_cost,
                retail_rate=line.retail_rate,
            )
        )
    db.add(txn)
    db.flush()
    return txn


def lock_products(db: Session, product_ids: list[str]) -> dict[str, Product]:
    """Lock the products on a ledger, keyed by the ledger's product id."""
    ids: list[UUID] = []
    for product_id in product_ids:
        try:
            ids.append(UUID(product_id))
        except ValueError:
            continue
    if not ids:
        return {}
    products = db.query(Product).filter(Product.id.in_(ids)).with_for_update().all()
    return {str(p.id): p for p in products}


def recover_finalized(
    db: Session, store: KeyValueStore, key: str, ledger: Ledger
) -> Transaction | None:
    """Clear a stored ledger whose transaction already committed.

    This happens when the commit succeeded but clearing the terminal did
    not. An unchanged ledger returns the committed transaction; one edited
    since is cleared and rejected so its new lines get scanned again.
    """
    txn = db.query(Transaction).filter(Transaction.ledger_token == ledger.token).first()
    if txn is None:
        return None
    totals = ledger.totals
    unchanged = (
        totals.item_count == txn.item_count
        and totals.total_quantity == txn.total_quantity
        and totals.grand_total == money(Decimal(str(txn.grand_total)))
    )
    ledger.reset()
    save_ledger(store, key, ledger)
    logger.warning("Cleared ledger %s already finalized as %s", key, txn.number)
    if not unchanged:
        raise ValueError(
            f"This bill was already saved as {txn.number} and has been cleared; "
            "add the new items again"
        )
    return txn


def finalize_ledger(
    db: Session,
    store: KeyValueStore,
    key: str,
    ledger: Ledger,
    apply_line: Callable[[LineSnapshot], None],
    now: datetime | None = None,
    **header: Any,
) -> Transaction:
    """Consume a number, freeze the ledger and persist it atomically.

    ``apply_line`` moves stock for each frozen line. On any failure the
    database work is rolled back, the number is released and the stored
    ledger is left as it was, so the operator can simply retry. The number
    is dated from the same timestamp stored as ``created_at``.

    If clearing the stored ledger fails after the commit, the error is
    raised; the row carries the ledger's token, so a retry goes through
    ``recover_finalized`` instead of billing twice.
    """
    now = now or datetime.now(timezone.utc)
    sequence = sequence_for(ledger.kind, db, store)
    number = sequence.next(on=now.date())
    try:
        snapshot = ledger.finalize(number, now)
        txn = record_transaction(db, snapshot, **header)
        for line in snapshot.lines:
            apply_line(line)
        db.commit()
    except Exception:
        db.rollback()
        sequence.release(number)
        raise

    logger.info(
        "Finalized %s %s: %d line(s), total %s",
        snapshot.kind.value,
        snapshot.number,
        snapshot.totals.item_count,
        snapshot.totals.grand_total,
    )
    try:
        save_ledger(store, key, ledger)
    except Exception:
        logger.exception("%s committed but ledger %s was not cleared", snapshot.number, key)
        raise
    db.refresh(txn)
    return txn


def get_transaction(db: Session, number: str, kind: TransactionType | None = None) -> Transaction:
    query = db.query(Transaction).filter(Transaction.number == number)
    if kind is not None:
        query = query.filter(Transaction.kind == kind)
    txn = query.first()
    if not txn:
        raise ValueError(f"Invoice {number} not found")
    return txn
