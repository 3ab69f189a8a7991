"""Billing counter: the terminal's working bill, checkout and held bills."""
from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import get_store, get_terminal_id, http_error, raise_for_outcome
from textile_pos.app.core.database import get_db
from textile_pos.app.models.transaction import Transaction
from textile_pos.app.schemas.billing import (
    CheckoutRequest,
    HeldBillOut,
    HoldRequest,
    RetrievedHoldOut,
    TransactionOut,
)
from textile_pos.app.schemas.ledger import (
    DiscountRequest,
    LedgerOut,
    QuantityRequest,
    ScanRequest,
)
from textile_pos.app.services import billing
from textile_pos.app.services.ledger import Ledger, LedgerOutcome
from textile_pos.app.services.storage import KeyValueStore, edit_ledger

router = APIRouter()


def _edit(
    store: KeyValueStore, terminal_id: str, edit: Callable[[Ledger], LedgerOutcome]
) -> LedgerOut:
    ledger, outcome = edit_ledger(store, billing.SALE, terminal_id, edit)
    raise_for_outcome(outcome)
    return LedgerOut.from_ledger(ledger)


# ─── Working bill ─────────────────────────────────────────────────────────────


@router.get("/ledger", response_model=LedgerOut)
def get_ledger(
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return LedgerOut.from_ledger(billing.get_sale_ledger(store, terminal_id))


@router.post("/ledger/items", response_model=LedgerOut)
def scan_item(
    payload: ScanRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    ledger, outcome = billing.scan_item(db, store, terminal_id, payload.lookup)
    raise_for_outcome(outcome)
    return LedgerOut.from_ledger(ledger)


@router.put("/ledger/items/{product_id}/quantity", response_model=LedgerOut)
def set_quantity(
    product_id: str,
    payload: QuantityRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(
        store, terminal_id, lambda ledger: ledger.set_quantity(product_id, payload.quantity)
    )


@router.put("/ledger/items/{product_id}/discount", response_model=LedgerOut)
def set_discount(
    product_id: str,
    payload: DiscountRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(
        store, terminal_id, lambda ledger: ledger.set_line_discount(product_id, payload.amount)
    )


@router.delete("/ledger/items/{product_id}", response_model=LedgerOut)
def remove_item(
    product_id: str,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(store, terminal_id, lambda ledger: ledger.remove(product_id))


@router.delete("/ledger", response_model=LedgerOut)
def reset_ledger(
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return LedgerOut.from_ledger(billing.reset_sale(store, terminal_id))


# ─── Checkout ─────────────────────────────────────────────────────────────────


@router.post("/checkout", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> Transaction:
    try:
        return billing.checkout(
            db,
            store,
            terminal_id,
            payment_method=payload.payment_method,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            amount_received=payload.amount_received,
        )
    except ValueError as e:
        raise http_error(e)


# ─── Held bills ───────────────────────────────────────────────────────────────


@router.get("/holds", response_model=list[HeldBillOut])
def list_holds(store: KeyValueStore = Depends(get_store)) -> list[dict]:
    return billing.list_holds(store)


@router.post("/holds", response_model=HeldBillOut, status_code=status.HTTP_201_CREATED)
def hold_bill(
    payload: HoldRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> dict:
    try:
        return billing.hold_bill(
            store,
            terminal_id,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            payment_method=payload.payment_method,
        )
    except ValueError as e:
        raise http_error(e)


@router.post("/holds/{hold_id}/retrieve", response_model=RetrievedHoldOut)
def retrieve_hold(
    hold_id: str,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> RetrievedHoldOut:
    try:
        ledger, record = billing.retrieve_hold(store, terminal_id, hold_id)
    except ValueError as e:
        raise http_error(e)
    return RetrievedHoldOut(hold=HeldBillOut(**record), ledger=LedgerOut.from_ledger(ledger))


@router.delete("/holds/{hold_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_hold(hold_id: str, store: KeyValueStore = Depends(get_store)) -> None:
    try:
        billing.delete_hold(store, hold_id)
    except ValueError as e:
        raise http_error(e)
