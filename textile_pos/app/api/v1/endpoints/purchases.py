"""Purchase entry: the terminal's working supplier invoice and saving it to stock."""
from __future__ import annotations

from collections.abc import Callable

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import get_store, get_terminal_id, http_error, raise_for_outcome
from textile_pos.app.core.database import get_db
from textile_pos.app.models.transaction import Transaction
from textile_pos.app.schemas.billing import TransactionOut
from textile_pos.app.schemas.ledger import (
    DiscountRequest,
    LedgerOut,
    PriceRequest,
    QuantityRequest,
    ScanRequest,
    TaxRateRequest,
)
from textile_pos.app.schemas.purchase import SavePurchaseRequest
from textile_pos.app.services import purchase
from textile_pos.app.services.ledger import Ledger, LedgerOutcome
from textile_pos.app.services.storage import KeyValueStore, edit_ledger

router = APIRouter()


def _edit(
    store: KeyValueStore, terminal_id: str, edit: Callable[[Ledger], LedgerOutcome]
) -> LedgerOut:
    ledger, outcome = edit_ledger(store, purchase.PURCHASE, terminal_id, edit)
    raise_for_outcome(outcome)
    return LedgerOut.from_ledger(ledger)


@router.get("/ledger", response_model=LedgerOut)
def get_ledger(
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return LedgerOut.from_ledger(purchase.get_purchase_ledger(store, terminal_id))


@router.post("/ledger/items", response_model=LedgerOut)
def add_item(
    payload: ScanRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    ledger, outcome = purchase.add_purchase_item(db, store, terminal_id, payload.lookup)
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


@router.put("/ledger/items/{product_id}/tax-rate", response_model=LedgerOut)
def set_tax_rate(
    product_id: str,
    payload: TaxRateRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(store, terminal_id, lambda ledger: ledger.set_tax_rate(product_id, payload.rate))


@router.put("/ledger/items/{product_id}/buy-rate", response_model=LedgerOut)
def set_buy_rate(
    product_id: str,
    payload: PriceRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(
        store, terminal_id, lambda ledger: ledger.set_unit_price(product_id, payload.price)
    )


@router.put("/ledger/items/{product_id}/retail-rate", response_model=LedgerOut)
def set_retail_rate(
    product_id: str,
    payload: PriceRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return _edit(
        store, terminal_id, lambda ledger: ledger.set_retail_rate(product_id, payload.price)
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
    return LedgerOut.from_ledger(purchase.reset_purchase(store, terminal_id))


@router.post("/", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def save_purchase(
    payload: SavePurchaseRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> Transaction:
    try:
        return purchase.save_purchase(
            db,
            store,
            terminal_id,
            supplier_id=payload.supplier_id,
            supplier_bill_no=payload.supplier_bill_no,
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/{purchase_number:path}", response_model=TransactionOut)
def get_purchase(purchase_number: str, db: Session = Depends(get_db)) -> Transaction:
    try:
        return purchase.get_purchase(db, purchase_number)
    except ValueError as e:
        raise http_error(e)
