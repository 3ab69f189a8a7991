from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import get_store, get_terminal_id, http_error, raise_for_outcome
from textile_pos.app.core.database import get_db
from textile_pos.app.models.transaction import Transaction
from textile_pos.app.schemas.billing import TransactionOut
from textile_pos.app.schemas.ledger import LedgerOut, QuantityRequest
from textile_pos.app.schemas.returns import ReturnableOut, StartReturnRequest
from textile_pos.app.services import returns
from textile_pos.app.services.storage import KeyValueStore, edit_ledger

router = APIRouter()


@router.get("/invoice/{invoice_number:path}", response_model=ReturnableOut)
def get_invoice_for_return(invoice_number: str, db: Session = Depends(get_db)) -> dict:
    try:
        return returns.lookup_returnable(db, invoice_number)
    except ValueError as e:
        raise http_error(e)


@router.get("/ledger", response_model=LedgerOut)
def get_ledger(
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return LedgerOut.from_ledger(returns.get_return_ledger(store, terminal_id))


@router.post("/ledger", response_model=LedgerOut)
def start_return(
    payload: StartReturnRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    try:
        ledger = returns.start_return(db, store, terminal_id, payload.invoice_number)
    except ValueError as e:
        raise http_error(e)
    return LedgerOut.from_ledger(ledger)


@router.put("/ledger/items/{product_id}/quantity", response_model=LedgerOut)
def set_quantity(
    product_id: str,
    payload: QuantityRequest,
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    ledger, outcome = edit_ledger(
        store,
        returns.RETURN,
        terminal_id,
        lambda ledger: ledger.set_quantity(product_id, payload.quantity),
    )
    raise_for_outcome(outcome)
    return LedgerOut.from_ledger(ledger)


@router.delete("/ledger", response_model=LedgerOut)
def cancel_return(
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> LedgerOut:
    return LedgerOut.from_ledger(returns.cancel_return(store, terminal_id))


@router.post("/process", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def complete_return(
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    terminal_id: str = Depends(get_terminal_id),
) -> Transaction:
    try:
        return returns.complete_return(db, store, terminal_id)
    except ValueError as e:
        raise http_error(e)
