from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import http_error
from textile_pos.app.core.database import get_db
from textile_pos.app.models.transaction import Transaction
from textile_pos.app.schemas.billing import TransactionOut
from textile_pos.app.services.billing import get_bill

router = APIRouter()


# Invoice numbers contain slashes (TGT/19102026/42)
@router.get("/{invoice_number:path}", response_model=TransactionOut)
def get_bill_by_number(invoice_number: str, db: Session = Depends(get_db)) -> Transaction:
    try:
        return get_bill(db, invoice_number)
    except ValueError as e:
        raise http_error(e)
