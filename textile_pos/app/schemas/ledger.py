from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, field_validator

from textile_pos.app.services.ledger import Ledger, LedgerState, LineItem, TransactionKind


# ─── Request Schemas ──────────────────────────────────────────────────────────


class ScanRequest(BaseModel):
    lookup: str

    @field_validator("lookup")
    @classmethod
    def lookup_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Enter a product code or name.")
        return v.strip()


# Edit values stay loosely typed: the ledger coerces operator input itself
# and answers with a prompt instead of a validation error.


class QuantityRequest(BaseModel):
    quantity: Any


class DiscountRequest(BaseModel):
    amount: Any = None


class TaxRateRequest(BaseModel):
    rate: Any


class PriceRequest(BaseModel):
    price: Any


# ─── Response Schemas ─────────────────────────────────────────────────────────


class LineItemOut(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_discount: Decimal
    tax_rate: Decimal | None
    tax_amount: Decimal
    subtotal: Decimal
    unit_cost: Decimal | None = None
    retail_rate: Decimal | None = None
    mrp: Decimal | None = None
    max_quantity: int | None = None


class TotalsOut(BaseModel):
    item_count: int
    total_quantity: int
    sub_total: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal


class LedgerOut(BaseModel):
    kind: TransactionKind
    state: LedgerState
    pending_lookup: str
    reference: str | None
    items: list[LineItemOut]
    totals: TotalsOut

    @classmethod
    def from_ledger(cls, ledger: Ledger) -> LedgerOut:
        return cls(
            kind=ledger.kind,
            state=ledger.state,
            pending_lookup=ledger.pending_lookup,
            reference=ledger.reference,
            items=[_line_out(ledger, item) for item in ledger.items],
            totals=TotalsOut(**asdict(ledger.totals)),
        )


def _line_out(ledger: Ledger, item: LineItem) -> LineItemOut:
    snap = item.snapshot()
    return LineItemOut(
        **asdict(snap),
        max_quantity=ledger.limit_for(item.product_id),
    )
