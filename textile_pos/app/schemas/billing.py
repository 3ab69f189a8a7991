from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator, model_validator

from textile_pos.app.models.transaction import PaymentMethod, TransactionType
from textile_pos.app.schemas.ledger import LedgerOut


# ─── Request Schemas ──────────────────────────────────────────────────────────


class CheckoutRequest(BaseModel):
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_name: str | None = None
    customer_phone: str | None = None
    amount_received: Decimal | None = None

    @field_validator("amount_received")
    @classmethod
    def amount_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("amount_received must be non-negative")
        return v

    @model_validator(mode="after")
    def received_only_for_cash(self) -> CheckoutRequest:
        if self.payment_method is not PaymentMethod.CASH and self.amount_received is not None:
            raise ValueError("amount_received applies to cash payments only")
        return self


class HoldRequest(BaseModel):
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH


# ─── Response Schemas ─────────────────────────────────────────────────────────


class TransactionLineOut(BaseModel):
    position: int
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

    class Config:
        from_attributes = True


class TransactionOut(BaseModel):
    id: UUID
    number: str
    kind: TransactionType
    created_at: datetime
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: PaymentMethod | None = None
    amount_received: Decimal | None = None
    change_due: Decimal
    supplier_id: UUID | None = None
    supplier_name: str | None = None
    supplier_bill_no: str | None = None
    original_number: str | None = None
    item_count: int
    total_quantity: int
    sub_total: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    lines: list[TransactionLineOut]

    class Config:
        from_attributes = True


class HeldBillOut(BaseModel):
    id: str
    terminal_id: str
    created_at: str
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: PaymentMethod
    item_count: int
    final_amount: str


class RetrievedHoldOut(BaseModel):
    hold: HeldBillOut
    ledger: LedgerOut
