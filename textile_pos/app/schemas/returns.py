from __future__ import annotations

from pydantic import BaseModel, field_validator


class StartReturnRequest(BaseModel):
    invoice_number: str

    @field_validator("invoice_number")
    @classmethod
    def invoice_number_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Invoice number is required")
        return v.strip()


class ReturnableLineOut(BaseModel):
    product_id: str
    name: str
    quantity_sold: int
    returnable_quantity: int


class ReturnableOut(BaseModel):
    invoice_number: str
    created_at: str
    grand_total: str
    items: list[ReturnableLineOut]
