from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, field_validator


class SavePurchaseRequest(BaseModel):
    supplier_id: UUID | None = None
    supplier_bill_no: str | None = None

    @field_validator("supplier_bill_no")
    @classmethod
    def strip_bill_no(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None
