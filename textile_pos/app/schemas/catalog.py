from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator


# ─── Supplier ─────────────────────────────────────────────────────────────────


class SupplierCreate(BaseModel):
    name: str
    contact: str | None = None
    gst_number: str | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Supplier name is required")
        return v.strip()


class SupplierUpdate(BaseModel):
    name: str | None = None
    contact: str | None = None
    gst_number: str | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Supplier name cannot be blank")
        return v.strip() if v is not None else v


class SupplierOut(BaseModel):
    id: UUID
    code: str
    name: str
    contact: str | None
    gst_number: str | None
    address: str | None

    class Config:
        from_attributes = True


# ─── Product ──────────────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    name: str
    code: str | None = None
    price: Decimal
    cost_price: Decimal = Decimal("0")
    stock: int = 0
    gst_rate: Decimal | None = None
    supplier_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name is required")
        return v.strip()

    @field_validator("price", "cost_price")
    @classmethod
    def money_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Prices must be non-negative")
        return v

    @field_validator("stock")
    @classmethod
    def stock_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock must be non-negative")
        return v

    @field_validator("gst_rate")
    @classmethod
    def gst_in_range(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("GST must be between 0 and 100")
        return v


class ProductUpdate(BaseModel):
    name: str | None = None
    code: str | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    stock: int | None = None
    gst_rate: Decimal | None = None
    supplier_id: UUID | None = None

    @field_validator("price", "cost_price")
    @classmethod
    def money_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Prices must be non-negative")
        return v

    @field_validator("stock")
    @classmethod
    def stock_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Stock must be non-negative")
        return v

    @field_validator("gst_rate")
    @classmethod
    def gst_in_range(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("GST must be between 0 and 100")
        return v


class ProductOut(BaseModel):
    id: UUID
    code: str
    name: str
    price: Decimal
    cost_price: Decimal
    stock: int
    gst_rate: Decimal
    supplier_id: UUID | None
    supplier_name: str | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
