from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, field_validator


class ShopSettingsOut(BaseModel):
    shop_name: str
    gst_number: str
    bill_message: str
    default_gst: Decimal


class ShopSettingsUpdate(BaseModel):
    shop_name: str | None = None
    gst_number: str | None = None
    bill_message: str | None = None
    default_gst: Decimal | None = None

    @field_validator("shop_name")
    @classmethod
    def shop_name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Shop name cannot be blank")
        return v.strip() if v is not None else v

    @field_validator("default_gst")
    @classmethod
    def gst_in_range(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("Default GST must be between 0 and 100")
        return v
