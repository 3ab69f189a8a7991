from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, field_validator

from textile_pos.app.core.config import settings


class LabelRequestItem(BaseModel):
    product_id: UUID
    count: int

    @field_validator("count")
    @classmethod
    def count_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("count must be non-negative")
        return v


class LabelRequest(BaseModel):
    items: list[LabelRequestItem]

    @field_validator("items")
    @classmethod
    def batch_within_limit(cls, v: list[LabelRequestItem]) -> list[LabelRequestItem]:
        if not v:
            raise ValueError("Select at least one product")
        total = sum(item.count for item in v)
        if total > settings.LABEL_MAX_BATCH:
            raise ValueError(
                f"At most {settings.LABEL_MAX_BATCH} labels per batch, got {total}"
            )
        return v


class StickerLabelOut(BaseModel):
    product_id: str
    barcode_value: str
    barcode_image: str
    shop_name: str
    product_name: str
    price: str


class LabelFailureOut(BaseModel):
    product_id: str
    barcode_value: str
    skipped: int
    reason: str


class LabelBatchOut(BaseModel):
    requested: int
    labels: list[StickerLabelOut]
    failures: list[LabelFailureOut]
