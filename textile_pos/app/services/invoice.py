from __future__ import annotations

from datetime import date, datetime, timezone

from textile_pos.app.core.config import settings


def _number(prefix: str, sequence: int, on: date | None) -> str:
    # Same clock as the stored created_at
    if on is None:
        on = datetime.now(timezone.utc).date()
    return f"{prefix}/{on:%d%m%Y}/{sequence}"


def generate_invoice_number(sequence: int, on: date | None = None) -> str:
    """Return a bill number like TGT/19102026/42."""
    return _number(settings.SALE_PREFIX, sequence, on)


def generate_purchase_number(sequence: int, on: date | None = None) -> str:
    """Return a purchase entry number like PUR/19102026/7."""
    return _number(settings.PURCHASE_PREFIX, sequence, on)


def generate_return_number(sequence: int, on: date | None = None) -> str:
    """Return a sales return number like RET/19102026/3."""
    return _number(settings.RETURN_PREFIX, sequence, on)
