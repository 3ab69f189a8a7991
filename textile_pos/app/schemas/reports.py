"""Pydantic response schemas for sales, profit and purchase reports."""
from __future__ import annotations

from pydantic import BaseModel


# ── Sales ────────────────────────────────────────────────────────────────────

class SalesReportRow(BaseModel):
    invoice_number: str
    date: str
    customer_name: str | None
    payment_method: str | None
    item_count: int
    total_quantity: int
    sub_total: str
    discount: str
    tax: str
    total: str


# ── Profit ───────────────────────────────────────────────────────────────────

class ProfitReportRow(BaseModel):
    invoice_number: str
    date: str
    total_sale: str
    total_cost: str
    net_profit: str


# ── Purchases ────────────────────────────────────────────────────────────────

class PurchaseReportRow(BaseModel):
    purchase_number: str
    date: str
    supplier_name: str | None
    supplier_bill_no: str | None
    item_count: int
    total_quantity: int
    tax: str
    discount: str
    total: str


# ── Summary ──────────────────────────────────────────────────────────────────

class SummaryResponse(BaseModel):
    from_date: str | None
    to_date: str | None
    bill_count: int
    gross_sales: str
    returns: str
    net_sales: str
    total_discount: str
    total_tax: str
    cost_of_goods: str
    net_profit: str
    purchase_count: int
    purchases_total: str
