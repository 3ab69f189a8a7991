"""Read-only rollups over finalized transactions.

Reports read the frozen values stored at finalization (prices, costs,
discounts), never the current product master, and never write.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Query, Session, selectinload

from textile_pos.app.models.transaction import Transaction, TransactionType
from textile_pos.app.services.ledger import money

ZERO = Decimal("0")


def _to_dt(d: date) -> datetime:
    """Convert a date to start-of-day UTC datetime."""
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def _d(value: object) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _fmt(value: Decimal) -> str:
    return str(money(value))


def _in_range(
    db: Session,
    kind: TransactionType,
    start_date: date | None,
    end_date: date | None,
) -> Query[Transaction]:
    if start_date and end_date and start_date > end_date:
        raise ValueError("start_date must be on or before end_date")
    query = (
        db.query(Transaction)
        .options(selectinload(Transaction.lines))
        .filter(Transaction.kind == kind)
    )
    if start_date:
        query = query.filter(Transaction.created_at >= _to_dt(start_date))
    if end_date:
        query = query.filter(Transaction.created_at < _to_dt(end_date + timedelta(days=1)))
    return query.order_by(Transaction.created_at, Transaction.number)


def _line_cost(txn: Transaction) -> Decimal:
    return sum((_d(line.unit_cost) * line.quantity for line in txn.lines), ZERO)


def _returns_by_bill(db: Session, bill_ids: list) -> dict:
    if not bill_ids:
        return {}
    returns = (
        db.query(Transaction)
        .options(selectinload(Transaction.lines))
        .filter(
            Transaction.kind == TransactionType.RETURN,
            Transaction.original_id.in_(bill_ids),
        )
        .all()
    )
    grouped: dict = {}
    for txn in returns:
        grouped.setdefault(txn.original_id, []).append(txn)
    return grouped


def sales_report(
    db: Session, start_date: date | None = None, end_date: date | None = None
) -> list[dict[str, object]]:
    return [
        {
            "invoice_number": txn.number,
            "date": txn.created_at.isoformat(timespec="seconds"),
            "customer_name": txn.customer_name,
            "payment_method": txn.payment_method.value if txn.payment_method else None,
            "item_count": txn.item_count,
            "total_quantity": txn.total_quantity,
            "sub_total": _fmt(_d(txn.sub_total)),
            "discount": _fmt(_d(txn.total_discount)),
            "tax": _fmt(_d(txn.total_tax)),
            "total": _fmt(_d(txn.grand_total)),
        }
        for txn in _in_range(db, TransactionType.SALE, start_date, end_date).all()
    ]


def profit_report(
    db: Session, start_date: date | None = None, end_date: date | None = None
) -> list[dict[str, object]]:
    """Per bill: sale total, cost of goods at sale time and net profit.

    Returns against a bill are netted out of both its sale and its cost.
    """
    bills = _in_range(db, TransactionType.SALE, start_date, end_date).all()
    returns = _returns_by_bill(db, [b.id for b in bills])

    rows: list[dict[str, object]] = []
    for bill in bills:
        returned = returns.get(bill.id, [])
        total_sale = _d(bill.grand_total) - sum((_d(r.grand_total) for r in returned), ZERO)
        total_cost = _line_cost(bill) - sum((_line_cost(r) for r in returned), ZERO)
        rows.append({
            "invoice_number": bill.number,
            "date": bill.created_at.isoformat(timespec="seconds"),
            "total_sale": _fmt(total_sale),
            "total_cost": _fmt(total_cost),
            "net_profit": _fmt(total_sale - total_cost),
        })
    return rows


def purchase_report(
    db: Session, start_date: date | None = None, end_date: date | None = None
) -> list[dict[str, object]]:
    return [
        {
            "purchase_number": txn.number,
            "date": txn.created_at.isoformat(timespec="seconds"),
            "supplier_name": txn.supplier_name,
            "supplier_bill_no": txn.supplier_bill_no,
            "item_count": txn.item_count,
            "total_quantity": txn.total_quantity,
            "tax": _fmt(_d(txn.total_tax)),
            "discount": _fmt(_d(txn.total_discount)),
            "total": _fmt(_d(txn.grand_total)),
        }
        for txn in _in_range(db, TransactionType.PURCHASE, start_date, end_date).all()
    ]


def summary_report(
    db: Session, start_date: date | None = None, end_date: date | None = None
) -> dict[str, object]:
    """Headline totals for the period; returns are counted by their own date."""
    sales = _in_range(db, TransactionType.SALE, start_date, end_date).all()
    returns = _in_range(db, TransactionType.RETURN, start_date, end_date).all()
    purchases = _in_range(db, TransactionType.PURCHASE, start_date, end_date).all()

    gross_sales = sum((_d(t.grand_total) for t in sales), ZERO)
    returns_total = sum((_d(t.grand_total) for t in returns), ZERO)
    cost = sum((_line_cost(t) for t in sales), ZERO) - sum(
        (_line_cost(t) for t in returns), ZERO
    )
    net_sales = gross_sales - returns_total

    return {
        "from_date": start_date.isoformat() if start_date else None,
        "to_date": end_date.isoformat() if end_date else None,
        "bill_count": len(sales),
        "gross_sales": _fmt(gross_sales),
        "returns": _fmt(returns_total),
        "net_sales": _fmt(net_sales),
        "total_discount": _fmt(sum((_d(t.total_discount) for t in sales), ZERO)),
        "total_tax": _fmt(sum((_d(t.total_tax) for t in sales), ZERO)),
        "cost_of_goods": _fmt(cost),
        "net_profit": _fmt(net_sales - cost),
        "purchase_count": len(purchases),
        "purchases_total": _fmt(sum((_d(t.grand_total) for t in purchases), ZERO)),
    }
