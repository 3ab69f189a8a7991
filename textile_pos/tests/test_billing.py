"""Tests for the billing counter: scanning, checkout and held bills."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from textile_pos.app.core.config import settings
from textile_pos.app.models.catalog import Product
from textile_pos.app.models.transaction import PaymentMethod, Transaction, TransactionType
from textile_pos.app.services import billing
from textile_pos.app.services.storage import MemoryStore, ledger_key, save_ledger

T1 = "counter-1"
NOW = datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc)


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _fill(db: Session, store: MemoryStore, saree: Product, dhoti: Product) -> None:
    """Two sarees with 10 off and one dhoti: total 240."""
    billing.scan_item(db, store, T1, saree.code)
    billing.scan_item(db, store, T1, "silk saree")
    billing.scan_item(db, store, T1, dhoti.code)
    ledger = billing.get_sale_ledger(store, T1)
    assert ledger.set_line_discount(str(saree.id), "10").ok
    save_ledger(store, ledger_key(billing.SALE, T1), ledger)


# ─── TestScan ────────────────────────────────────────────────────────────────


class TestScan:
    def test_scan_adds_and_persists(self, db: Session, store: MemoryStore, saree: Product) -> None:
        ledger, outcome = billing.scan_item(db, store, T1, saree.code)
        assert outcome.ok
        assert ledger.get(str(saree.id)).quantity == 1
        assert billing.get_sale_ledger(store, T1).get(str(saree.id)).quantity == 1

    def test_scan_miss(self, db: Session, store: MemoryStore, saree: Product) -> None:
        ledger, outcome = billing.scan_item(db, store, T1, "000000")
        assert not outcome.ok
        assert outcome.not_found
        assert ledger.is_empty

    def test_scan_by_non_ascii_name(self, db: Session, store: MemoryStore) -> None:
        db.add(Product(code="777001", name="ÉLITE Saree", price=Decimal("450")))
        db.commit()
        ledger, outcome = billing.scan_item(db, store, T1, "élite saree")
        assert outcome.ok, outcome.message
        assert ledger.totals.grand_total == Decimal("450.00")

    def test_terminals_do_not_share_bills(
        self, db: Session, store: MemoryStore, saree: Product
    ) -> None:
        billing.scan_item(db, store, T1, saree.code)
        assert billing.get_sale_ledger(store, "counter-2").is_empty

    def test_reset(self, db: Session, store: MemoryStore, saree: Product) -> None:
        billing.scan_item(db, store, T1, saree.code)
        billing.reset_sale(store, T1)
        assert billing.get_sale_ledger(store, T1).is_empty


# ─── TestCheckout ────────────────────────────────────────────────────────────


class TestCheckout:
    def test_checkout_records_bill_and_deducts_stock(
        self, db: Session, store: MemoryStore, saree: Product, dhoti: Product
    ) -> None:
        _fill(db, store, saree, dhoti)
        txn = billing.checkout(
            db,
            store,
            T1,
            payment_method=PaymentMethod.CASH,
            customer_name="Lakshmi",
            amount_received=Decimal("500"),
            now=NOW,
        )

        assert txn.kind is TransactionType.SALE
        assert re.fullmatch(r"TGT/\d{8}/1", txn.number)
        assert txn.grand_total == Decimal("240.00")
        assert txn.sub_total == Decimal("250.00")
        assert txn.total_discount == Decimal("10.00")
        assert txn.change_due == Decimal("260.00")
        assert txn.customer_name == "Lakshmi"
        assert [line.subtotal for line in txn.lines] == [Decimal("190.00"), Decimal("50.00")]
        assert txn.lines[0].unit_cost == Decimal("70.00")

        db.refresh(saree)
        db.refresh(dhoti)
        assert saree.stock == 18
        assert dhoti.stock == 9
        assert billing.get_sale_ledger(store, T1).is_empty

    def test_numbers_increase_per_checkout(
        self, db: Session, store: MemoryStore, saree: Product
    ) -> None:
        numbers = []
        for _ in range(3):
            billing.scan_item(db, store, T1, saree.code)
            numbers.append(billing.checkout(db, store, T1, payment_method=PaymentMethod.UPI).number)
        assert [n.rsplit("/", 1)[1] for n in numbers] == ["1", "2", "3"]

    def test_empty_bill_rejected(self, db: Session, store: MemoryStore) -> None:
        with pytest.raises(ValueError, match="Add at least one item"):
            billing.checkout(db, store, T1)

    def test_insufficient_stock_keeps_bill_and_number(
        self, db: Session, store: MemoryStore, dhoti: Product
    ) -> None:
        billing.scan_item(db, store, T1, dhoti.code)
        ledger = billing.get_sale_ledger(store, T1)
        ledger.set_quantity(str(dhoti.id), 11)
        save_ledger(store, ledger_key(billing.SALE, T1), ledger)

        with pytest.raises(ValueError, match="Insufficient stock"):
            billing.checkout(db, store, T1)
        assert billing.get_sale_ledger(store, T1).get(str(dhoti.id)).quantity == 11
        assert db.query(Transaction).count() == 0

        ledger.set_quantity(str(dhoti.id), 10)
        save_ledger(store, ledger_key(billing.SALE, T1), ledger)
        txn = billing.checkout(db, store, T1)
        assert txn.number.endswith("/1")

    def test_short_cash_rejected(
        self, db: Session, store: MemoryStore, saree: Product
    ) -> None:
        billing.scan_item(db, store, T1, saree.code)
        with pytest.raises(ValueError, match="less than the bill total"):
            billing.checkout(db, store, T1, amount_received=Decimal("99"))
        assert not billing.get_sale_ledger(store, T1).is_empty

    def test_failed_persist_releases_kv_number(
        self,
        db: Session,
        store: MemoryStore,
        saree: Product,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "SEQUENCE_BACKEND", "kv")
        billing.scan_item(db, store, T1, saree.code)

        def boom(*args: object, **kwargs: object) -> None:
            raise RuntimeError("database unavailable")

        monkeypatch.setattr("textile_pos.app.services.transactions.record_transaction", boom)
        with pytest.raises(RuntimeError):
            billing.checkout(db, store, T1)

        assert store.get("invoiceCounter") == 1
        assert not billing.get_sale_ledger(store, T1).is_empty
        db.refresh(saree)
        assert saree.stock == 20

    def test_uncleared_ledger_is_not_billed_twice(
        self,
        db: Session,
        store: MemoryStore,
        saree: Product,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        billing.scan_item(db, store, T1, saree.code)

        def unavailable(key: str, value: object) -> None:
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(store, "set", unavailable)
        with pytest.raises(RuntimeError):
            billing.checkout(db, store, T1, now=NOW)
        monkeypatch.undo()

        assert db.query(Transaction).count() == 1
        assert not billing.get_sale_ledger(store, T1).is_empty

        txn = billing.checkout(db, store, T1, now=NOW)
        assert txn.number.endswith("/1")
        assert db.query(Transaction).count() == 1
        assert billing.get_sale_ledger(store, T1).is_empty
        db.refresh(saree)
        assert saree.stock == 19

    def test_ledger_edited_after_uncleared_commit_is_rejected(
        self,
        db: Session,
        store: MemoryStore,
        saree: Product,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        billing.scan_item(db, store, T1, saree.code)

        def unavailable(key: str, value: object) -> None:
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(store, "set", unavailable)
        with pytest.raises(RuntimeError):
            billing.checkout(db, store, T1)
        monkeypatch.undo()

        billing.scan_item(db, store, T1, saree.code)
        with pytest.raises(ValueError, match="already saved"):
            billing.checkout(db, store, T1)
        assert billing.get_sale_ledger(store, T1).is_empty
        assert db.query(Transaction).count() == 1
        db.refresh(saree)
        assert saree.stock == 19

    def test_number_dated_from_finalize_time(
        self, db: Session, store: MemoryStore, saree: Product
    ) -> None:
        late = datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)
        billing.scan_item(db, store, T1, saree.code)
        txn = billing.checkout(db, store, T1, now=late)
        assert txn.number == "TGT/19102026/1"

    def test_later_price_change_does_not_touch_bill(
        self, db: Session, store: MemoryStore, saree: Product
    ) -> None:
        billing.scan_item(db, store, T1, saree.code)
        number = billing.checkout(db, store, T1).number
        saree.price = Decimal("500")
        db.commit()
        bill = billing.get_bill(db, number)
        assert bill.lines[0].unit_price == Decimal("100.00")
        assert bill.grand_total == Decimal("100.00")


class TestChangeDue:
    def test_cash_change(self) -> None:
        assert billing.change_due(PaymentMethod.CASH, Decimal("300"), Decimal("240")) == Decimal("60.00")

    def test_card_has_no_change(self) -> None:
        assert billing.change_due(PaymentMethod.CARD, None, Decimal("240")) == Decimal("0")

    def test_cash_without_amount(self) -> None:
        assert billing.change_due(PaymentMethod.CASH, None, Decimal("240")) == Decimal("0")


# ─── TestHeldBills ───────────────────────────────────────────────────────────


class TestHeldBills:
    def test_hold_parks_bill_and_clears_terminal(
        self, db: Session, store: MemoryStore, saree: Product, dhoti: Product
    ) -> None:
        _fill(db, store, saree, dhoti)
        record = billing.hold_bill(store, T1, customer_name="Meena")
        assert record["final_amount"] == "240.00"
        assert record["item_count"] == 2
        assert billing.get_sale_ledger(store, T1).is_empty
        assert [h["id"] for h in billing.list_holds(store)] == [record["id"]]

    def test_retrieve_replaces_active_bill(
        self, db: Session, store: MemoryStore, saree: Product, dhoti: Product
    ) -> None:
        _fill(db, store, saree, dhoti)
        record = billing.hold_bill(store, T1)
        billing.scan_item(db, store, T1, dhoti.code)

        ledger, _ = billing.retrieve_hold(store, T1, record["id"])
        assert ledger.totals.grand_total == Decimal("240.00")
        assert billing.get_sale_ledger(store, T1).totals.grand_total == Decimal("240.00")
        assert billing.list_holds(store) == []

    def test_hold_empty_rejected(self, store: MemoryStore) -> None:
        with pytest.raises(ValueError):
            billing.hold_bill(store, T1)

    def test_delete_hold(self, db: Session, store: MemoryStore, saree: Product) -> None:
        billing.scan_item(db, store, T1, saree.code)
        record = billing.hold_bill(store, T1)
        billing.delete_hold(store, record["id"])
        assert billing.list_holds(store) == []
        with pytest.raises(ValueError, match="not found"):
            billing.delete_hold(store, record["id"])
