"""Tests for the in-memory line-item ledger."""
from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from textile_pos.app.services.ledger import (
    PRODUCT_NOT_FOUND,
    CatalogEntry,
    Ledger,
    LedgerState,
    LedgerTotals,
    LineItem,
    PurchaseLineItem,
    SaleLineItem,
    TransactionKind,
    find_product,
)

ZERO = Decimal("0")

SAREE = CatalogEntry(
    product_id="p1",
    code="123456",
    name="Silk Saree",
    price=Decimal("100"),
    cost_price=Decimal("70"),
    quantity_on_hand=20,
    tax_rate=Decimal("5"),
)
DHOTI = CatalogEntry(
    product_id="p2",
    code="654321",
    name="Cotton Dhoti",
    price=Decimal("50"),
    cost_price=Decimal("30"),
    quantity_on_hand=10,
)
CATALOG = [SAREE, DHOTI]


# ─── Helpers ─────────────────────────────────────────────────────────────────


def _sale(*adds: str) -> Ledger:
    ledger = Ledger(TransactionKind.SALE)
    for key in adds:
        assert ledger.add_or_increment(CATALOG, key).ok
    return ledger


def _scenario() -> Ledger:
    """Two sarees with 10 off, one dhoti."""
    ledger = _sale("123456", "123456", "654321")
    assert ledger.set_line_discount("p1", "10").ok
    return ledger


# ─── TestLookup ──────────────────────────────────────────────────────────────


class TestLookup:
    def test_exact_code_match(self) -> None:
        assert find_product(CATALOG, "654321") is DHOTI

    def test_product_id_match(self) -> None:
        assert find_product(CATALOG, "p1") is SAREE

    def test_name_match_ignores_case(self) -> None:
        assert find_product(CATALOG, "silk SAREE") is SAREE

    def test_partial_name_does_not_match(self) -> None:
        assert find_product(CATALOG, "Silk") is None


# ─── TestAddOrIncrement ──────────────────────────────────────────────────────


class TestAddOrIncrement:
    def test_first_add_creates_line_with_catalog_price(self) -> None:
        ledger = _sale("123456")
        item = ledger.get("p1")
        assert item is not None
        assert item.quantity == 1
        assert item.unit_price == Decimal("100")
        assert item.line_discount == ZERO
        assert ledger.state is LedgerState.ACTIVE

    def test_second_add_increments(self) -> None:
        ledger = _sale("123456", "silk saree")
        assert len(ledger.items) == 1
        assert ledger.get("p1").quantity == 2

    def test_sale_line_freezes_unit_cost(self) -> None:
        item = _sale("123456").get("p1")
        assert isinstance(item, SaleLineItem)
        assert item.unit_cost == Decimal("70")

    def test_miss_is_reported_not_raised(self) -> None:
        ledger = _sale("123456")
        before = ledger.to_dict()
        outcome = ledger.add_or_increment(CATALOG, "999999")
        assert not outcome.ok
        assert outcome.not_found
        assert outcome.message == PRODUCT_NOT_FOUND
        assert ledger.to_dict() == before

    def test_pending_lookup_used_and_cleared_on_success(self) -> None:
        ledger = Ledger()
        ledger.set_lookup(" 654321 ")
        assert ledger.add_or_increment(CATALOG).ok
        assert ledger.pending_lookup == ""
        assert ledger.get("p2") is not None

    def test_pending_lookup_kept_on_miss(self) -> None:
        ledger = Ledger()
        ledger.set_lookup("nope")
        assert not ledger.add_or_increment(CATALOG).ok
        assert ledger.pending_lookup == "nope"

    def test_blank_lookup_fails(self) -> None:
        outcome = Ledger().add_or_increment(CATALOG, "   ")
        assert not outcome.ok
        assert not outcome.not_found

    def test_return_ledger_rejects_adds(self) -> None:
        ledger = Ledger(TransactionKind.RETURN)
        assert not ledger.add_or_increment(CATALOG, "123456").ok
        assert ledger.is_empty


# ─── TestTotals ──────────────────────────────────────────────────────────────


class TestTotals:
    def test_sale_scenario(self) -> None:
        ledger = _scenario()
        assert [i.subtotal for i in ledger.items] == [Decimal("190.00"), Decimal("50.00")]
        totals = ledger.totals
        assert totals.sub_total == Decimal("250.00")
        assert totals.total_discount == Decimal("10.00")
        assert totals.grand_total == Decimal("240.00")
        assert totals.item_count == 2
        assert totals.total_quantity == 3

    def test_sale_tax_is_extracted_from_price(self) -> None:
        ledger = _scenario()
        # 190 * 5 / 105
        assert ledger.get("p1").tax_amount == Decimal("9.05")
        assert ledger.get("p2").tax_amount == ZERO
        assert ledger.totals.total_tax == Decimal("9.05")

    def test_purchase_scenario(self) -> None:
        entry = CatalogEntry(
            product_id="p9",
            name="Bedsheet",
            price=Decimal("150"),
            cost_price=Decimal("100"),
            tax_rate=Decimal("5"),
        )
        ledger = Ledger(TransactionKind.PURCHASE)
        assert ledger.add_or_increment([entry], "p9").ok
        assert ledger.set_quantity("p9", 3).ok
        item = ledger.get("p9")
        assert isinstance(item, PurchaseLineItem)
        assert item.unit_price == Decimal("100")
        assert item.retail_rate == Decimal("150")
        assert item.tax_amount == Decimal("15.00")
        assert item.subtotal == Decimal("315.00")
        assert ledger.totals.grand_total == Decimal("315.00")

    def test_grand_total_is_sum_of_subtotals_after_every_edit(self) -> None:
        ledger = Ledger()
        steps = [
            lambda: ledger.add_or_increment(CATALOG, "123456"),
            lambda: ledger.add_or_increment(CATALOG, "654321"),
            lambda: ledger.set_quantity("p1", 4),
            lambda: ledger.set_line_discount("p1", "33.33"),
            lambda: ledger.set_line_discount("p2", "1000"),
            lambda: ledger.set_quantity("p2", "2"),
            lambda: ledger.set_quantity("p1", 1),
            lambda: ledger.add_or_increment(CATALOG, "p2"),
        ]
        for step in steps:
            step()
            assert ledger.totals.grand_total == sum((i.subtotal for i in ledger.items), ZERO)

    def test_recompute_is_idempotent(self) -> None:
        ledger = _scenario()
        first = ledger.recompute()
        second = ledger.recompute()
        assert first == second
        assert [i.to_dict() for i in ledger.items] == [i.to_dict() for i in _scenario().items]


# ─── TestEdits ───────────────────────────────────────────────────────────────


class TestEdits:
    def test_zero_and_negative_quantity_both_remove(self) -> None:
        zero = _scenario()
        negative = _scenario()
        assert zero.set_quantity("p1", 0).ok
        assert negative.set_quantity("p1", -5).ok
        assert zero.get("p1") is None
        assert zero.to_dict()["items"] == negative.to_dict()["items"]
        assert zero.totals == negative.totals

    def test_removing_last_line_empties_ledger(self) -> None:
        ledger = _sale("123456")
        assert ledger.set_quantity("p1", 0).ok
        assert ledger.state is LedgerState.EMPTY
        assert ledger.totals == LedgerTotals()

    def test_fractional_quantity_rejected(self) -> None:
        ledger = _scenario()
        before = ledger.to_dict()
        outcome = ledger.set_quantity("p1", "1.5")
        assert not outcome.ok
        assert ledger.to_dict() == before

    def test_unknown_product_edit_fails(self) -> None:
        outcome = _scenario().set_quantity("nope", 3)
        assert not outcome.ok
        assert outcome.not_found

    def test_quantity_drop_clamps_discount(self) -> None:
        ledger = _sale("123456", "123456")
        assert ledger.set_line_discount("p1", "150").ok
        assert ledger.set_quantity("p1", 1).ok
        item = ledger.get("p1")
        assert item.line_discount == Decimal("100.00")
        assert item.subtotal == ZERO

    @pytest.mark.parametrize("raw", ["-20", "abc", None, ""])
    def test_invalid_discount_becomes_zero(self, raw: object) -> None:
        ledger = _scenario()
        assert ledger.set_line_discount("p1", raw).ok
        assert ledger.get("p1").line_discount == ZERO
        assert ledger.get("p1").subtotal == Decimal("200.00")

    def test_discount_above_gross_rejected(self) -> None:
        ledger = _scenario()
        outcome = ledger.set_line_discount("p1", "200.01")
        assert not outcome.ok
        assert ledger.get("p1").line_discount == Decimal("10.00")

    def test_purchase_edits_rejected_on_sale(self) -> None:
        ledger = _scenario()
        assert not ledger.set_tax_rate("p1", 12).ok
        assert not ledger.set_unit_price("p1", 10).ok
        assert not ledger.set_retail_rate("p1", 10).ok

    def test_purchase_tax_rate_and_buy_rate(self) -> None:
        ledger = Ledger(TransactionKind.PURCHASE)
        assert ledger.add_or_increment(CATALOG, "654321").ok
        assert ledger.set_unit_price("p2", "40").ok
        assert ledger.set_tax_rate("p2", "12").ok
        item = ledger.get("p2")
        assert item.tax_amount == Decimal("4.80")
        assert item.subtotal == Decimal("44.80")
        assert not ledger.set_tax_rate("p2", "101").ok
        assert item.tax_rate == Decimal("12")

    def test_return_limit(self) -> None:
        ledger = Ledger(
            TransactionKind.RETURN,
            [SaleLineItem(product_id="p1", name="Silk Saree", unit_price=Decimal("95"), quantity=2)],
        )
        ledger.limit_quantity("p1", 2)
        assert not ledger.set_quantity("p1", 3).ok
        assert ledger.set_quantity("p1", 1).ok
        assert ledger.totals.grand_total == Decimal("95.00")


class TestOversizedInput:
    def test_huge_quantity_leaves_line_and_totals_untouched(self) -> None:
        ledger = _scenario()
        before = ledger.to_dict()
        outcome = ledger.set_quantity("p1", 10**27)
        assert not outcome.ok
        assert ledger.get("p1").quantity == 2
        assert ledger.to_dict() == before
        assert ledger.totals.grand_total == Decimal("240.00")

    def test_unstorable_quantity_rejected(self) -> None:
        ledger = _scenario()
        assert not ledger.set_quantity("p1", 10**15).ok
        assert ledger.get("p1").quantity == 2

    def test_huge_discount_is_above_gross(self) -> None:
        ledger = _scenario()
        outcome = ledger.set_line_discount("p1", "1e30")
        assert not outcome.ok
        assert "cannot exceed" in outcome.message
        assert ledger.get("p1").line_discount == Decimal("10.00")

    def test_huge_buy_rate_rejected(self) -> None:
        ledger = Ledger(TransactionKind.PURCHASE)
        assert ledger.add_or_increment(CATALOG, "654321").ok
        outcome = ledger.set_unit_price("p2", "1e30")
        assert not outcome.ok
        assert ledger.get("p2").unit_price == Decimal("30")
        assert ledger.totals.grand_total == Decimal("30.00")

    def test_huge_retail_rate_rejected(self) -> None:
        ledger = Ledger(TransactionKind.PURCHASE)
        assert ledger.add_or_increment(CATALOG, "654321").ok
        assert not ledger.set_retail_rate("p2", "1e30").ok
        assert ledger.get("p2").retail_rate == Decimal("50")


# ─── TestLineValidation ──────────────────────────────────────────────────────


class TestLineValidation:
    def test_base_line_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            LineItem(product_id="x", name="x", unit_price=Decimal("1"))  # type: ignore[abstract]

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValueError):
            SaleLineItem(product_id="x", name="x", unit_price=Decimal("-1"))

    def test_discount_above_gross_rejected(self) -> None:
        with pytest.raises(ValueError):
            SaleLineItem(
                product_id="x",
                name="x",
                unit_price=Decimal("10"),
                quantity=1,
                line_discount=Decimal("11"),
            )

    def test_tax_rate_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            PurchaseLineItem(
                product_id="x", name="x", unit_price=Decimal("10"), tax_rate=Decimal("120")
            )

    def test_wrong_line_type_for_kind(self) -> None:
        with pytest.raises(ValueError):
            Ledger(
                TransactionKind.SALE,
                [PurchaseLineItem(product_id="x", name="x", unit_price=Decimal("10"))],
            )


# ─── TestFinalize ────────────────────────────────────────────────────────────


class TestFinalize:
    def test_finalize_returns_snapshot_and_empties(self) -> None:
        ledger = _scenario()
        now = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)
        snapshot = ledger.finalize("TGT/19102026/1", now)

        assert snapshot.number == "TGT/19102026/1"
        assert snapshot.kind is TransactionKind.SALE
        assert snapshot.created_at == now
        assert snapshot.totals.grand_total == Decimal("240.00")
        assert [line.subtotal for line in snapshot.lines] == [Decimal("190.00"), Decimal("50.00")]

        assert ledger.state is LedgerState.EMPTY
        assert ledger.items == []
        assert ledger.totals == LedgerTotals()

    def test_snapshot_is_frozen_and_detached(self) -> None:
        ledger = _scenario()
        snapshot = ledger.finalize("TGT/19102026/2")
        ledger.add_or_increment(CATALOG, "123456")
        ledger.set_quantity("p1", 9)

        assert snapshot.lines[0].quantity == 2
        with pytest.raises(FrozenInstanceError):
            snapshot.lines[0].quantity = 5  # type: ignore[misc]

    def test_finalize_empty_raises(self) -> None:
        with pytest.raises(ValueError, match="Add at least one item"):
            Ledger().finalize("TGT/19102026/3")


# ─── TestPersistenceShape ────────────────────────────────────────────────────


class TestPersistenceShape:
    def test_round_trip_keeps_lines_and_totals(self) -> None:
        ledger = _scenario()
        ledger.set_lookup("half typed")
        restored = Ledger.from_dict(ledger.to_dict())
        assert restored.totals == ledger.totals
        assert restored.pending_lookup == "half typed"
        assert [i.product_id for i in restored.items] == ["p1", "p2"]

    def test_round_trip_keeps_return_limits_and_reference(self) -> None:
        ledger = Ledger(
            TransactionKind.RETURN,
            [SaleLineItem(product_id="p1", name="Silk Saree", unit_price=Decimal("95"), quantity=2)],
        )
        ledger.limit_quantity("p1", 2)
        ledger.reference = "TGT/19102026/1"
        restored = Ledger.from_dict(ledger.to_dict())
        assert restored.kind is TransactionKind.RETURN
        assert restored.limit_for("p1") == 2
        assert restored.reference == "TGT/19102026/1"

    def test_token_survives_round_trip_and_changes_on_finalize(self) -> None:
        ledger = _scenario()
        token = ledger.token
        assert Ledger.from_dict(ledger.to_dict()).token == token
        snapshot = ledger.finalize("TGT/19102026/4")
        assert snapshot.token == token
        assert ledger.token != token
