"""In-memory line-item ledger shared by billing, purchases and returns.

One ``Ledger`` holds the working lines of a single in-progress transaction
and keeps every derived figure consistent with the stored inputs. The
module does no I/O: catalog data comes in as ``CatalogEntry`` records and
the finished transaction leaves as a frozen ``FinalizedTransaction``.

Money is ``Decimal`` quantized to cents (ROUND_HALF_UP) at every derived
step, so ``grand_total`` is always the exact sum of the line subtotals.
"""

from __future__ import annotations

import enum
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, ClassVar

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Numeric(20, 4) columns hold 16 integer digits
MAX_AMOUNT = Decimal("1e16")

PRODUCT_NOT_FOUND = "Product not found!"
ITEM_NOT_ON_LEDGER = "Item is not on the bill."
AMOUNT_TOO_LARGE = "Amount is too large."


class TransactionKind(str, enum.Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"


class TaxMode(str, enum.Enum):
    """How a line's tax rate relates to its price.

    INCLUSIVE: the shelf price already contains the tax; the tax share is
    only extracted for reporting. EXCLUSIVE: the tax is charged on top of
    the buy rate (supplier invoices).
    """

    INCLUSIVE = "INCLUSIVE"
    EXCLUSIVE = "EXCLUSIVE"


class LedgerState(str, enum.Enum):
    EMPTY = "EMPTY"
    ACTIVE = "ACTIVE"


# ─── Input coercion ──────────────────────────────────────────────────────────


def money(value: Decimal) -> Decimal:
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"{value} is too large to round to cents") from exc


def to_decimal(value: object) -> Decimal | None:
    """Parse operator input into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def to_quantity(value: object) -> int | None:
    """Parse a whole-number quantity; fractional or junk input gives None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    parsed = to_decimal(value)
    if parsed is None or parsed != parsed.to_integral_value():
        return None
    return int(parsed)


def _require_decimal(value: object, name: str) -> Decimal:
    parsed = to_decimal(value)
    if parsed is None:
        raise ValueError(f"{name} must be a number")
    return parsed


# ─── Catalog & outcomes ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CatalogEntry:
    product_id: str
    name: str
    price: Decimal
    code: str | None = None
    cost_price: Decimal | None = None
    quantity_on_hand: int = 0
    tax_rate: Decimal | None = None


def find_product(catalog: Iterable[CatalogEntry], key: str) -> CatalogEntry | None:
    """Exact id/code match first, then case-insensitive exact name match."""
    entries = list(catalog)
    for entry in entries:
        if key == entry.product_id or (entry.code is not None and key == entry.code):
            return entry
    folded = key.casefold()
    for entry in entries:
        if entry.name.casefold() == folded:
            return entry
    return None


@dataclass(frozen=True)
class LedgerOutcome:
    """Result of a ledger mutation.

    A failed outcome carries the prompt to show the operator and means the
    ledger was left exactly as it was.
    """

    ok: bool
    message: str | None = None
    not_found: bool = False

    @classmethod
    def success(cls) -> LedgerOutcome:
        return cls(ok=True)

    @classmethod
    def fail(cls, message: str, *, not_found: bool = False) -> LedgerOutcome:
        return cls(ok=False, message=message, not_found=not_found)


# ─── Line items ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LineSnapshot:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_discount: Decimal
    tax_rate: Decimal | None
    tax_amount: Decimal
    subtotal: Decimal
    unit_cost: Decimal | None = None
    retail_rate: Decimal | None = None
    mrp: Decimal | None = None

    @property
    def gross(self) -> Decimal:
        return money(self.unit_price * self.quantity)


@dataclass
class LineItem(ABC):
    """One product row. Derived fields are rewritten by ``compute()``."""

    tax_mode: ClassVar[TaxMode] = TaxMode.INCLUSIVE

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    line_discount: Decimal = ZERO
    tax_rate: Decimal | None = None
    tax_amount: Decimal = field(default=ZERO, init=False)
    subtotal: Decimal = field(default=ZERO, init=False)

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id is required")
        self.unit_price = _require_decimal(self.unit_price, "unit_price")
        if self.unit_price < 0:
            raise ValueError("unit_price must be non-negative")
        quantity = to_quantity(self.quantity)
        if quantity is None or quantity < 0:
            raise ValueError("quantity must be a non-negative whole number")
        self.quantity = quantity
        self.line_discount = money(_require_decimal(self.line_discount, "line_discount"))
        if self.line_discount < 0:
            raise ValueError("line_discount must be non-negative")
        if self.line_discount > self.gross:
            raise ValueError("line_discount cannot exceed quantity x unit_price")
        if self.tax_rate is not None:
            self.tax_rate = _require_decimal(self.tax_rate, "tax_rate")
            if not ZERO <= self.tax_rate <= HUNDRED:
                raise ValueError("tax_rate must be between 0 and 100")
        self.compute()
        if self.gross >= MAX_AMOUNT or self.subtotal >= MAX_AMOUNT:
            raise ValueError("line amount is too large")

    @property
    def gross(self) -> Decimal:
        return money(self.unit_price * self.quantity)

    def compute(self) -> None:
        gross = self.gross
        rate = self.tax_rate or ZERO
        if self.tax_mode is TaxMode.EXCLUSIVE:
            self.tax_amount = money(gross * rate / HUNDRED)
            self.subtotal = gross + self.tax_amount - self.line_discount
        else:
            self.subtotal = gross - self.line_discount
            self.tax_amount = money(self.subtotal * rate / (HUNDRED + rate))

    def snapshot(self) -> LineSnapshot:
        return LineSnapshot(
            product_id=self.product_id,
            name=self.name,
            unit_price=self.unit_price,
            quantity=self.quantity,
            line_discount=self.line_discount,
            tax_rate=self.tax_rate,
            tax_amount=self.tax_amount,
            subtotal=self.subtotal,
            unit_cost=getattr(self, "unit_cost", None),
            retail_rate=getattr(self, "retail_rate", None),
            mrp=getattr(self, "mrp", None),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            data[f.name] = str(value) if isinstance(value, Decimal) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineItem:
        names = {f.name for f in fields(cls) if f.init}
        return cls(**{k: v for k, v in data.items() if k in names})

    @classmethod
    @abstractmethod
    def from_catalog(cls, entry: CatalogEntry) -> LineItem:
        """Build a fresh line (quantity 1) for a catalog product."""


@dataclass
class SaleLineItem(LineItem):
    """Sell-side line; ``unit_cost`` is frozen for the profit report."""

    tax_mode: ClassVar[TaxMode] = TaxMode.INCLUSIVE

    unit_cost: Decimal | None = None

    def __post_init__(self) -> None:
        if self.unit_cost is not None:
            self.unit_cost = _require_decimal(self.unit_cost, "unit_cost")
        super().__post_init__()

    @classmethod
    def from_catalog(cls, entry: CatalogEntry) -> SaleLineItem:
        return cls(
            product_id=entry.product_id,
            name=entry.name,
            unit_price=entry.price,
            tax_rate=entry.tax_rate,
            unit_cost=entry.cost_price,
        )


@dataclass
class PurchaseLineItem(LineItem):
    """Buy-side line: ``unit_price`` is the buy rate, tax is added on top."""

    tax_mode: ClassVar[TaxMode] = TaxMode.EXCLUSIVE

    retail_rate: Decimal | None = None
    mrp: Decimal | None = None

    def __post_init__(self) -> None:
        for name in ("retail_rate", "mrp"):
            value = getattr(self, name)
            if value is not None:
                parsed = _require_decimal(value, name)
                if not ZERO <= parsed < MAX_AMOUNT:
                    raise ValueError(f"{name} must be non-negative and below {MAX_AMOUNT}")
                setattr(self, name, parsed)
        super().__post_init__()

    @classmethod
    def from_catalog(cls, entry: CatalogEntry) -> PurchaseLineItem:
        buy_rate = entry.cost_price if entry.cost_price is not None else entry.price
        return cls(
            product_id=entry.product_id,
            name=entry.name,
            unit_price=buy_rate,
            tax_rate=entry.tax_rate,
            retail_rate=entry.price,
            mrp=entry.price,
        )


LINE_CLASSES: dict[TransactionKind, type[LineItem]] = {
    TransactionKind.SALE: SaleLineItem,
    TransactionKind.RETURN: SaleLineItem,
    TransactionKind.PURCHASE: PurchaseLineItem,
}


# ─── Aggregates & snapshots ──────────────────────────────────────────────────


@dataclass(frozen=True)
class LedgerTotals:
    item_count: int = 0
    total_quantity: int = 0
    sub_total: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_tax: Decimal = ZERO
    grand_total: Decimal = ZERO

    @classmethod
    def from_items(cls, items: Iterable[LineItem]) -> LedgerTotals:
        rows = list(items)
        return cls(
            item_count=len(rows),
            total_quantity=sum((i.quantity for i in rows), 0),
            sub_total=sum((i.gross for i in rows), ZERO),
            total_discount=sum((i.line_discount for i in rows), ZERO),
            total_tax=sum((i.tax_amount for i in rows), ZERO),
            grand_total=sum((i.subtotal for i in rows), ZERO),
        )


@dataclass(frozen=True)
class FinalizedTransaction:
    number: str
    kind: TransactionKind
    created_at: datetime
    lines: tuple[LineSnapshot, ...]
    totals: LedgerTotals
    reference: str | None = None
    token: str | None = None


# ─── Ledger ──────────────────────────────────────────────────────────────────


class Ledger:
    """Working set of line items for one transaction.

    Every mutating method returns a ``LedgerOutcome`` and recomputes the
    aggregates before returning; a failed outcome leaves the ledger
    untouched.
    """

    def __init__(
        self,
        kind: TransactionKind | str = TransactionKind.SALE,
        items: Iterable[LineItem] = (),
    ) -> None:
        self.kind = TransactionKind(kind)
        self.line_class = LINE_CLASSES[self.kind]
        self.pending_lookup = ""
        # Number of the transaction this one refers to (returns)
        self.reference: str | None = None
        # Identifies this bill once committed, so a retried finalize is detectable
        self.token = uuid.uuid4().hex
        self._items: dict[str, LineItem] = {}
        self._limits: dict[str, int] = {}
        self._totals = LedgerTotals()
        for item in items:
            if not isinstance(item, self.line_class):
                raise ValueError(
                    f"{type(item).__name__} does not belong on a {self.kind.value} ledger"
                )
            if item.product_id in self._items:
                raise ValueError(f"Duplicate product {item.product_id}")
            if item.quantity > 0:
                self._items[item.product_id] = item
        self.recompute()

    # ── Read side ────────────────────────────────────────────────────────

    @property
    def items(self) -> list[LineItem]:
        return list(self._items.values())

    @property
    def totals(self) -> LedgerTotals:
        return self._totals

    @property
    def state(self) -> LedgerState:
        return LedgerState.ACTIVE if self._items else LedgerState.EMPTY

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> LineItem | None:
        return self._items.get(product_id)

    def limit_for(self, product_id: str) -> int | None:
        return self._limits.get(product_id)

    # ── Mutations ────────────────────────────────────────────────────────

    def set_lookup(self, text: str) -> None:
        self.pending_lookup = text

    def add_or_increment(
        self, catalog: Iterable[CatalogEntry], lookup_key: str | None = None
    ) -> LedgerOutcome:
        """Add the product matching ``lookup_key`` or bump its quantity.

        Falls back to the pending lookup input when no key is given and
        clears that input on success. A miss is reported, never raised.
        """
        if self.kind is TransactionKind.RETURN:
            return LedgerOutcome.fail("Products cannot be added to a return.")
        key = (self.pending_lookup if lookup_key is None else lookup_key).strip()
        if not key:
            return LedgerOutcome.fail("Enter a product code or name.")
        entry = find_product(catalog, key)
        if entry is None:
            return LedgerOutcome.fail(PRODUCT_NOT_FOUND, not_found=True)

        existing = self._items.get(entry.product_id)
        if existing is not None:
            outcome = self._update(entry.product_id, quantity=existing.quantity + 1)
        else:
            try:
                self._items[entry.product_id] = self.line_class.from_catalog(entry)
            except ValueError as exc:
                return LedgerOutcome.fail(f"Invalid catalog data: {exc}")
            self.recompute()
            outcome = LedgerOutcome.success()
        if outcome.ok:
            self.pending_lookup = ""
        return outcome

    def set_quantity(self, product_id: str, new_quantity: object) -> LedgerOutcome:
        """Set a line's quantity; zero or negative removes the line."""
        item = self._items.get(product_id)
        if item is None:
            return LedgerOutcome.fail(ITEM_NOT_ON_LEDGER, not_found=True)
        quantity = to_quantity(new_quantity)
        if quantity is None:
            return LedgerOutcome.fail("Quantity must be a whole number.")
        if quantity <= 0:
            return self.remove(product_id)
        limit = self._limits.get(product_id)
        if limit is not None and quantity > limit:
            return LedgerOutcome.fail(f"Only {limit} unit(s) of {item.name} can be returned.")

        gross = _gross(item.unit_price, quantity)
        if gross is None:
            return LedgerOutcome.fail(AMOUNT_TOO_LARGE)
        # Keep discount <= gross when the quantity drops
        return self._update(
            product_id, quantity=quantity, line_discount=min(item.line_discount, gross)
        )

    def set_line_discount(self, product_id: str, amount: object) -> LedgerOutcome:
        """Set a flat line discount; negative or non-numeric input means 0."""
        item = self._items.get(product_id)
        if item is None:
            return LedgerOutcome.fail(ITEM_NOT_ON_LEDGER, not_found=True)
        value = to_decimal(amount)
        if value is None or value < 0:
            value = ZERO
        if value > item.gross:
            return LedgerOutcome.fail(
                f"Discount cannot exceed the line amount ({item.gross})."
            )
        return self._update(product_id, line_discount=money(value))

    def set_tax_rate(self, product_id: str, rate: object) -> LedgerOutcome:
        item, outcome = self._purchase_line(product_id)
        if item is None:
            return outcome
        value = to_decimal(rate)
        if value is None or not ZERO <= value <= HUNDRED:
            return LedgerOutcome.fail("GST must be between 0 and 100.")
        return self._update(product_id, tax_rate=value)

    def set_unit_price(self, product_id: str, price: object) -> LedgerOutcome:
        """Edit the buy rate of a purchase line."""
        item, outcome = self._purchase_line(product_id)
        if item is None:
            return outcome
        value = to_decimal(price)
        if value is None or value < 0:
            return LedgerOutcome.fail("Buy rate must be a non-negative number.")
        gross = _gross(value, item.quantity)
        if gross is None:
            return LedgerOutcome.fail(AMOUNT_TOO_LARGE)
        return self._update(
            product_id, unit_price=value, line_discount=min(item.line_discount, gross)
        )

    def set_retail_rate(self, product_id: str, price: object) -> LedgerOutcome:
        item, outcome = self._purchase_line(product_id)
        if item is None:
            return outcome
        value = to_decimal(price)
        if value is None or value < 0:
            return LedgerOutcome.fail("Retail rate must be a non-negative number.")
        return self._update(product_id, retail_rate=value)

    def remove(self, product_id: str) -> LedgerOutcome:
        if product_id not in self._items:
            return LedgerOutcome.fail(ITEM_NOT_ON_LEDGER, not_found=True)
        del self._items[product_id]
        self._limits.pop(product_id, None)
        self.recompute()
        return LedgerOutcome.success()

    def limit_quantity(self, product_id: str, maximum: int) -> None:
        """Cap a line's quantity (returns cannot exceed what was sold)."""
        if product_id not in self._items:
            raise ValueError(f"Product {product_id} is not on the ledger")
        self._limits[product_id] = maximum

    def recompute(self) -> LedgerTotals:
        """Rederive every line and aggregate from the stored inputs."""
        for item in self._items.values():
            item.compute()
        self._totals = LedgerTotals.from_items(self._items.values())
        return self._totals

    def reset(self) -> None:
        self._items.clear()
        self._limits.clear()
        self.pending_lookup = ""
        self.reference = None
        self.token = uuid.uuid4().hex
        self.recompute()

    def finalize(self, number: object, now: datetime | None = None) -> FinalizedTransaction:
        """Freeze the current lines and totals under ``number``, then reset.

        The caller consumes the sequence number immediately before calling
        this; the ledger never touches the sequence itself.
        """
        if not self._items:
            raise ValueError("Add at least one item!")
        totals = self.recompute()
        snapshot = FinalizedTransaction(
            number=str(number),
            kind=self.kind,
            created_at=now or datetime.now(timezone.utc),
            lines=tuple(item.snapshot() for item in self._items.values()),
            totals=totals,
            reference=self.reference,
            token=self.token,
        )
        self.reset()
        return snapshot

    # ── Persistence shapes ───────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "items": [item.to_dict() for item in self._items.values()],
            "limits": dict(self._limits),
            "pending_lookup": self.pending_lookup,
            "reference": self.reference,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ledger:
        kind = TransactionKind(data.get("kind", TransactionKind.SALE.value))
        line_class = LINE_CLASSES[kind]
        ledger = cls(kind, [line_class.from_dict(row) for row in data.get("items", [])])
        for product_id, maximum in data.get("limits", {}).items():
            if product_id in ledger._items:
                ledger._limits[product_id] = int(maximum)
        ledger.pending_lookup = data.get("pending_lookup", "")
        ledger.reference = data.get("reference")
        ledger.token = data.get("token") or ledger.token
        return ledger

    def _purchase_line(self, product_id: str) -> tuple[LineItem | None, LedgerOutcome]:
        if self.kind is not TransactionKind.PURCHASE:
            return None, LedgerOutcome.fail("Only purchase lines accept this edit.")
        item = self._items.get(product_id)
        if item is None:
            return None, LedgerOutcome.fail(ITEM_NOT_ON_LEDGER, not_found=True)
        return item, LedgerOutcome.success()

    def _update(self, product_id: str, **changes: Any) -> LedgerOutcome:
        """Swap in a revalidated copy of a line; on failure nothing changes."""
        try:
            candidate = replace(self._items[product_id], **changes)
        except ValueError:
            return LedgerOutcome.fail(AMOUNT_TOO_LARGE)
        self._items[product_id] = candidate
        self.recompute()
        return LedgerOutcome.success()


def _gross(unit_price: Decimal, quantity: int) -> Decimal | None:
    try:
        return money(unit_price * quantity)
    except ValueError:
        return None
