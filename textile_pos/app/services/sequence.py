"""Invoice sequences: one strictly increasing counter per transaction kind.

``SqlSequence`` is the authoritative implementation: the counter row is
locked and bumped inside the caller's transaction, so a finalize that
rolls back gives its number back. ``KeyValueSequence`` keeps the counter
in a key-value store for single-terminal setups and offers no
cross-terminal exclusion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from textile_pos.app.core.config import settings
from textile_pos.app.models.transaction import SequenceCounter
from textile_pos.app.services.invoice import (
    generate_invoice_number,
    generate_purchase_number,
    generate_return_number,
)
from textile_pos.app.services.ledger import TransactionKind
from textile_pos.app.services.storage import KeyValueStore

Formatter = Callable[[int, date | None], str]

FORMATTERS: dict[TransactionKind, Formatter] = {
    TransactionKind.SALE: generate_invoice_number,
    TransactionKind.PURCHASE: generate_purchase_number,
    TransactionKind.RETURN: generate_return_number,
}

# Counter names, used as SequenceCounter rows and key-value store keys
COUNTER_NAMES: dict[TransactionKind, str] = {
    TransactionKind.SALE: "invoiceCounter",
    TransactionKind.PURCHASE: "purchaseCounter",
    TransactionKind.RETURN: "returnCounter",
}


@dataclass(frozen=True)
class SequenceNumber:
    value: int
    label: str

    def __str__(self) -> str:
        return self.label


class SequenceProvider(ABC):
    @abstractmethod
    def next(self, on: date | None = None) -> SequenceNumber:
        """Consume and return the next number dated ``on``. Call once per finalize."""

    def release(self, number: SequenceNumber) -> None:
        """Give back ``number`` after its transaction failed to persist."""


class KeyValueSequence(SequenceProvider):
    def __init__(self, store: KeyValueStore, key: str, formatter: Formatter) -> None:
        self.store = store
        self.key = key
        self.formatter = formatter

    def next(self, on: date | None = None) -> SequenceNumber:
        value = int(self.store.get(self.key, 1))
        number = SequenceNumber(value=value, label=self.formatter(value, on))
        self.store.set(self.key, value + 1)
        return number

    def release(self, number: SequenceNumber) -> None:
        # Only the most recently issued number can be handed back
        if int(self.store.get(self.key, 1)) == number.value + 1:
            self.store.set(self.key, number.value)


class SqlSequence(SequenceProvider):
    def __init__(self, db: Session, name: str, formatter: Formatter) -> None:
        self.db = db
        self.name = name
        self.formatter = formatter

    def next(self, on: date | None = None) -> SequenceNumber:
        """Atomically take the next value; the caller commits."""
        counter = (
            self.db.query(SequenceCounter)
            .filter(SequenceCounter.name == self.name)
            .with_for_update()
            .first()
        )
        if not counter:
            counter = SequenceCounter(name=self.name, next_value=1)
            self.db.add(counter)
            self.db.flush()
            counter = (
                self.db.query(SequenceCounter)
                .filter(SequenceCounter.name == self.name)
                .with_for_update()
                .first()
            )
        value = counter.next_value  # type: ignore[union-attr]
        counter.next_value = value + 1  # type: ignore[union-attr]
        self.db.flush()
        return SequenceNumber(value=value, label=self.formatter(value, on))


def sequence_for(
    kind: TransactionKind, db: Session, store: KeyValueStore
) -> SequenceProvider:
    """Build the provider selected by ``SEQUENCE_BACKEND``."""
    name = COUNTER_NAMES[kind]
    formatter = FORMATTERS[kind]
    if settings.SEQUENCE_BACKEND == "kv":
        return KeyValueSequence(store, name, formatter)
    if settings.SEQUENCE_BACKEND == "sql":
        return SqlSequence(db, name, formatter)
    raise ValueError(f"Unknown SEQUENCE_BACKEND {settings.SEQUENCE_BACKEND!r}")
