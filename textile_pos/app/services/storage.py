"""Key-value persistence for terminal state.

Terminal ledgers, held bills, shop settings and the fallback invoice
counter are small JSON documents addressed by key. The stores here are
interchangeable: ``MemoryStore`` for a single process and tests,
``SqlKeyValueStore`` for anything that must survive a restart.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from copy import deepcopy
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from textile_pos.app.models.storage import KeyValueEntry
from textile_pos.app.services.ledger import Ledger, LedgerOutcome, TransactionKind

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        ...


class MemoryStore(KeyValueStore):
    """Process-local store. Values are copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so both stores accept the same values
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_entries`` table; every write commits.

    Uses its own sessions so terminal state never rides along with (or
    rolls back with) a caller's business transaction.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                return default
            return json.loads(entry.value)

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                session.add(KeyValueEntry(key=key, value=payload))
            else:
                entry.value = payload
            session.commit()

    def delete(self, key: str) -> None:
        with self._session_factory() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()

    def keys(self, prefix: str = "") -> list[str]:
        with self._session_factory() as session:
            rows = (
                session.query(KeyValueEntry.key)
                .filter(KeyValueEntry.key.startswith(prefix, autoescape=True))
                .order_by(KeyValueEntry.key)
                .all()
            )
            return [row[0] for row in rows]


# ─── Ledger hooks ────────────────────────────────────────────────────────────


def ledger_key(kind: TransactionKind, terminal_id: str) -> str:
    return f"ledger:{kind.value.lower()}:{terminal_id}"


def load_ledger(store: KeyValueStore, key: str, kind: TransactionKind) -> Ledger:
    """Load a terminal ledger, or a fresh empty one if none is stored."""
    data = store.get(key)
    if data is None:
        return Ledger(kind)
    ledger = Ledger.from_dict(data)
    if ledger.kind is not kind:
        raise ValueError(
            f"Stored ledger {key} is a {ledger.kind.value} ledger, expected {kind.value}"
        )
    return ledger


def save_ledger(store: KeyValueStore, key: str, ledger: Ledger) -> None:
    """Persist a ledger. Store errors propagate; the ledger is not touched."""
    store.set(key, ledger.to_dict())
    logger.debug("Saved ledger %s (%d items)", key, ledger.totals.item_count)


def edit_ledger(
    store: KeyValueStore,
    kind: TransactionKind,
    terminal_id: str,
    edit: Callable[[Ledger], LedgerOutcome],
) -> tuple[Ledger, LedgerOutcome]:
    """Load a terminal ledger, apply ``edit`` and save it if it succeeded."""
    key = ledger_key(kind, terminal_id)
    ledger = load_ledger(store, key, kind)
    outcome = edit(ledger)
    if outcome.ok:
        save_ledger(store, key, ledger)
    return ledger, outcome
