from __future__ import annotations

import re
from functools import lru_cache

from fastapi import Header, HTTPException, status

from textile_pos.app.core.config import settings
from textile_pos.app.core.database import SessionLocal
from textile_pos.app.services.ledger import LedgerOutcome
from textile_pos.app.services.storage import KeyValueStore, MemoryStore, SqlKeyValueStore

_TERMINAL_ID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


@lru_cache
def get_store() -> KeyValueStore:
    """The process-wide key-value store selected by ``STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "memory":
        return MemoryStore()
    if settings.STORAGE_BACKEND == "sql":
        return SqlKeyValueStore(SessionLocal)
    raise ValueError(f"Unknown STORAGE_BACKEND {settings.STORAGE_BACKEND!r}")


def get_terminal_id(x_terminal_id: str = Header(default="default")) -> str:
    """Billing counter the request belongs to; each has its own ledgers."""
    if not _TERMINAL_ID.match(x_terminal_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Terminal-Id header",
        )
    return x_terminal_id


def raise_for_outcome(outcome: LedgerOutcome) -> None:
    """Turn a failed ledger outcome into a 404 (lookup miss) or 400."""
    if outcome.ok:
        return
    code = status.HTTP_404_NOT_FOUND if outcome.not_found else status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail=outcome.message)


def http_error(exc: ValueError) -> HTTPException:
    """Map a service ``ValueError`` to 404 for missing records, else 400."""
    message = str(exc)
    if "not found" in message.lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
