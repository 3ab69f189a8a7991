from __future__ import annotations

from decimal import Decimal
from typing import Any

from textile_pos.app.core.config import settings
from textile_pos.app.services.storage import KeyValueStore

SETTINGS_KEY = "shop:settings"


def _defaults() -> dict[str, Any]:
    return {
        "shop_name": settings.SHOP_NAME,
        "gst_number": settings.GST_NUMBER,
        "bill_message": settings.BILL_MESSAGE,
        "default_gst": str(settings.DEFAULT_GST),
    }


def get_shop_settings(store: KeyValueStore) -> dict[str, Any]:
    """Stored shop settings layered over the configured defaults."""
    current = _defaults()
    current.update(store.get(SETTINGS_KEY, {}))
    current["default_gst"] = Decimal(str(current["default_gst"]))
    return current


def update_shop_settings(store: KeyValueStore, changes: dict[str, Any]) -> dict[str, Any]:
    stored = store.get(SETTINGS_KEY, {})
    for key, value in changes.items():
        if key not in _defaults():
            raise ValueError(f"Unknown setting {key}")
        if value is None:
            continue
        if key == "default_gst":
            rate = Decimal(str(value))
            if not Decimal("0") <= rate <= Decimal("100"):
                raise ValueError("Default GST must be between 0 and 100")
            value = str(rate)
        stored[key] = value
    store.set(SETTINGS_KEY, stored)
    return get_shop_settings(store)
