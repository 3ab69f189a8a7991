from __future__ import annotations

from fastapi import APIRouter, Depends

from textile_pos.app.api.deps import get_store, http_error
from textile_pos.app.schemas.settings import ShopSettingsOut, ShopSettingsUpdate
from textile_pos.app.services.shop_settings import get_shop_settings, update_shop_settings
from textile_pos.app.services.storage import KeyValueStore

router = APIRouter()


@router.get("/", response_model=ShopSettingsOut)
def read_settings(store: KeyValueStore = Depends(get_store)) -> dict:
    return get_shop_settings(store)


@router.patch("/", response_model=ShopSettingsOut)
def write_settings(
    payload: ShopSettingsUpdate,
    store: KeyValueStore = Depends(get_store),
) -> dict:
    try:
        return update_shop_settings(store, payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)
