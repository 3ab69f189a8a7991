from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import get_store, http_error
from textile_pos.app.core.database import get_db
from textile_pos.app.models.catalog import Product
from textile_pos.app.schemas.catalog import ProductCreate, ProductOut, ProductUpdate
from textile_pos.app.services import catalog
from textile_pos.app.services.shop_settings import get_shop_settings
from textile_pos.app.services.storage import KeyValueStore

router = APIRouter()


@router.get("/", response_model=list[ProductOut])
def list_products(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Product]:
    return catalog.list_products(db, search)


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
) -> Product:
    default_gst = get_shop_settings(store)["default_gst"]
    try:
        return catalog.create_product(db, payload, default_gst)
    except ValueError as e:
        raise http_error(e)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: UUID, db: Session = Depends(get_db)) -> Product:
    try:
        return catalog.get_product(db, product_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
) -> Product:
    try:
        return catalog.update_product(db, product_id, payload)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: UUID, db: Session = Depends(get_db)) -> None:
    try:
        catalog.delete_product(db, product_id)
    except ValueError as e:
        raise http_error(e)
