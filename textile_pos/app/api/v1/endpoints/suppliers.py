from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import http_error
from textile_pos.app.core.database import get_db
from textile_pos.app.models.catalog import Supplier
from textile_pos.app.schemas.catalog import SupplierCreate, SupplierOut, SupplierUpdate
from textile_pos.app.services import catalog

router = APIRouter()


@router.get("/", response_model=list[SupplierOut])
def list_suppliers(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Supplier]:
    return catalog.list_suppliers(db, search)


@router.post("/", response_model=SupplierOut, status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)) -> Supplier:
    return catalog.create_supplier(db, payload)


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: UUID, db: Session = Depends(get_db)) -> Supplier:
    try:
        return catalog.get_supplier(db, supplier_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
) -> Supplier:
    try:
        return catalog.update_supplier(db, supplier_id, payload)
    except ValueError as e:
        raise http_error(e)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(supplier_id: UUID, db: Session = Depends(get_db)) -> None:
    try:
        catalog.delete_supplier(db, supplier_id)
    except ValueError as e:
        raise http_error(e)
