from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from textile_pos.app.api.deps import get_store, http_error
from textile_pos.app.core.database import get_db
from textile_pos.app.schemas.labels import LabelBatchOut, LabelRequest
from textile_pos.app.services.catalog import get_product
from textile_pos.app.services.labels import LabelSelection, generate_batch
from textile_pos.app.services.shop_settings import get_shop_settings
from textile_pos.app.services.storage import KeyValueStore

router = APIRouter()


@router.post("/", response_model=LabelBatchOut)
def generate_labels(
    payload: LabelRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
) -> LabelBatchOut:
    selections: list[LabelSelection] = []
    try:
        for item in payload.items:
            product = get_product(db, item.product_id)
            selections.append(
                LabelSelection(
                    product_id=str(product.id),
                    requested_count=item.count,
                    barcode_value=product.code,
                    display_name=product.name,
                    price=product.price,
                )
            )
    except ValueError as e:
        raise http_error(e)

    batch = generate_batch(selections, get_shop_settings(store)["shop_name"])
    return LabelBatchOut(
        requested=batch.requested,
        labels=[asdict(label) for label in batch.labels],
        failures=[asdict(failure) for failure in batch.failures],
    )
