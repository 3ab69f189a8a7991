"""Barcode sticker batches.

Turns a selection of products and print counts into one label per
physical sticker. Rendering uses python-barcode's SVG writer, so labels
carry a self-contained data URL and need no image library. Page layout
is left to whatever prints the batch.
"""

from __future__ import annotations

import base64
import io
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

import barcode
from barcode.writer import SVGWriter

from textile_pos.app.core.config import settings
from textile_pos.app.services.ledger import money

logger = logging.getLogger(__name__)

Renderer = Callable[[str], str]

ELLIPSIS = "..."


@dataclass(frozen=True)
class LabelSelection:
    product_id: str
    requested_count: int
    barcode_value: str
    display_name: str
    price: Decimal


@dataclass(frozen=True)
class StickerLabel:
    product_id: str
    barcode_value: str
    barcode_image: str
    shop_name: str
    product_name: str
    price: str


@dataclass(frozen=True)
class LabelFailure:
    product_id: str
    barcode_value: str
    skipped: int
    reason: str


@dataclass
class LabelBatch:
    labels: list[StickerLabel] = field(default_factory=list)
    failures: list[LabelFailure] = field(default_factory=list)

    @property
    def requested(self) -> int:
        return len(self.labels) + sum(f.skipped for f in self.failures)


def render_barcode(value: str, symbology: str | None = None) -> str:
    """Render ``value`` as an SVG barcode and return it as a data URL.

    Raises whatever python-barcode raises for values the symbology cannot
    encode.
    """
    barcode_class = barcode.get_barcode_class(symbology or settings.LABEL_SYMBOLOGY)
    code = barcode_class(value, writer=SVGWriter())
    buffer = io.BytesIO()
    code.write(
        buffer,
        options={"module_height": 8.0, "font_size": 6, "text_distance": 3.0, "quiet_zone": 2.0},
    )
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def fit_name(name: str, max_length: int | None = None) -> str:
    """Ellipsize ``name`` so it fits in ``max_length`` characters.

    Limits too short to hold the ellipsis plus a character cut the name
    without one.
    """
    limit = settings.LABEL_NAME_MAX if max_length is None else max_length
    if limit < 1:
        raise ValueError(f"Label name length must be at least 1, got {limit}")
    name = name.strip()
    if len(name) <= limit:
        return name
    if limit <= len(ELLIPSIS):
        return name[:limit]
    return name[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def format_price(price: Decimal) -> str:
    return f"{money(Decimal(price)):.2f}"


def generate_batch(
    selections: Iterable[LabelSelection],
    shop_name: str,
    renderer: Renderer = render_barcode,
) -> LabelBatch:
    """Emit ``requested_count`` identical labels per selection, in order.

    A barcode that fails to render drops that selection's labels and is
    recorded in ``failures``; the rest of the batch is still produced.
    """
    batch = LabelBatch()
    for selection in selections:
        if selection.requested_count <= 0:
            continue
        try:
            image = renderer(selection.barcode_value)
        except Exception as exc:
            logger.error(
                "Barcode render failed for product %s (%r): %s",
                selection.product_id,
                selection.barcode_value,
                exc,
            )
            batch.failures.append(
                LabelFailure(
                    product_id=selection.product_id,
                    barcode_value=selection.barcode_value,
                    skipped=selection.requested_count,
                    reason=str(exc) or type(exc).__name__,
                )
            )
            continue

        label = StickerLabel(
            product_id=selection.product_id,
            barcode_value=selection.barcode_value,
            barcode_image=image,
            shop_name=shop_name,
            product_name=fit_name(selection.display_name),
            price=format_price(selection.price),
        )
        batch.labels.extend([label] * selection.requested_count)

    logger.info(
        "Generated %d sticker label(s), %d selection(s) failed",
        len(batch.labels),
        len(batch.failures),
    )
    return batch
