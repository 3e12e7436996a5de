"""PDF generation: place composed sheet pages onto letter paper with ReportLab."""

import logging
from io import BytesIO
from typing import Callable, List, Optional

from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as rl_canvas

from export.label_renderer import render_label
from export.sheet_layout import QueueEntry, compose_sheet
from models.label_config import CanvasConfig, PrintLayoutConfig, POINTS_PER_UNIT, UNITS_PER_INCH

logger = logging.getLogger(__name__)

DEFAULT_DPI = 150


def export_sheet_pdf(
    queue: List[QueueEntry],
    layout: PrintLayoutConfig,
    canvas: CanvasConfig,
    output_path: str,
    dpi: int = DEFAULT_DPI,
    on_progress: Optional[Callable[[int], None]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> int:
    """Export the print queue as a multi-page letter PDF.

    Each label is rendered with Pillow at ``dpi`` and placed where
    compose_sheet put it. Landscape labels are rendered upright and turned
    clockwise into their cell.

    Returns the number of pages written.
    """
    pages = compose_sheet(queue, layout, canvas)
    page_w, page_h = letter
    # Output pixels per template unit at the requested print resolution
    render_scale = layout.scale * dpi / UNITS_PER_INCH

    c = rl_canvas.Canvas(output_path, pagesize=(page_w, page_h))
    done = 0
    for page in pages:
        if is_cancelled and is_cancelled():
            break
        for placement in page.placements:
            if is_cancelled and is_cancelled():
                break
            label_img = render_label(placement.entry.layers, canvas, render_scale).convert("RGB")
            if placement.rotation == 90:
                label_img = label_img.transpose(Image.Transpose.ROTATE_270)

            img_buffer = BytesIO()
            label_img.save(img_buffer, format="PNG")
            img_buffer.seek(0)

            # ReportLab origin is bottom-left, so invert Y
            w = placement.width * POINTS_PER_UNIT
            h = placement.height * POINTS_PER_UNIT
            x = placement.x * POINTS_PER_UNIT
            y = page_h - placement.y * POINTS_PER_UNIT - h
            c.drawImage(ImageReader(img_buffer), x, y, w, h)

            done += 1
            if on_progress:
                on_progress(done)
        c.showPage()

    c.save()
    logger.info("Wrote %d labels on %d page(s) to %s", done, len(pages), output_path)
    return len(pages)
