"""Sheet composition: tile queued labels onto fixed letter pages.

All geometry is in template units (96 per inch) with the origin at the
top-left of the page and y growing downward.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import List, Tuple

from models.label_config import (
    CanvasConfig, PrintLayoutConfig, PAGE_WIDTH, PAGE_HEIGHT,
)
from models.layer import Layer, clone_layers

logger = logging.getLogger(__name__)


@dataclass
class QueueEntry:
    """One bound label waiting to be printed (a snapshot, not a live view)."""
    id: str
    layers: List[Layer]

    def to_dict(self) -> dict:
        return {"id": self.id, "layers": [layer.to_dict() for layer in self.layers]}

    @classmethod
    def from_dict(cls, d: dict) -> "QueueEntry":
        return cls(id=d["id"], layers=[Layer.from_dict(l) for l in d.get("layers", [])])


@dataclass
class Placement:
    """Where one queue entry lands on a page.

    ``x``, ``y``, ``width`` and ``height`` describe the cell footprint. For
    ``rotation == 90`` the label is drawn at portrait size and turned
    clockwise into the cell; ``content_transform`` gives that mapping.
    """
    entry: QueueEntry
    page_index: int
    slot: int
    row: int
    column: int
    x: float
    y: float
    width: float
    height: float
    scale: float
    rotation: int = 0

    def content_transform(self) -> Tuple[float, float, float, float, float, float]:
        """Affine (a, b, c, d, e, f) taking unscaled label coordinates (u, v)
        to page coordinates: x' = a*u + c*v + e, y' = b*u + d*v + f."""
        s = self.scale
        if self.rotation == 90:
            return (0.0, s, -s, 0.0, self.x + self.width, self.y)
        return (s, 0.0, 0.0, s, self.x, self.y)

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry.id,
            "page_index": self.page_index,
            "slot": self.slot,
            "row": self.row,
            "column": self.column,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "scale": self.scale,
            "rotation": self.rotation,
            "transform": list(self.content_transform()),
        }


@dataclass
class SheetPage:
    index: int
    placements: List[Placement] = field(default_factory=list)
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "width": self.width,
            "height": self.height,
            "placements": [p.to_dict() for p in self.placements],
        }


# ---------------------------------------------------------------------------
# Grid geometry
# ---------------------------------------------------------------------------

def cell_size(layout: PrintLayoutConfig, canvas: CanvasConfig) -> Tuple[float, float]:
    """Footprint of one label on the sheet (swapped for landscape)."""
    w = canvas.width * layout.scale
    h = canvas.height * layout.scale
    return (h, w) if layout.is_landscape else (w, h)


def usable_area(layout: PrintLayoutConfig) -> Tuple[float, float]:
    return (PAGE_WIDTH - 2 * layout.margin_left, PAGE_HEIGHT - 2 * layout.margin_top)


def fit_count(usable: float, cell: float, gap: float) -> int:
    """How many cells of size ``cell`` separated by ``gap`` fit in ``usable``; at least 1."""
    if cell + gap <= 0:
        return 1
    return max(1, math.floor((usable + gap) / (cell + gap)))


def grid_shape(layout: PrintLayoutConfig, canvas: CanvasConfig) -> Tuple[int, int]:
    """(columns per row, rows per page)."""
    cell_w, cell_h = cell_size(layout, canvas)
    usable_w, usable_h = usable_area(layout)
    return fit_count(usable_w, cell_w, layout.gap_x), fit_count(usable_h, cell_h, layout.gap_y)


def compose_sheet(queue: List[QueueEntry], layout: PrintLayoutConfig,
                  canvas: CanvasConfig) -> List[SheetPage]:
    """Lay the queue out left-to-right, top-to-bottom across as many pages as needed.

    Raises InvalidConfiguration for an invalid layout or canvas.
    """
    layout.validate()
    canvas.validate()

    columns, rows = grid_shape(layout, canvas)
    per_page = columns * rows
    cell_w, cell_h = cell_size(layout, canvas)
    rotation = 90 if layout.is_landscape else 0

    pages: List[SheetPage] = []
    for i, entry in enumerate(queue):
        page_index, slot = divmod(i, per_page)
        if page_index == len(pages):
            pages.append(SheetPage(index=page_index))
        row, column = divmod(slot, columns)
        pages[page_index].placements.append(Placement(
            entry=entry,
            page_index=page_index,
            slot=slot,
            row=row,
            column=column,
            x=layout.margin_left + column * (cell_w + layout.gap_x),
            y=layout.margin_top + row * (cell_h + layout.gap_y),
            width=cell_w,
            height=cell_h,
            scale=layout.scale,
            rotation=rotation,
        ))

    logger.debug("Composed %d labels on %d page(s), %dx%d per page",
                 len(queue), len(pages), columns, rows)
    return pages


# ---------------------------------------------------------------------------
# Queue operations (each returns a new list)
# ---------------------------------------------------------------------------

def make_queue_entry(layers: List[Layer], index: int = 0) -> QueueEntry:
    return QueueEntry(id=f"{uuid.uuid4().hex[:12]}-{index}", layers=clone_layers(layers))


def append_to_queue(queue: List[QueueEntry], entries: List[QueueEntry]) -> List[QueueEntry]:
    return list(queue) + list(entries)


def remove_from_queue(queue: List[QueueEntry], index: int) -> List[QueueEntry]:
    """Drop the entry at ``index``. An out-of-range index changes nothing."""
    if not 0 <= index < len(queue):
        logger.debug("remove_from_queue: index %d out of range", index)
        return list(queue)
    return queue[:index] + queue[index + 1:]


def reorder_queue(queue: List[QueueEntry], from_index: int, to_index: int) -> List[QueueEntry]:
    """Move one entry from ``from_index`` to ``to_index``, shifting the ones between."""
    if not (0 <= from_index < len(queue) and 0 <= to_index < len(queue)):
        logger.debug("reorder_queue: %d -> %d out of range", from_index, to_index)
        return list(queue)
    result = list(queue)
    entry = result.pop(from_index)
    result.insert(to_index, entry)
    return result
