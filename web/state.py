"""Session state for the label designer: the working layout, data and queue."""

import logging
import threading
from typing import Dict, List, Optional, Set

from export.sheet_layout import (
    QueueEntry, append_to_queue, make_queue_entry, remove_from_queue, reorder_queue,
)
from models.binding import ACTIVE_PRICE, apply_product_to_layers, field_key
from models.document import LabelDocument
from models.label_config import CanvasConfig, PrintLayoutConfig
from models.layer import Layer, find_layer, remove_layer, update_layer
from models.product_data import Product, ProductData
from models.template import (
    DEFAULT_CANVAS_CONFIG, default_layer_mapping, instantiate_template,
    make_custom_badge_layer,
)

logger = logging.getLogger(__name__)


class AppState:
    """Holds one editing session.

    Layer sets and the queue are replaced wholesale on every change, so a
    caller holding an earlier list never sees it half-updated.
    """

    def __init__(self, document: Optional[LabelDocument] = None, store_path: Optional[str] = None):
        self.layers: List[Layer] = instantiate_template()
        self.canvas_config: CanvasConfig = CanvasConfig(**DEFAULT_CANVAS_CONFIG.to_dict())
        self.print_layout: PrintLayoutConfig = PrintLayoutConfig()
        self.products: ProductData = ProductData()
        self.products_filename: str = ""
        self.selected_index: Optional[int] = None
        self.layer_mapping: Dict[str, str] = default_layer_mapping(self.layers)
        self.document: LabelDocument = document or LabelDocument()
        self.store_path: Optional[str] = store_path
        self.checked: Set[int] = set()
        self.queue: List[QueueEntry] = []
        self.custom_badges: List[str] = []
        self.lock = threading.Lock()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def open_document(self, path: str) -> None:
        self.store_path = path
        self.document = LabelDocument.load_json(path)

    def save_document(self) -> None:
        if self.store_path:
            self.document.save_json(self.store_path)

    @property
    def column_mapping(self) -> Dict[str, str]:
        return self.document.column_mapping

    # ------------------------------------------------------------------
    # Products and binding
    # ------------------------------------------------------------------

    @property
    def selected_product(self) -> Optional[Product]:
        if self.selected_index is None:
            return None
        return self.products.get(self.selected_index)

    def load_products(self, products: ProductData, filename: str = "") -> None:
        self.products = products
        self.products_filename = filename
        self.selected_index = None
        self.checked = set()

    def filtered_products(self, term: str = "") -> List[int]:
        return self.products.search(term)

    def _bind(self, product: Product, layers: List[Layer]) -> List[Layer]:
        return apply_product_to_layers(product, layers, self.column_mapping, self.layer_mapping)

    def select_product(self, index: int) -> bool:
        product = self.products.get(index)
        if product is None:
            return False
        self.selected_index = index
        self.layers = self._bind(product, self.layers)
        return True

    def change_column_mapping(self, mapping: Dict[str, str]) -> None:
        """Store a new column mapping and re-bind the selected product with it."""
        self.document.column_mapping = dict(mapping)
        self.save_document()
        product = self.selected_product
        if product is not None:
            self.layers = self._bind(product, self.layers)

    def bind_layer(self, layer_id: str, system_key: str) -> None:
        """Point a layer at a system field and show the selected product's value at once."""
        self.layer_mapping = {**self.layer_mapping, layer_id: system_key}
        product = self.selected_product
        if product is None:
            return
        column = self.column_mapping.get(system_key)
        if column and product.get(column):
            self.layers = update_layer(self.layers, layer_id, {"content": product[column]})

    # ------------------------------------------------------------------
    # Layout editing
    # ------------------------------------------------------------------

    def update_layer(self, layer_id: str, updates: dict) -> Optional[Layer]:
        self.layers = update_layer(self.layers, layer_id, updates)
        return find_layer(self.layers, layer_id)

    def delete_layer(self, layer_id: str) -> None:
        self.layers = remove_layer(self.layers, layer_id)

    def update_canvas_config(self, updates: dict) -> CanvasConfig:
        merged = {**self.canvas_config.to_dict(), **updates}
        self.canvas_config = CanvasConfig.from_dict(merged).validate()
        return self.canvas_config

    def update_print_layout(self, updates: dict) -> PrintLayoutConfig:
        merged = {**self.print_layout.to_dict(), **updates}
        self.print_layout = PrintLayoutConfig.from_dict(merged).validate()
        return self.print_layout

    def reset_layout(self) -> None:
        """Back to the starter template, keeping the selected product bound."""
        layers = instantiate_template()
        product = self.selected_product
        if product is not None:
            layers = self._bind(product, layers)
        self.layers = layers

    def add_custom_badge(self, payload: str) -> int:
        self.custom_badges = self.custom_badges + [payload]
        return len(self.custom_badges) - 1

    def add_custom_badge_layer(self, payload: str) -> Layer:
        layer = make_custom_badge_layer(payload)
        self.layers = self.layers + [layer]
        return layer

    # ------------------------------------------------------------------
    # Print queue
    # ------------------------------------------------------------------

    def toggle_checked(self, index: int) -> bool:
        """Flip a product's checkbox; returns the new checked state."""
        checked = set(self.checked)
        if index in checked:
            checked.discard(index)
        else:
            checked.add(index)
        self.checked = checked
        return index in checked

    def add_checked_to_queue(self) -> int:
        """Bind every checked product against the current layout and queue it."""
        entries = []
        for idx in sorted(self.checked):
            product = self.products.get(idx)
            if product is None:
                continue
            entries.append(make_queue_entry(self._bind(product, self.layers), idx))
        self.queue = append_to_queue(self.queue, entries)
        self.checked = set()
        logger.info("Added %d labels to the print queue (%d total)", len(entries), len(self.queue))
        return len(entries)

    def remove_from_queue(self, index: int) -> None:
        self.queue = remove_from_queue(self.queue, index)

    def reorder_queue(self, from_index: int, to_index: int) -> None:
        self.queue = reorder_queue(self.queue, from_index, to_index)

    def _field_layer(self, layers: List[Layer], key: str) -> Optional[Layer]:
        for layer in layers:
            if field_key(layer.id, self.layer_mapping) == key:
                return layer
        return None

    def flush_queue(self) -> int:
        """Record every queued label in the history and empty the queue."""
        for entry in self.queue:
            name = self._field_layer(entry.layers, "product-name-1")
            price = self._field_layer(entry.layers, ACTIVE_PRICE)
            self.document.record_print(
                entry.id,
                name.content if name else None,
                price.content if price else None,
            )
        count = len(self.queue)
        self.queue = []
        self.save_document()
        return count

    def update_history_record(self, record_id: str, key: str, value) -> bool:
        updated = self.document.update_history_record(record_id, key, value)
        if updated:
            self.save_document()
        return updated


# Module-level singleton
state = AppState()
