"""Binds a product row into template layers and derives the savings ribbon."""

import logging
import re
from typing import Dict, List, Optional

from models.layer import Layer, find_layer, update_layer
from models.product_data import Product

logger = logging.getLogger(__name__)

ACTIVE_PRICE = "active-price"
WAS_PRICE = "was-price"
RIBBON_BG = "ribbon-bg"
RIBBON_TEXT = "ribbon-text"
MIN_SAVINGS = 0.01

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_price(value: Optional[str]) -> float:
    """Numeric value of a price string such as "$1,299.99" or "WAS $34.99".

    Everything but digits and dots is dropped and the leading number is
    read, so a locale format like "1.299,99" comes out as 1.29999.
    Empty or unreadable values are 0.
    """
    if not value:
        return 0.0
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", str(value)))
    if not match:
        return 0.0
    return float(match.group())


def field_key(layer_id: str, layer_mapping: Dict[str, str]) -> str:
    return layer_mapping.get(layer_id) or layer_id


def substitute_fields(product: Product, layers: List[Layer], column_mapping: Dict[str, str],
                      layer_mapping: Dict[str, str]) -> List[Layer]:
    """Replace the content of every layer whose field has a value in ``product``."""
    result = []
    for layer in layers:
        column = column_mapping.get(field_key(layer.id, layer_mapping))
        if column and product.get(column) is not None:
            layer = update_layer([layer], layer.id, {"content": product[column]})[0]
        result.append(layer)
    return result


def resolve_price(key: str, product: Product, layers: List[Layer],
                  column_mapping: Dict[str, str], layer_mapping: Dict[str, str]) -> float:
    """Price for a system field, read through the bound layer first.

    The layer explicitly mapped to ``key`` wins, so a hand-edited price on
    the label overrides the imported one. When no such layer holds a
    value, the raw product column is used.
    """
    value = None
    mapped_id = next((lid for lid, k in layer_mapping.items() if k == key), None)
    if mapped_id is not None:
        layer = find_layer(layers, mapped_id)
        if layer is not None:
            value = layer.content
    if not value:
        column = column_mapping.get(key)
        if column:
            value = product.get(column)
    return parse_price(value)


def apply_ribbon(layers: List[Layer], active_price: float, was_price: float) -> List[Layer]:
    """Show the "SAVE $x.xx" ribbon when there is a real saving, else hide it."""
    if find_layer(layers, RIBBON_BG) is None or find_layer(layers, RIBBON_TEXT) is None:
        return layers

    savings = was_price - active_price
    if was_price > active_price and savings > MIN_SAVINGS:
        layers = update_layer(layers, RIBBON_BG, {"style": {"display": "flex"}})
        layers = update_layer(layers, RIBBON_TEXT, {
            "content": f"SAVE ${savings:.2f}",
            "style": {"display": "block"},
        })
        logger.debug("Ribbon shown: was %.2f, now %.2f", was_price, active_price)
    else:
        layers = update_layer(layers, RIBBON_BG, {"style": {"display": "none"}})
        layers = update_layer(layers, RIBBON_TEXT, {"style": {"display": "none"}})
        logger.debug("Ribbon hidden: was %.2f, now %.2f", was_price, active_price)
    return layers


def apply_product_to_layers(
    product: Product,
    layers: List[Layer],
    column_mapping: Dict[str, str],
    layer_mapping: Optional[Dict[str, str]] = None,
) -> List[Layer]:
    """Return new layers with ``product`` bound in and the ribbon derived.

    The input list and its layers are left untouched, and applying the
    same product twice gives the same result as applying it once.
    """
    layer_mapping = layer_mapping or {}
    bound = substitute_fields(product, layers, column_mapping, layer_mapping)
    active_price = resolve_price(ACTIVE_PRICE, product, bound, column_mapping, layer_mapping)
    was_price = resolve_price(WAS_PRICE, product, bound, column_mapping, layer_mapping)
    return apply_ribbon(bound, active_price, was_price)
