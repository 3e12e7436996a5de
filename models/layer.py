"""Layer records: one positioned, styled element of a label template."""

import copy
import json
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, List, Optional

from models.errors import InvalidConfiguration


TEXT = "text"
SHAPE = "shape"
IMAGE = "image"
GROUP = "group"
LAYER_TYPES = (TEXT, SHAPE, IMAGE, GROUP)


@dataclass
class Layer:
    """One visual element. ``type`` decides how ``content`` is read:
    display text, an image payload, or a badge score for groups."""
    id: str
    type: str = TEXT
    name: str = ""
    content: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    style: Dict[str, Any] = field(default_factory=dict)
    class_name: str = ""  # finish hint, e.g. "text-gold-foil"; not interpreted

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Layer":
        d = dict(d)
        if "className" in d and "class_name" not in d:
            d["class_name"] = d.pop("className")
        layer_type = d.get("type", TEXT)
        if layer_type not in LAYER_TYPES:
            raise InvalidConfiguration(f"Unknown layer type: {layer_type!r}")
        layer = cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
        layer.style = dict(layer.style or {})
        return layer

    @property
    def width(self) -> Optional[float]:
        return self.style.get("width")

    @property
    def height(self) -> Optional[float]:
        return self.style.get("height")

    @property
    def z_index(self) -> int:
        try:
            return int(self.style.get("zIndex", 0))
        except (TypeError, ValueError):
            return 0


def find_layer(layers: List[Layer], layer_id: str) -> Optional[Layer]:
    for layer in layers:
        if layer.id == layer_id:
            return layer
    return None


def update_layer(layers: List[Layer], layer_id: str, updates: Dict[str, Any]) -> List[Layer]:
    """Return a new list with ``updates`` shallow-merged into one layer.

    A ``style`` entry is merged into the existing style rather than
    replacing it. Layers other than the target are the same objects as in
    the input list. An unknown ``layer_id`` leaves the list unchanged.
    """
    result = []
    for layer in layers:
        if layer.id != layer_id:
            result.append(layer)
            continue
        changes = {k: v for k, v in updates.items()
                   if k in Layer.__dataclass_fields__ and k not in ("id", "style")}
        style = layer.style
        if updates.get("style"):
            style = {**layer.style, **updates["style"]}
        result.append(replace(layer, style=dict(style), **changes))
    return result


def remove_layer(layers: List[Layer], layer_id: str) -> List[Layer]:
    return [layer for layer in layers if layer.id != layer_id]


def is_visible(layer: Layer) -> bool:
    return layer.style.get("display") != "none"


def paint_order(layers: List[Layer]) -> List[Layer]:
    """Layers sorted back-to-front: by zIndex, ties kept in list order."""
    return sorted(layers, key=lambda layer: layer.z_index)


def clone_layers(layers: List[Layer]) -> List[Layer]:
    """Deep copy, so the copy shares no style dicts with the source."""
    return copy.deepcopy(list(layers))


def layers_to_json(layers: List[Layer]) -> str:
    return json.dumps([layer.to_dict() for layer in layers], indent=2)


def layers_from_json(text: str) -> List[Layer]:
    return [Layer.from_dict(d) for d in json.loads(text)]
