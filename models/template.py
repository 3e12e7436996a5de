"""The starter "Staff Pick" bottle label and its default field bindings."""

import uuid
from typing import Dict, List

from models.label_config import CanvasConfig
from models.layer import Layer, TEXT, SHAPE, IMAGE, GROUP, clone_layers


DEFAULT_CANVAS_CONFIG = CanvasConfig(
    width=400, height=600,
    background_top="#F5F0E1", background_bottom="#7B1E36",
    split_ratio=0.6,
)

# System field keys that the starter template binds by default
SYSTEM_FIELDS = (
    "product-name-1", "active-price", "badge-points-group",
    "category-label", "was-price",
)

GOLD = "#D4AF37"
SERIF = "Cinzel, serif"
SANS = "Montserrat, sans-serif"
CONDENSED = "Oswald, sans-serif"

STARTER_LAYERS: List[Layer] = [
    Layer("inner-border", SHAPE, "Inner Gold Border", x=15, y=15, style={
        "width": 370, "height": 570, "backgroundColor": "transparent",
        "border": f"2px solid {GOLD}", "zIndex": 50, "pointerEvents": "none",
    }, class_name="border-gold-foil"),

    # Header
    Layer("header-text", TEXT, "Header: Staff Pick", "STAFF PICK", x=0, y=35, style={
        "width": 400, "color": GOLD, "fontSize": 28, "fontWeight": 700,
        "fontFamily": SERIF, "textAlign": "center", "letterSpacing": "2px",
    }, class_name="text-gold-foil"),
    Layer("header-line-left", SHAPE, "Header Line Left", x=35, y=50, style={
        "width": 50, "height": 2, "backgroundColor": GOLD,
    }, class_name="bg-gold-foil"),
    Layer("header-line-right", SHAPE, "Header Line Right", x=315, y=50, style={
        "width": 50, "height": 2, "backgroundColor": GOLD,
    }, class_name="bg-gold-foil"),
    Layer("category-label", TEXT, "Category", "SINGLE MALT SCOTCH", x=20, y=70, style={
        "width": 360, "color": "#666666", "fontSize": 12, "fontWeight": 700,
        "textAlign": "center", "fontFamily": SANS, "letterSpacing": "1px",
        "textTransform": "uppercase",
    }),

    # Product info; explicit heights make these auto-fit
    Layer("product-name-1", TEXT, "Brand Name", "W.L. WELLER", x=20, y=95, style={
        "width": 360, "height": 50, "color": "#222222", "fontSize": 40,
        "fontWeight": 700, "textAlign": "center", "fontFamily": SERIF,
        "lineHeight": 1.1,
    }),
    Layer("product-name-2", TEXT, "Varietal Name", "RESERVE", x=20, y=145, style={
        "width": 360, "height": 40, "color": "#333333", "fontSize": 32,
        "fontWeight": 600, "textAlign": "center", "fontFamily": SERIF,
        "lineHeight": 1,
    }),
    Layer("size-label", TEXT, "Size Label", "750ml", x=300, y=185, style={
        "color": "#555555", "fontSize": 14, "fontWeight": 600, "fontFamily": SANS,
    }),

    # Pricing
    Layer("was-price", TEXT, "Was Price", "WAS $169.99", x=0, y=215, style={
        "width": 400, "color": GOLD, "fontSize": 20, "fontWeight": 600,
        "textDecoration": "line-through", "textAlign": "center", "fontFamily": SANS,
    }, class_name="text-gold-foil"),
    Layer("active-price", TEXT, "Active Price", "$129.99", x=0, y=240, style={
        "width": 400, "color": "#1A1A1A", "fontSize": 88, "fontWeight": 700,
        "textAlign": "center", "fontFamily": CONDENSED, "letterSpacing": "-1px",
    }),

    # Ribbon
    Layer("ribbon-bg", SHAPE, "Ribbon Background", x=50, y=338, style={
        "width": 300, "height": 45, "backgroundColor": GOLD, "display": "flex",
        "alignItems": "center", "justifyContent": "center",
        "clipPath": "polygon(0% 0%, 100% 0%, 95% 50%, 100% 100%, 0% 100%, 5% 50%)",
        "zIndex": 10,
    }, class_name="bg-gold-foil"),
    Layer("ribbon-text", TEXT, "Ribbon Text", "SAVE $40.00", x=50, y=345, style={
        "width": 300, "color": "#222222", "fontSize": 28, "fontWeight": 700,
        "textAlign": "center", "zIndex": 11, "fontFamily": CONDENSED,
    }),

    # Badges
    Layer("badge-points-group", GROUP, "Badge: 94 Points", "94", x=35, y=410, style={
        "width": 90, "height": 90, "zIndex": 20,
    }),
    Layer("badge-gluten-free", SHAPE, "Badge: Gluten Free", "GF", x=310, y=415,
          style={"display": "none", "width": 70, "height": 70}, class_name="bg-gold-foil"),
    Layer("badge-organic", SHAPE, "Badge: Organic", "Organic", x=310, y=415,
          style={"display": "none", "width": 70, "height": 70}, class_name="bg-green-foil"),
    Layer("badge-sugar-free", SHAPE, "Badge: Sugar Free", "0g Sugar", x=310, y=415,
          style={"display": "none", "width": 70, "height": 70}, class_name="bg-gold-foil"),
    Layer("badge-staff-pick", SHAPE, "Badge: Staff Pick", "Staff", x=310, y=415,
          style={"display": "none", "width": 80, "height": 80}, class_name="bg-red-foil"),

    Layer("tasting-notes", TEXT, "Tasting Notes",
          "Rich Caramel • Toasted Oak\n• Vanilla Bean", x=135, y=425, style={
              "width": 250, "maxWidth": 250, "color": "#ffffff", "fontSize": 16,
              "textAlign": "center", "fontWeight": 500, "lineHeight": 1.4,
              "fontFamily": SANS,
          }),
    Layer("footer-logo", TEXT, "Footer Logo", "CORKED sale", x=0, y=540, style={
        "width": 400, "textAlign": "center", "color": GOLD, "fontSize": 24,
        "fontWeight": 700, "fontFamily": SERIF,
    }, class_name="text-gold-foil"),
]


def instantiate_template() -> List[Layer]:
    """Fresh copy of the starter layers, safe to edit."""
    return clone_layers(STARTER_LAYERS)


def default_layer_mapping(layers: List[Layer]) -> Dict[str, str]:
    """Bind every layer whose id contains a system field key to that key."""
    mapping: Dict[str, str] = {}
    for layer in layers:
        for key in SYSTEM_FIELDS:
            if key in layer.id:
                mapping[layer.id] = key
    return mapping


def make_custom_badge_layer(payload: str) -> Layer:
    """Image layer for an uploaded badge (base64 or data URI payload)."""
    return Layer(
        id=f"custom-badge-{uuid.uuid4().hex[:10]}",
        type=IMAGE,
        name="Custom Badge",
        content=payload,
        x=50,
        y=50,
        style={"width": 80, "height": 80, "zIndex": 100},
    )
