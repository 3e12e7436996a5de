"""Helpers for turning CSS-like style values into Pillow drawing parameters."""

import base64
import binascii
import logging
import re
from io import BytesIO
from typing import List, Optional, Tuple

from PIL import Image, ImageColor

logger = logging.getLogger(__name__)

_POLYGON = re.compile(r"polygon\((.*)\)", re.IGNORECASE)
_LENGTH = re.compile(r"(-?\d+(?:\.\d+)?)")


def compute_scale_factor(
    image_width: int,
    image_height: int,
    box_width: float,
    box_height: float,
) -> float:
    """Uniform scale factor to fit an image within a box."""
    if image_width <= 0 or image_height <= 0:
        return 1.0
    return min(box_width / image_width, box_height / image_height)


def parse_color(value: Optional[str]) -> Optional[Tuple[int, ...]]:
    """RGBA tuple for a CSS colour, or None for transparent/unknown values."""
    if not value or str(value).strip().lower() in ("transparent", "none"):
        return None
    try:
        return ImageColor.getcolor(str(value).strip(), "RGBA")
    except ValueError:
        logger.debug("Unrecognized colour %r", value)
        return None


def parse_length(value, default: float = 0.0) -> float:
    """Number from 12, "12px" or "1.5"."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _LENGTH.search(str(value or ""))
    return float(match.group(1)) if match else default


def parse_border(value: Optional[str]) -> Tuple[float, Optional[Tuple[int, ...]]]:
    """(width, colour) from a CSS border shorthand like "2px solid #D4AF37"."""
    if not value or str(value).strip().lower() == "none":
        return 0.0, None
    width, color = 1.0, None
    for part in str(value).split():
        if part[0].isdigit():
            width = parse_length(part, 1.0)
        elif part.lower() not in ("solid", "dashed", "dotted", "double"):
            color = parse_color(part)
    return width, color or (0, 0, 0, 255)


def parse_clip_polygon(value: Optional[str], width: float, height: float) -> Optional[List[Tuple[float, float]]]:
    """Points of a CSS ``polygon(x% y%, ...)`` clip path, relative to the box."""
    match = _POLYGON.search(str(value or ""))
    if not match:
        return None
    points = []
    for pair in match.group(1).split(","):
        coords = pair.split()
        if len(coords) != 2:
            return None
        px, py = coords
        x = parse_length(px) / 100 * width if px.endswith("%") else parse_length(px)
        y = parse_length(py) / 100 * height if py.endswith("%") else parse_length(py)
        points.append((x, y))
    return points if len(points) >= 3 else None


def decode_image_payload(payload: Optional[str]) -> Optional[Image.Image]:
    """Decode a base64 string or ``data:image/...;base64,`` URI to an RGBA image."""
    if not payload:
        return None
    data = payload.split(",", 1)[1] if payload.startswith("data:") else payload
    try:
        return Image.open(BytesIO(base64.b64decode(data))).convert("RGBA")
    except (binascii.Error, ValueError, OSError):
        logger.debug("Could not decode image payload (%d chars)", len(payload))
        return None


def encode_image_payload(img: Image.Image) -> str:
    """PNG data URI for an image, the form image layers store."""
    buf = BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
