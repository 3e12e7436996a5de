"""Renders a layer set to a Pillow image."""

import logging
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw

from export.autofit import TextMeasurer, fit_font_size, DEFAULT_MIN_FONT_SIZE
from models.label_config import CanvasConfig
from models.layer import Layer, TEXT, SHAPE, IMAGE, GROUP, paint_order, is_visible
from utils.fonts import load_font
from utils.image_utils import (
    compute_scale_factor, decode_image_payload, parse_border, parse_clip_polygon,
    parse_color, parse_length,
)

logger = logging.getLogger(__name__)

# Fill for badge shapes that only carry a finish class
FINISH_COLORS = {
    "bg-gold-foil": "#D4AF37",
    "bg-green-foil": "#2E7D32",
    "bg-red-foil": "#A4161A",
}
BADGE_FILL = "#1A1A1A"
BADGE_RING = "#D4AF37"
DEFAULT_FONT_SIZE = 16
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_LINE_HEIGHT = 1.2

Box = Tuple[float, float, float, float]


def _box(layer: Layer, canvas: CanvasConfig, scale: float) -> Box:
    """Layer bounds in output pixels; width defaults to the rest of the canvas."""
    w = parse_length(layer.style.get("width"), canvas.width - layer.x)
    h = parse_length(layer.style.get("height"), 0.0)
    return (layer.x * scale, layer.y * scale, (layer.x + w) * scale, (layer.y + h) * scale)


def _line_height(style: dict) -> float:
    return parse_length(style.get("lineHeight"), DEFAULT_LINE_HEIGHT) or DEFAULT_LINE_HEIGHT


def _draw_text_block(draw: ImageDraw.ImageDraw, text: str, box: Box, font_size: int,
                     style: dict, v_center: bool = False, fill=None) -> None:
    """Wrap ``text`` to the box width and draw it line by line."""
    family = style.get("fontFamily")
    weight = style.get("fontWeight")
    line_height = _line_height(style)
    measurer = TextMeasurer(family, weight, line_height)
    font = load_font(family, weight, font_size)
    x0, y0, x1, y1 = box
    width = max(x1 - x0, 1.0)
    lines = measurer.wrap(text, font_size, width)
    step = font_size * line_height

    y = y0
    if v_center and y1 > y0:
        y = y0 + (y1 - y0 - step * len(lines)) / 2
    color = fill or parse_color(style.get("color") or DEFAULT_TEXT_COLOR) or (0, 0, 0, 255)
    align = style.get("textAlign", "left")
    strike = "line-through" in str(style.get("textDecoration", ""))

    for line in lines:
        line_w = font.getlength(line)
        if align == "center":
            x = x0 + (width - line_w) / 2
        elif align == "right":
            x = x0 + width - line_w
        else:
            x = x0
        # Centre each glyph run vertically within its line box
        draw.text((x, y + step / 2), line, font=font, fill=color, anchor="lm")
        if strike and line:
            mid = y + step / 2
            draw.line((x, mid, x + line_w, mid), fill=color, width=max(1, font_size // 12))
        y += step


def _transform_text(text: str, style: dict) -> str:
    transform = style.get("textTransform")
    if transform == "uppercase":
        return text.upper()
    if transform == "lowercase":
        return text.lower()
    return text


def _draw_text(draw: ImageDraw.ImageDraw, layer: Layer, canvas: CanvasConfig, scale: float) -> None:
    text = _transform_text(layer.content or "", layer.style)
    if not text:
        return
    style = layer.style
    font_size = parse_length(style.get("fontSize"), DEFAULT_FONT_SIZE)
    box = _box(layer, canvas, scale)
    height = parse_length(style.get("height"), 0.0)

    # Layers with an explicit height grow their text to fill the box
    if height > 0:
        max_size = max(int(font_size), DEFAULT_MIN_FONT_SIZE)
        font_size = fit_font_size(
            text,
            parse_length(style.get("width"), canvas.width - layer.x),
            height,
            min_font_size=DEFAULT_MIN_FONT_SIZE,
            max_font_size=max_size,
            font_family=style.get("fontFamily"),
            font_weight=style.get("fontWeight"),
            line_height=_line_height(style),
        )
    _draw_text_block(draw, text, box, max(1, round(font_size * scale)), style, v_center=height > 0)


def _draw_shape(draw: ImageDraw.ImageDraw, layer: Layer, canvas: CanvasConfig, scale: float) -> None:
    style = layer.style
    x0, y0, x1, y1 = _box(layer, canvas, scale)
    if x1 <= x0 or y1 <= y0:
        return
    fill = parse_color(style.get("backgroundColor"))

    if layer.content:
        # Round badge with a short caption ("GF", "Organic")
        fill = fill or parse_color(FINISH_COLORS.get(layer.class_name, BADGE_FILL))
        draw.ellipse((x0, y0, x1, y1), fill=fill)
        _draw_centered_caption(draw, layer.content, (x0, y0, x1, y1), style)
        return

    polygon = parse_clip_polygon(style.get("clipPath"), x1 - x0, y1 - y0)
    if polygon and fill:
        draw.polygon([(x0 + px, y0 + py) for px, py in polygon], fill=fill)
    elif fill:
        draw.rectangle((x0, y0, x1, y1), fill=fill)

    border_width, border_color = parse_border(style.get("border"))
    if border_width > 0:
        draw.rectangle((x0, y0, x1, y1), outline=border_color,
                       width=max(1, round(border_width * scale)))


def _draw_centered_caption(draw: ImageDraw.ImageDraw, text: str, box: Box, style: dict,
                           fill=None) -> None:
    x0, y0, x1, y1 = box
    inset = (x1 - x0) * 0.15
    inner = (x0 + inset, y0 + inset, x1 - inset, y1 - inset)
    size = fit_font_size(text, inner[2] - inner[0], inner[3] - inner[1],
                         min_font_size=4, max_font_size=max(4, int(inner[3] - inner[1])),
                         font_family=style.get("fontFamily"), font_weight=700)
    caption_style = {**style, "textAlign": "center", "fontWeight": 700, "lineHeight": 1.1}
    _draw_text_block(draw, text, inner, size, caption_style, v_center=True,
                     fill=fill or (255, 255, 255, 255))


def _draw_group(draw: ImageDraw.ImageDraw, layer: Layer, canvas: CanvasConfig, scale: float) -> None:
    """Points badge: dark disc, gold ring, score over a small POINTS caption."""
    x0, y0, x1, y1 = _box(layer, canvas, scale)
    d = min(x1 - x0, y1 - y0)
    if d <= 0:
        return
    ring = max(1, round(3 * scale))
    draw.ellipse((x0, y0, x0 + d, y0 + d), fill=parse_color(BADGE_FILL),
                 outline=parse_color(BADGE_RING), width=ring)
    if layer.content:
        _draw_centered_caption(draw, layer.content, (x0, y0 - d * 0.1, x0 + d, y0 + d * 0.9),
                               layer.style, fill=parse_color(BADGE_RING))
    caption_size = max(1, round(d * 0.11))
    font = load_font(layer.style.get("fontFamily"), 700, caption_size)
    draw.text((x0 + d / 2, y0 + d * 0.78), "POINTS", font=font,
              fill=parse_color(BADGE_RING), anchor="mm")


def _paste_image(badge: Image.Image, layer: Layer, canvas: CanvasConfig, scale: float) -> None:
    img = decode_image_payload(layer.content)
    if img is None:
        return
    x0, y0, x1, y1 = _box(layer, canvas, scale)
    if y1 <= y0:
        y1 = y0 + img.height * scale
    factor = compute_scale_factor(img.width, img.height, x1 - x0, y1 - y0)
    w, h = max(1, round(img.width * factor)), max(1, round(img.height * factor))
    img = img.resize((w, h), Image.LANCZOS)
    # object-fit: contain, centred in the box
    left = round(x0 + (x1 - x0 - w) / 2)
    top = round(y0 + (y1 - y0 - h) / 2)
    badge.alpha_composite(img, (max(left, 0), max(top, 0)))


def render_label(
    layers: List[Layer],
    canvas: CanvasConfig,
    scale: float = 1.0,
    background: Optional[Image.Image] = None,
) -> Image.Image:
    """Render a complete label.

    Args:
        layers: Bound layer set, painted in zIndex order.
        canvas: Canvas size and background colours.
        scale: Output pixels per template unit.
        background: Optional image drawn instead of the two-tone fill.

    Returns:
        RGBA image of size (canvas.width * scale, canvas.height * scale).
    """
    width = max(1, round(canvas.width * scale))
    height = max(1, round(canvas.height * scale))

    if background is not None:
        label = background.convert("RGBA").resize((width, height), Image.LANCZOS)
    else:
        label = Image.new("RGBA", (width, height), parse_color(canvas.background_bottom) or "white")
        split = round(height * canvas.split_ratio)
        if split > 0:
            ImageDraw.Draw(label).rectangle(
                (0, 0, width, split - 1),
                fill=parse_color(canvas.background_top) or "white")

    draw = ImageDraw.Draw(label)
    for layer in paint_order(layers):
        if not is_visible(layer):
            continue
        if layer.type == TEXT:
            _draw_text(draw, layer, canvas, scale)
        elif layer.type == SHAPE:
            _draw_shape(draw, layer, canvas, scale)
        elif layer.type == GROUP:
            _draw_group(draw, layer, canvas, scale)
        elif layer.type == IMAGE:
            _paste_image(label, layer, canvas, scale)

    return label
