"""Auto-fit text sizing: the largest font size whose wrapped text fits a box."""

import logging
from typing import Callable, List, Optional, Tuple, Union

from models.errors import InvalidConfiguration
from utils.fonts import load_font

logger = logging.getLogger(__name__)

DEFAULT_MIN_FONT_SIZE = 10
DEFAULT_MAX_FONT_SIZE = 100
DEFAULT_LINE_HEIGHT = 1.1
FONT_STEP = 2

# (content, font_size, max_width) -> (block_width, block_height)
MeasureFn = Callable[[str, int, float], Tuple[float, float]]


class TextMeasurer:
    """Measures a text block the way a pre-wrap, break-word box lays it out.

    Explicit newlines start new lines, words wrap greedily, and a word
    wider than the box is broken between characters.
    """

    def __init__(self, font_family: Optional[str] = None,
                 font_weight: Union[int, str, None] = None,
                 line_height: float = DEFAULT_LINE_HEIGHT):
        self.font_family = font_family
        self.font_weight = font_weight
        self.line_height = line_height

    def wrap(self, text: str, font_size: int, max_width: float) -> List[str]:
        font = load_font(self.font_family, self.font_weight, font_size)
        lines: List[str] = []
        for paragraph in text.split("\n"):
            line = ""
            for word in paragraph.split(" "):
                candidate = f"{line} {word}" if line else word
                if font.getlength(candidate) <= max_width:
                    line = candidate
                    continue
                if line:
                    lines.append(line)
                line = ""
                if font.getlength(word) <= max_width:
                    line = word
                    continue
                for ch in word:
                    if line and font.getlength(line + ch) > max_width:
                        lines.append(line)
                        line = ""
                    line += ch
            lines.append(line)
        return lines

    def measure(self, text: str, font_size: int, max_width: float) -> Tuple[float, float]:
        font = load_font(self.font_family, self.font_weight, font_size)
        lines = self.wrap(text, font_size, max_width)
        width = max((font.getlength(line) for line in lines), default=0.0)
        height = len(lines) * font_size * self.line_height
        return width, height


def fit_font_size(
    content: str,
    width: float,
    height: float,
    min_font_size: int = DEFAULT_MIN_FONT_SIZE,
    max_font_size: int = DEFAULT_MAX_FONT_SIZE,
    font_family: Optional[str] = None,
    font_weight: Union[int, str, None] = None,
    line_height: float = DEFAULT_LINE_HEIGHT,
    measure: Optional[MeasureFn] = None,
) -> int:
    """Largest font size in [min_font_size, max_font_size] that fits the box.

    Grows from ``min_font_size`` in steps of 2 while the wrapped text stays
    inside ``width`` x ``height``. If the last size tried overflows, it
    steps back once. Wrapping can jump at some widths, so this stays a
    linear search with a single back-off rather than a bisection.

    Empty content or an empty box gives ``min_font_size``.
    """
    if min_font_size <= 0 or min_font_size > max_font_size:
        raise InvalidConfiguration(
            f"Invalid font size range [{min_font_size}, {max_font_size}]")
    if not content or width <= 0 or height <= 0:
        return min_font_size

    if measure is None:
        measure = TextMeasurer(font_family, font_weight, line_height).measure

    def overflows(size: int) -> bool:
        block_w, block_h = measure(content, size, width)
        return block_h > height or block_w > width

    size = previous = min_font_size
    while not overflows(size) and size < max_font_size:
        previous = size
        size = min(size + FONT_STEP, max_font_size)

    # Back off to the last size tried before the overflow, never below min
    if overflows(size):
        size = previous

    logger.debug("fit_font_size(%r, %sx%s) -> %d", content[:30], width, height, size)
    return size
