"""Canvas and print layout configuration with JSON serialization."""

import json
import math
from dataclasses import dataclass, asdict

from models.errors import InvalidConfiguration


UNITS_PER_INCH = 96          # template units are CSS pixels
POINTS_PER_UNIT = 72 / UNITS_PER_INCH

# Fixed physical sheet: US Letter
PAGE_WIDTH_IN = 8.5
PAGE_HEIGHT_IN = 11.0
PAGE_WIDTH = PAGE_WIDTH_IN * UNITS_PER_INCH     # 816
PAGE_HEIGHT = PAGE_HEIGHT_IN * UNITS_PER_INCH   # 1056

PORTRAIT = "portrait"
LANDSCAPE = "landscape"
ORIENTATIONS = (PORTRAIT, LANDSCAPE)


@dataclass
class CanvasConfig:
    """Template-wide parameters: label footprint and two-tone background."""
    width: float = 400.0
    height: float = 600.0
    background_top: str = "#F5F0E1"
    background_bottom: str = "#7B1E36"
    split_ratio: float = 0.6  # fraction of the height painted background_top

    def validate(self) -> "CanvasConfig":
        for name in ("width", "height"):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
                raise InvalidConfiguration(f"Canvas {name} must be a positive number, got {value!r}")
        ratio = self.split_ratio
        if not (isinstance(ratio, (int, float)) and math.isfinite(ratio) and 0.0 <= ratio <= 1.0):
            raise InvalidConfiguration(f"split_ratio must be in [0, 1], got {ratio!r}")
        return self

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "CanvasConfig":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class PrintLayoutConfig:
    """User-adjustable sheet layout, in template units.

    Margins apply on both sides of the page (left/right, top/bottom).
    """
    margin_top: float = 48.0    # 0.5"
    margin_left: float = 48.0
    gap_x: float = 16.0
    gap_y: float = 16.0
    scale: float = 0.43
    orientation: str = PORTRAIT

    def validate(self) -> "PrintLayoutConfig":
        if not (isinstance(self.scale, (int, float)) and math.isfinite(self.scale) and self.scale > 0):
            raise InvalidConfiguration(f"scale must be a positive number, got {self.scale!r}")
        for name in ("margin_top", "margin_left", "gap_x", "gap_y"):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value >= 0):
                raise InvalidConfiguration(f"{name} must be a non-negative number, got {value!r}")
        if self.orientation not in ORIENTATIONS:
            raise InvalidConfiguration(f"orientation must be one of {ORIENTATIONS}, got {self.orientation!r}")
        return self

    @property
    def is_landscape(self) -> bool:
        return self.orientation == LANDSCAPE

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "PrintLayoutConfig":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})

    def save_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_json(cls, path: str) -> "PrintLayoutConfig":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
