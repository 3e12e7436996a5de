"""System font discovery and CSS font-family resolution for Pillow."""

import logging
import os
import sys
from functools import lru_cache
from typing import Dict, List, Optional, Union

from PIL import ImageFont

logger = logging.getLogger(__name__)

# Cache: display name ("Montserrat Bold") -> file path
_font_cache: Optional[Dict[str, str]] = None

# CSS generic families -> installed families to try, in order
_GENERIC_FAMILIES = {
    "serif": ("DejaVu Serif", "Liberation Serif", "Times New Roman", "Georgia"),
    "sans-serif": ("DejaVu Sans", "Liberation Sans", "Arial", "Helvetica"),
    "monospace": ("DejaVu Sans Mono", "Liberation Mono", "Courier New"),
}
_BLOCKED_SUBSTRINGS = ("mdl2", "emoji", "assets", "icons", "symbol", "wingdings", "webdings")

BOLD_WEIGHT = 600


def _font_dirs() -> List[str]:
    dirs = []
    project_fonts = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "fonts")
    if os.path.isdir(project_fonts):
        dirs.append(project_fonts)
    if sys.platform == "win32":
        windir = os.environ.get("WINDIR", r"C:\Windows")
        dirs.append(os.path.join(windir, "Fonts"))
        localappdata = os.environ.get("LOCALAPPDATA", "")
        if localappdata:
            dirs.append(os.path.join(localappdata, "Microsoft", "Windows", "Fonts"))
    else:
        for d in ("/usr/share/fonts", "/usr/local/share/fonts", "/Library/Fonts",
                  os.path.expanduser("~/.local/share/fonts"), os.path.expanduser("~/.fonts")):
            if os.path.isdir(d):
                # Linux fonts are nested by foundry
                for root, _, files in os.walk(d):
                    if any(f.lower().endswith((".ttf", ".otf")) for f in files):
                        dirs.append(root)
    return [d for d in dirs if os.path.isdir(d)]


def discover_fonts() -> Dict[str, str]:
    """Scan font directories for .ttf/.otf files.

    Returns a dict mapping display name ("Family Style") to file path,
    with names read from the font's own metadata.
    """
    global _font_cache
    if _font_cache is not None:
        return _font_cache

    fonts: Dict[str, str] = {}
    for font_dir in _font_dirs():
        for entry in os.scandir(font_dir):
            if not entry.is_file() or not entry.name.lower().endswith((".ttf", ".otf")):
                continue
            try:
                family, style = ImageFont.truetype(entry.path, size=12).getname()
            except OSError:
                continue
            if not family or any(s in family.lower() for s in _BLOCKED_SUBSTRINGS):
                continue
            display = f"{family} {style}" if style and style.lower() != "regular" else family
            fonts.setdefault(display, entry.path)

    _font_cache = dict(sorted(fonts.items()))
    logger.debug("Discovered %d fonts", len(_font_cache))
    return _font_cache


def css_family_candidates(css_family: Optional[str]) -> List[str]:
    """Expand a CSS font-family list ("Cinzel, serif") into names to look up."""
    candidates: List[str] = []
    for part in (css_family or "sans-serif").split(","):
        name = part.strip().strip("'\"")
        if not name:
            continue
        candidates.extend(_GENERIC_FAMILIES.get(name.lower(), (name,)))
    return candidates


def is_bold(weight: Union[int, str, None]) -> bool:
    if weight is None:
        return False
    if isinstance(weight, str):
        if weight.lower() in ("bold", "bolder"):
            return True
        try:
            weight = int(weight)
        except ValueError:
            return False
    return weight >= BOLD_WEIGHT


def find_font_path(family: str, bold: bool = False, italic: bool = False) -> Optional[str]:
    """Best matching font file for a single family name and style."""
    fonts = discover_fonts()
    style = " ".join(s for s, on in (("Bold", bold), ("Italic", italic)) if on)
    candidates = [f"{family} {style}".lower()] if style else []
    candidates.append(family.lower())

    by_lower = {name.lower(): path for name, path in fonts.items()}
    for candidate in candidates:
        if candidate in by_lower:
            return by_lower[candidate]
    return None


@lru_cache(maxsize=256)
def load_font(css_family: Optional[str], weight: Union[int, str, None], size: int):
    """Pillow font for a CSS family list, weight and pixel size.

    Falls back to Pillow's bundled font so measurement still works on
    machines without the named families installed.
    """
    size = max(1, int(size))
    bold = is_bold(weight)
    for family in css_family_candidates(css_family):
        path = find_font_path(family, bold) or (find_font_path(family) if bold else None)
        if path:
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                logger.debug("Could not open font %s", path)
    return ImageFont.load_default(size=size)


def get_font_families() -> List[str]:
    """Sorted unique family names of the discovered fonts."""
    families = set()
    for path in discover_fonts().values():
        try:
            family, _ = ImageFont.truetype(path, size=12).getname()
        except OSError:
            continue
        families.add(family)
    return sorted(families)
