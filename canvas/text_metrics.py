"""
canvas/text_metrics.py

Natural (unscaled) size of text elements, measured with Pillow font metrics.
"""

from __future__ import annotations

import functools
import logging
from typing import List, Tuple

from PIL import ImageFont

from models import TextStyle

log = logging.getLogger(__name__)


def _font_file_candidates(family: str, bold: bool, italic: bool) -> List[str]:
    """Font file names tried for a family, most specific first."""
    stem = family.strip()
    compact = stem.replace(" ", "")
    suffix = ""
    if bold and italic:
        suffix = "-BoldItalic"
    elif bold:
        suffix = "-Bold"
    elif italic:
        suffix = "-Italic"
    names = []
    for base in (compact, stem, compact.lower()):
        if suffix:
            names.append(f"{base}{suffix}.ttf")
        names.append(f"{base}.ttf")
    # dict.fromkeys keeps order while dropping duplicates
    return list(dict.fromkeys(names))


@functools.lru_cache(maxsize=64)
def load_font(family: str, size: int, bold: bool = False, italic: bool = False):
    """Load a TrueType font for the family, or Pillow's default font at that size."""
    for name in _font_file_candidates(family, bold, italic):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.debug("No font file for %r; using Pillow default font", family)
    return ImageFont.load_default(size=size)


class PillowTextMeasurer:
    """
    Measures text styles the way the canvas lays them out.

    Width is the widest line plus letter spacing (``char_spacing`` is in
    thousandths of an em between characters); height is the line count times
    ``font_size * line_height``.
    """

    def measure(self, style: TextStyle) -> Tuple[float, float]:
        size = max(1, int(round(style.font_size)))
        font = load_font(
            style.font_family,
            size,
            style.font_weight == "bold",
            style.font_style == "italic",
        )
        lines = style.content.split("\n") if style.content else [""]
        spacing = style.char_spacing / 1000.0 * style.font_size
        width = 0.0
        for line in lines:
            w = float(font.getlength(line)) + spacing * max(len(line) - 1, 0)
            width = max(width, w)
        height = style.font_size * style.line_height * len(lines)
        return width, height
