"""
utils.py

Utility functions for colors and planar geometry used across PrintCanvas.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Tuple

from PyQt6.QtGui import QColor

RGBA = Tuple[int, int, int, float]

_RGB_FUNC_RE = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$",
    re.IGNORECASE,
)


# ----------------------------
# Colors
# ----------------------------

def parse_color(s: str) -> Optional[RGBA]:
    """
    Parse a CSS-style color string.

    Handles formats like:
    - #RGB, #RRGGBB, #RRGGBBAA
    - rgb(r, g, b)
    - rgba(r, g, b, a) with a in [0, 1]
    - named colors ('red', 'white', 'transparent') via QColor

    Args:
        s: The color string

    Returns:
        (r, g, b, alpha) with alpha in [0, 1], or None if the string is not a color
    """
    ss = (s or "").strip()
    if not ss:
        return None

    m = _RGB_FUNC_RE.match(ss)
    if m:
        r, g, b = (max(0, min(255, int(float(v)))) for v in m.groups()[:3])
        a = float(m.group(4)) if m.group(4) is not None else 1.0
        return r, g, b, max(0.0, min(1.0, a))

    hx = ss[1:] if ss.startswith("#") else ss
    if len(hx) == 3:
        hx = "".join(ch * 2 for ch in hx)
    if len(hx) in (6, 8):
        try:
            r = int(hx[0:2], 16)
            g = int(hx[2:4], 16)
            b = int(hx[4:6], 16)
            a = int(hx[6:8], 16) / 255.0 if len(hx) == 8 else 1.0
            return r, g, b, a
        except ValueError:
            pass

    # Qt reads 8-digit hex as #AARRGGBB, so it only sees what the CSS forms above rejected
    c = QColor.fromString(ss)
    if not c.isValid():
        return None
    return c.red(), c.green(), c.blue(), c.alphaF()


def css_to_qcolor(s: str, fallback: QColor) -> QColor:
    """
    Parse a CSS-style color string to a QColor.

    Args:
        s: Color string accepted by parse_color()
        fallback: Color to return if parsing fails

    Returns:
        Parsed QColor or fallback
    """
    rgba = parse_color(s)
    if rgba is None:
        return QColor(fallback)
    r, g, b, a = rgba
    return QColor(r, g, b, int(round(a * 255)))


def relative_luminance(s: str) -> float:
    """WCAG relative luminance of a color string (alpha ignored)."""
    rgba = parse_color(s)
    if rgba is None:
        raise ValueError(f"Not a color: {s!r}")

    def channel(v: int) -> float:
        c = v / 255.0
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (channel(v) for v in rgba[:3])
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(a: str, b: str) -> float:
    """WCAG contrast ratio between two colors, in [1, 21]."""
    la = relative_luminance(a)
    lb = relative_luminance(b)
    hi, lo = max(la, lb), min(la, lb)
    return (hi + 0.05) / (lo + 0.05)


# ----------------------------
# Geometry
# ----------------------------

def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def normalize_angle(deg: float) -> float:
    """Wrap an angle in degrees into [0, 360)."""
    a = math.fmod(float(deg), 360.0)
    if a < 0:
        a += 360.0
    # fmod(-1e-17) + 360 rounds to 360.0
    return 0.0 if a >= 360.0 else a


def rotate_point(x: float, y: float, deg: float) -> Tuple[float, float]:
    """Rotate (x, y) clockwise on screen (y down) around the origin by deg degrees."""
    a = math.radians(deg)
    ca = math.cos(a)
    sa = math.sin(a)
    return x * ca - y * sa, x * sa + y * ca


def rotated_bounds(w: float, h: float, deg: float) -> Tuple[float, float]:
    """Axis-aligned bounding size of a w x h box rotated by deg degrees."""
    a = math.radians(deg)
    ca = abs(math.cos(a))
    sa = abs(math.sin(a))
    return w * ca + h * sa, w * sa + h * ca
