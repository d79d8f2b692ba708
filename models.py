"""
models.py

Data models and constants for the PrintCanvas design engine.

Elements are plain records owned by the scene store. Rendering surfaces read
them; they never hold a reference to a surface object.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, Union

from errors import ResourceError
from utils import rotate_point, rotated_bounds


# ----------------------------
# Element kinds
# ----------------------------

class Kind:
    """Closed set of editable element kinds."""
    TEXT = "text"
    IMAGE = "image"


SYSTEM_OUTER_ID = "__print_area_outer__"
SYSTEM_INNER_ID = "__print_area_inner__"


# ----------------------------
# Geometry
# ----------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in scene coordinates (top-left origin, y down).

    Frozen so a clip rectangle can be handed to many elements without any
    of them being able to alter the others.
    """
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> "Rect":
        return cls(cx - width / 2.0, cy - height / 2.0, width, height)

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.left + self.width / 2.0, self.top + self.height / 2.0

    def inset(self, d: float) -> "Rect":
        """Shrink by d on every side (never below zero size)."""
        w = max(0.0, self.width - 2 * d)
        h = max(0.0, self.height - 2 * d)
        cx, cy = self.center
        return Rect.from_center(cx, cy, w, h)

    def contains_point(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def contains_rect(self, other: "Rect", tolerance: float = 0.0) -> bool:
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    @classmethod
    def from_points(cls, x1: float, y1: float, x2: float, y2: float) -> "Rect":
        return cls(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))


@dataclass(frozen=True)
class PrintArea:
    """The printable region of the product, center-anchored, in scene coordinates."""
    center_x: float
    center_y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Print area must have a positive size, got {self.width} x {self.height}")

    def rect(self) -> Rect:
        return Rect.from_center(self.center_x, self.center_y, self.width, self.height)


@dataclass
class Transform:
    """Center-anchored placement: position, rotation (degrees, [0, 360)) and per-axis scale."""
    x: float = 0.0
    y: float = 0.0
    angle: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0

    def copy(self) -> "Transform":
        return replace(self)


# ----------------------------
# Styles
# ----------------------------

@dataclass
class Stroke:
    """Text outline color and width. Kept even while the outline is disabled."""
    color: str = "#000000"
    width: float = 1.0


@dataclass
class Shadow:
    """Drop shadow under a text element."""
    color: str = "rgba(0,0,0,0.3)"
    blur: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Shadow":
        """Create a Shadow from a panel dict.

        Accepts both ``offsetX``/``offsetY`` and ``offset_x``/``offset_y``.
        """
        base = cls()
        return cls(
            color=str(d.get("color", base.color)),
            blur=float(d.get("blur", base.blur)),
            offset_x=float(d.get("offsetX", d.get("offset_x", base.offset_x))),
            offset_y=float(d.get("offsetY", d.get("offset_y", base.offset_y))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "blur": self.blur,
            "offsetX": self.offset_x,
            "offsetY": self.offset_y,
        }


@dataclass
class TextStyle:
    """Style of a text element."""
    content: str
    font_family: str = "Inter"
    font_size: float = 20
    fill: str = "#000000"
    text_align: str = "center"      # left | center | right
    font_weight: str = "normal"     # normal | bold
    font_style: str = "normal"      # normal | italic
    underline: bool = False
    char_spacing: float = 0.0       # thousandths of an em
    line_height: float = 1.16       # multiple of font size
    stroke: Stroke = field(default_factory=Stroke)
    outline_enabled: bool = False
    shadow: Optional[Shadow] = None

    @property
    def effective_stroke_width(self) -> float:
        """Rendered outline width: the stored width only while the outline is on."""
        return self.stroke.width if self.outline_enabled else 0.0


@dataclass
class ImageStyle:
    """Style of an image element."""
    source: str
    flip_x: bool = False
    flip_y: bool = False


ElementStyle = Union[TextStyle, ImageStyle]


# ----------------------------
# Elements
# ----------------------------

@dataclass
class DesignElement:
    """A single editable text or image item.

    ``natural_width``/``natural_height`` are the unscaled content size; the
    rendered size is natural size times the per-axis scale. ``clip`` is the
    print-area clip rectangle last applied by the clip manager.
    """
    id: str
    style: ElementStyle
    transform: Transform = field(default_factory=Transform)
    natural_width: float = 0.0
    natural_height: float = 0.0
    visible: bool = True
    locked: bool = False
    clip: Optional[Rect] = None
    name: str = ""

    @property
    def kind(self) -> str:
        if isinstance(self.style, TextStyle):
            return Kind.TEXT
        if isinstance(self.style, ImageStyle):
            return Kind.IMAGE
        raise TypeError(f"Unknown element style {type(self.style).__name__}")

    @property
    def display_name(self) -> str:
        """Name shown in the layer list."""
        if self.name:
            return self.name
        style = self.style
        if isinstance(style, TextStyle):
            return style.content
        if isinstance(style, ImageStyle):
            base = os.path.basename(style.source) if not style.source.startswith("data:") else ""
            return base or "Image"
        raise TypeError(f"Unknown element style {type(style).__name__}")

    @property
    def scaled_size(self) -> Tuple[float, float]:
        return (
            self.natural_width * abs(self.transform.scale_x),
            self.natural_height * abs(self.transform.scale_y),
        )

    def bounding_rect(self) -> Rect:
        """Axis-aligned scene bounds after scale and rotation."""
        w, h = self.scaled_size
        bw, bh = rotated_bounds(w, h, self.transform.angle)
        return Rect.from_center(self.transform.x, self.transform.y, bw, bh)

    def to_local(self, x: float, y: float) -> Tuple[float, float]:
        """Map a scene point into the element's unrotated, center-origin frame."""
        return rotate_point(x - self.transform.x, y - self.transform.y, -self.transform.angle)

    def contains_point(self, x: float, y: float, tolerance: float = 0.0) -> bool:
        lx, ly = self.to_local(x, y)
        w, h = self.scaled_size
        return abs(lx) <= w / 2.0 + tolerance and abs(ly) <= h / 2.0 + tolerance


@dataclass
class GuideRect:
    """A non-editable print-area guide (system element)."""
    id: str
    rect: Rect
    dashed: bool = False


@dataclass
class BackgroundImage:
    """Product photo behind the design, scaled to fit the canvas width."""
    source: str
    width: float
    height: float
    scale: float = 1.0


# ----------------------------
# Read models and results
# ----------------------------

@dataclass(frozen=True)
class LayerInfo:
    """One row of the layer list."""
    id: str
    kind: str
    display_name: str
    visible: bool
    locked: bool
    is_active: bool


@dataclass
class ImageResult:
    """Outcome of an asynchronous ``add_image``/``set_background_image`` call."""
    source: str
    element_id: Optional[str] = None
    error: Optional[ResourceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ----------------------------
# Property keys
# ----------------------------

# Keys that apply to every element kind
COMMON_KEYS = frozenset({
    "x", "y", "angle", "scale_x", "scale_y", "width", "height", "visible", "locked", "name",
})

TEXT_KEYS = frozenset({
    "content", "font_family", "font_size", "fill", "text_align", "font_weight", "font_style",
    "underline", "char_spacing", "line_height", "stroke", "stroke_width", "outline_enabled",
    "shadow",
})

IMAGE_KEYS = frozenset({"flip_x", "flip_y"})

# Text keys whose change alters the measured text size
METRIC_KEYS = frozenset({
    "content", "font_family", "font_size", "font_weight", "font_style", "char_spacing",
    "line_height",
})

# Panel-side spellings mapped to canonical keys
PROPERTY_ALIASES: Dict[str, str] = {
    "text": "content",
    "fontFamily": "font_family",
    "font": "font_family",
    "fontSize": "font_size",
    "textAlign": "text_align",
    "align": "text_align",
    "alignment": "text_align",
    "fontWeight": "font_weight",
    "fontStyle": "font_style",
    "charSpacing": "char_spacing",
    "letterSpacing": "char_spacing",
    "lineHeight": "line_height",
    "strokeWidth": "stroke_width",
    "outlineEnabled": "outline_enabled",
    "flipX": "flip_x",
    "flipY": "flip_y",
    "scaleX": "scale_x",
    "scaleY": "scale_y",
    "rotation": "angle",
    "left": "x",
    "top": "y",
}


def resolve_property_key(key: str) -> str:
    """Resolve a panel property name to its canonical key.

    Args:
        key: Canonical key (``font_size``) or panel alias (``fontSize``).

    Returns:
        The canonical key.

    Raises:
        ValueError: If the key is not a known property.
    """
    canonical = PROPERTY_ALIASES.get(key, key)
    if canonical in COMMON_KEYS or canonical in TEXT_KEYS or canonical in IMAGE_KEYS:
        return canonical
    raise ValueError(f"Unknown property {key!r}")


def keys_for_kind(kind: str) -> frozenset:
    """All canonical property keys valid for an element kind."""
    if kind == Kind.TEXT:
        return COMMON_KEYS | TEXT_KEYS
    if kind == Kind.IMAGE:
        return COMMON_KEYS | IMAGE_KEYS
    raise ValueError(f"Unknown element kind {kind!r}")
