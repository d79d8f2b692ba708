"""
canvas/scene.py

Scene store: the ordered element collection, the print-area guides and the
background image for one canvas session.

Z-order is the concatenation of the system guides (lowest) and the editable
elements, bottom-first. Consumers address editable elements only; the guides
are never part of an editable index.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from models import (
    SYSTEM_INNER_ID,
    SYSTEM_OUTER_ID,
    BackgroundImage,
    DesignElement,
    GuideRect,
    ImageStyle,
    Kind,
    PrintArea,
    Shadow,
    Stroke,
    TextStyle,
    Transform,
    keys_for_kind,
    resolve_property_key,
)
from settings import AppSettings
from canvas.selection import Selection
from utils import normalize_angle

log = logging.getLogger(__name__)

_TRANSFORM_KEYS = ("x", "y", "angle", "scale_x", "scale_y")


def _default_make_id(kind: str) -> str:
    return f"{kind}-{uuid.uuid4().hex[:8]}"


def split_creation_options(kind: str, options: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    """Split creation options into (style, transform, element flag) dicts keyed canonically."""
    style: Dict[str, Any] = {}
    transform: Dict[str, Any] = {}
    flags: Dict[str, Any] = {}
    allowed = keys_for_kind(kind)
    for key, value in (options or {}).items():
        canonical = resolve_property_key(key)
        if canonical not in allowed:
            raise ValueError(f"{key!r} does not apply to {kind} elements")
        if canonical in _TRANSFORM_KEYS:
            transform[canonical] = value
        elif canonical in ("visible", "locked", "name"):
            flags[canonical] = value
        elif canonical in ("width", "height"):
            raise ValueError(f"{key!r} cannot be set at creation; set scale instead")
        else:
            style[canonical] = value
    return style, transform, flags


class SceneStore:
    """
    Owns the design elements of one canvas session.

    Callbacks:
      - print area changed: fired after the guides are upserted
      - element added: fired after an element is inserted, before it is selected
    """

    def __init__(self, settings: AppSettings, measurer, make_id: Optional[Callable[[str], str]] = None):
        self._settings = settings
        self._measurer = measurer
        self._make_id = make_id or _default_make_id
        self._elements: List[DesignElement] = []  # bottom-first
        self._by_id: Dict[str, DesignElement] = {}
        self._guides: List[GuideRect] = []
        self.print_area: Optional[PrintArea] = None
        self.background: Optional[BackgroundImage] = None
        self.selection = Selection()
        self._on_print_area_changed: Optional[Callable[[], None]] = None
        self._on_element_added: Optional[Callable[[DesignElement], None]] = None

    def set_print_area_changed_callback(self, callback: Optional[Callable[[], None]]):
        """Set callback run after every print-area update (used for re-clipping)."""
        self._on_print_area_changed = callback

    def set_element_added_callback(self, callback: Optional[Callable[[DesignElement], None]]):
        """Set callback run for every newly inserted element (used for clipping)."""
        self._on_element_added = callback

    # ---- Queries ----

    @property
    def elements(self) -> Tuple[DesignElement, ...]:
        """Editable elements, bottom-first."""
        return tuple(self._elements)

    @property
    def guides(self) -> Tuple[GuideRect, ...]:
        """System guide rectangles, bottom-first."""
        return tuple(self._guides)

    @property
    def system_count(self) -> int:
        return len(self._guides)

    @property
    def measurer(self):
        return self._measurer

    def get(self, element_id: str) -> Optional[DesignElement]:
        return self._by_id.get(element_id)

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._by_id

    def __len__(self) -> int:
        return len(self._elements)

    def index_of(self, element_id: str) -> Optional[int]:
        """Position in the editable stack (0 = lowest editable), or None."""
        element = self._by_id.get(element_id)
        if element is None:
            return None
        return self._elements.index(element)

    def z_index(self, element_id: str) -> Optional[int]:
        """Position in the full z-order, guides included."""
        if element_id in (SYSTEM_OUTER_ID, SYSTEM_INNER_ID):
            for i, g in enumerate(self._guides):
                if g.id == element_id:
                    return i
            return None
        idx = self.index_of(element_id)
        return None if idx is None else self.system_count + idx

    def element_at(self, x: float, y: float, tolerance: float = 0.0) -> Optional[DesignElement]:
        """Topmost visible element whose rotated box contains the scene point."""
        for element in reversed(self._elements):
            if element.visible and element.contains_point(x, y, tolerance):
                return element
        return None

    def placement_center(self) -> Tuple[float, float]:
        """Where new elements are centered: the print area center, else the origin."""
        if self.print_area is None:
            return 0.0, 0.0
        return self.print_area.center_x, self.print_area.center_y

    # ---- Commands ----

    def execute(self, command) -> bool:
        """Apply an edit command. False means the target element is gone."""
        applied = command.apply(self)
        if not applied:
            log.debug("Skipped %s: element no longer exists", type(command).__name__)
        return applied

    # ---- Creation ----

    def add_text(self, content: str, style: Optional[Dict[str, Any]] = None) -> str:
        """Create a text element at the placement center and make it the active element."""
        opts, transform_opts, flags = split_creation_options(Kind.TEXT, style)
        d = self._settings.defaults.text
        text_style = TextStyle(
            content=str(content),
            font_family=d.font_family,
            font_size=d.font_size,
            fill=d.fill,
            text_align=d.align,
            line_height=d.line_height,
            stroke=Stroke(color=d.outline_color, width=d.outline_width),
        )
        for key, value in opts.items():
            if key == "stroke":
                text_style.stroke = Stroke(color=str(value), width=text_style.stroke.width)
            elif key == "stroke_width":
                text_style.stroke = Stroke(color=text_style.stroke.color, width=float(value))
            elif key == "shadow":
                text_style.shadow = Shadow.from_dict(value) if value else None
            else:
                setattr(text_style, key, value)

        width, height = self._measurer.measure(text_style)
        cx, cy = self.placement_center()
        element = DesignElement(
            id=self._make_id(Kind.TEXT),
            style=text_style,
            transform=Transform(x=cx, y=cy),
            natural_width=width,
            natural_height=height,
        )
        self._apply_creation_overrides(element, transform_opts, flags)
        return self.insert(element)

    def add_image_element(self, source: str, width: float, height: float,
                          style: Optional[Dict[str, Any]] = None) -> str:
        """Create an image element for an already-resolved asset."""
        opts, transform_opts, flags = split_creation_options(Kind.IMAGE, style)
        image_style = ImageStyle(source=source)
        for key, value in opts.items():
            setattr(image_style, key, bool(value))

        scale = 1.0
        max_w = self._settings.defaults.image.max_initial_width
        if max_w > 0 and width > max_w:
            scale = max_w / width
        cx, cy = self.placement_center()
        element = DesignElement(
            id=self._make_id(Kind.IMAGE),
            style=image_style,
            transform=Transform(x=cx, y=cy, scale_x=scale, scale_y=scale),
            natural_width=float(width),
            natural_height=float(height),
        )
        self._apply_creation_overrides(element, transform_opts, flags)
        return self.insert(element)

    @staticmethod
    def _apply_creation_overrides(element: DesignElement, transform_opts: Dict[str, Any],
                                  flags: Dict[str, Any]) -> None:
        for key, value in transform_opts.items():
            value = float(value)
            setattr(element.transform, key, normalize_angle(value) if key == "angle" else value)
        for key, value in flags.items():
            setattr(element, key, value)

    def insert(self, element: DesignElement) -> str:
        """Append an element as the topmost editable element and select it."""
        if element.id in self._by_id:
            raise ValueError(f"Duplicate element id {element.id!r}")
        self._elements.append(element)
        self._by_id[element.id] = element
        if self._on_element_added:
            self._on_element_added(element)
        self.selection.set([element.id])
        log.debug("Added %s element %s", element.kind, element.id)
        return element.id

    # ---- Removal ----

    def remove(self, element_id: str) -> bool:
        """Remove an element. Unknown ids are a no-op and return False."""
        element = self._by_id.pop(element_id, None)
        if element is None:
            log.debug("Remove ignored: %s no longer exists", element_id)
            return False
        self._elements.remove(element)
        self.selection.discard(element_id)
        return True

    def remove_many(self, element_ids: Iterable[str]) -> List[str]:
        """Remove several elements; returns the ids actually removed."""
        return [i for i in list(element_ids) if self.remove(i)]

    def clear_all(self) -> int:
        """Remove every editable element; the guides are untouched."""
        count = len(self._elements)
        self._elements.clear()
        self._by_id.clear()
        self.selection.clear()
        return count

    # ---- Ordering ----

    def move_element(self, element_id: str, index: int) -> bool:
        """Move an element within the editable stack.

        ``index`` counts editable positions from the bottom and is clamped to
        the stack, so no request can place an element among the guides.
        """
        element = self._by_id.get(element_id)
        if element is None:
            return False
        self._elements.remove(element)
        index = max(0, min(int(index), len(self._elements)))
        self._elements.insert(index, element)
        return True

    # ---- Print area and background ----

    def set_print_area(self, area: PrintArea) -> None:
        """Upsert the two guide rectangles for the area, then notify for re-clipping."""
        self.print_area = area
        outer = area.rect()
        inner = outer.inset(self._settings.canvas.guides.inner_inset)
        guides = {g.id: g for g in self._guides}
        if SYSTEM_OUTER_ID in guides:
            guides[SYSTEM_OUTER_ID].rect = outer
        else:
            guides[SYSTEM_OUTER_ID] = GuideRect(SYSTEM_OUTER_ID, outer, dashed=False)
        if SYSTEM_INNER_ID in guides:
            guides[SYSTEM_INNER_ID].rect = inner
        else:
            guides[SYSTEM_INNER_ID] = GuideRect(SYSTEM_INNER_ID, inner, dashed=True)
        # Outer solid guide first, inner dashed guide above it, both below every element
        self._guides = [guides[SYSTEM_OUTER_ID], guides[SYSTEM_INNER_ID]]
        if self._on_print_area_changed:
            self._on_print_area_changed()

    def inner_guide(self) -> Optional[GuideRect]:
        for g in self._guides:
            if g.id == SYSTEM_INNER_ID:
                return g
        return None

    def set_background(self, background: Optional[BackgroundImage]) -> None:
        self.background = background

    def fit_background(self, canvas_width: float) -> None:
        """Scale the background image to the canvas width."""
        if self.background is None or self.background.width <= 0 or canvas_width <= 0:
            return
        self.background.scale = canvas_width / self.background.width
