"""
properties/mutator.py

Typed property edits with kind-specific side effects.

Panels (text, image, AI assist) all edit elements through
``PropertyMutator.update_property``; there is no privileged path.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from commands import SetFlag, SetNaturalSize, SetStyle, SetTransform
from models import (
    METRIC_KEYS,
    DesignElement,
    Shadow,
    Stroke,
    TextStyle,
    keys_for_kind,
    resolve_property_key,
)
from settings import DefaultTextSettings

if TYPE_CHECKING:
    from canvas.clip import ClipManager
    from canvas.scene import SceneStore

log = logging.getLogger(__name__)

TEXT_ALIGNMENTS = ("left", "center", "right", "justify")
FONT_WEIGHTS = ("normal", "bold")
FONT_STYLES = ("normal", "italic")


def _positive(key: str, value: Any) -> float:
    v = float(value)
    if v <= 0:
        raise ValueError(f"{key} must be positive, got {value!r}")
    return v


def _choice(key: str, value: Any, choices) -> str:
    v = str(value)
    if v not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}, got {value!r}")
    return v


class PropertyMutator:
    """
    Applies property edits to elements in a scene store.

    Args:
        store: The scene store owning the elements.
        clip: Clip manager; geometry-affecting edits re-clip the element.
        on_changed: Called once after every successful edit (render refresh
            and change notification).
        text_defaults: Fallback outline width and shadow color.
    """

    def __init__(self, store: SceneStore, clip: ClipManager, on_changed: Callable[[], None],
                 text_defaults: Optional[DefaultTextSettings] = None):
        self._store = store
        self._clip = clip
        self._on_changed = on_changed
        self._text_defaults = text_defaults or DefaultTextSettings()

    def update_property(self, element_id: str, key: str, value: Any) -> bool:
        """
        Set one property of an element.

        Args:
            element_id: Target element. Missing ids are a silent no-op.
            key: Canonical key (``font_size``) or panel alias (``fontSize``).
            value: New value.

        Returns:
            True if the element was updated, False if it no longer exists.

        Raises:
            ValueError: Unknown key, key not valid for the element's kind, or
                an invalid value.
        """
        element = self._store.get(element_id)
        if element is None:
            log.debug("update_property(%s, %s) ignored: element no longer exists", element_id, key)
            return False

        canonical = resolve_property_key(key)
        if canonical not in keys_for_kind(element.kind):
            raise ValueError(f"{key!r} does not apply to {element.kind} elements")

        if self._apply(element, canonical, value):
            self._clip.apply_to(element)
        self._on_changed()
        return True

    def reset_rotation(self, element_id: str) -> bool:
        return self.update_property(element_id, "angle", 0)

    def toggle_visibility(self, element_id: str) -> bool:
        element = self._store.get(element_id)
        if element is None:
            return False
        return self.update_property(element_id, "visible", not element.visible)

    def toggle_lock(self, element_id: str) -> bool:
        element = self._store.get(element_id)
        if element is None:
            return False
        return self.update_property(element_id, "locked", not element.locked)

    # ---- Dispatch ----

    def _apply(self, element: DesignElement, key: str, value: Any) -> bool:
        """Apply one canonical key. Returns True if geometry changed."""
        store = self._store
        eid = element.id

        # Geometry shared by all kinds
        if key in ("x", "y"):
            store.execute(SetTransform(eid, **{key: float(value)}))
            return True
        if key == "angle":
            store.execute(SetTransform(eid, angle=float(value)))
            return True
        if key in ("scale_x", "scale_y"):
            store.execute(SetTransform(eid, **{key: _positive(key, value)}))
            return True
        if key == "width":
            if element.natural_width <= 0:
                raise ValueError(f"{eid} has no natural width to scale against")
            store.execute(SetTransform(eid, scale_x=_positive(key, value) / element.natural_width))
            return True
        if key == "height":
            if element.natural_height <= 0:
                raise ValueError(f"{eid} has no natural height to scale against")
            store.execute(SetTransform(eid, scale_y=_positive(key, value) / element.natural_height))
            return True
        if key in ("visible", "locked"):
            store.execute(SetFlag(eid, key, bool(value)))
            return False
        if key == "name":
            store.execute(SetFlag(eid, key, str(value)))
            return False

        style = element.style
        if isinstance(style, TextStyle):
            return self._apply_text(element, style, key, value)
        # Image style: only the flip flags remain after the common keys
        store.execute(SetStyle(eid, key, bool(value)))
        return False

    def _apply_text(self, element: DesignElement, style: TextStyle, key: str, value: Any) -> bool:
        store = self._store
        eid = element.id

        if key == "shadow":
            store.execute(SetStyle(eid, "shadow", self._shadow_value(style.shadow, value)))
            return False
        if key == "stroke":
            store.execute(SetStyle(eid, "stroke", Stroke(color=str(value), width=style.stroke.width)))
            return False
        if key == "stroke_width":
            width = float(value)
            if width < 0:
                raise ValueError(f"stroke_width must not be negative, got {value!r}")
            store.execute(SetStyle(eid, "stroke", Stroke(color=style.stroke.color, width=width)))
            return False
        if key == "outline_enabled":
            enabled = bool(value)
            if enabled and style.stroke.width <= 0:
                store.execute(SetStyle(eid, "stroke", Stroke(
                    color=style.stroke.color, width=self._text_defaults.outline_width)))
            store.execute(SetStyle(eid, "outline_enabled", enabled))
            return False

        if key == "content":
            value = str(value)
        elif key == "font_family":
            value = str(value)
        elif key == "font_size":
            value = _positive(key, value)
        elif key == "line_height":
            value = _positive(key, value)
        elif key == "char_spacing":
            value = float(value)
        elif key == "text_align":
            value = _choice(key, value, TEXT_ALIGNMENTS)
        elif key == "font_weight":
            value = _choice(key, value, FONT_WEIGHTS)
        elif key == "font_style":
            value = _choice(key, value, FONT_STYLES)
        elif key == "underline":
            value = bool(value)
        elif key == "fill":
            value = str(value)
        store.execute(SetStyle(eid, key, value))

        if key in METRIC_KEYS:
            width, height = store.measurer.measure(style)
            store.execute(SetNaturalSize(eid, width, height))
            return True
        return False

    def _shadow_value(self, current: Optional[Shadow], value: Any) -> Optional[Shadow]:
        """Convert a panel shadow value to a Shadow record; falsy values clear it."""
        if not value:
            return None
        if value is True:
            return current or Shadow(color=self._text_defaults.shadow_color)
        if isinstance(value, Shadow):
            return Shadow(value.color, value.blur, value.offset_x, value.offset_y)
        if isinstance(value, dict):
            merged = (current or Shadow(color=self._text_defaults.shadow_color)).to_dict()
            incoming = dict(value)
            for snake, camel in (("offset_x", "offsetX"), ("offset_y", "offsetY")):
                if snake in incoming:
                    incoming[camel] = incoming.pop(snake)
            merged.update(incoming)
            return Shadow.from_dict(merged)
        raise ValueError(f"shadow must be a dict, Shadow, bool or None, got {type(value).__name__}")
