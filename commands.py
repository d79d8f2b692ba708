"""
commands.py

Explicit edit commands applied to element records owned by the scene store.

Every geometry, style, ordering and clip change goes through one of these
commands. A command whose element no longer exists applies nothing and
reports False; callers treat that as a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from models import Rect
from utils import normalize_angle

if TYPE_CHECKING:
    from canvas.scene import SceneStore


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@dataclass
class SetTransform:
    """Set any subset of an element's transform fields."""
    element_id: str
    x: Optional[float] = None
    y: Optional[float] = None
    angle: Optional[float] = None
    scale_x: Optional[float] = None
    scale_y: Optional[float] = None

    def apply(self, store: "SceneStore") -> bool:
        element = store.get(self.element_id)
        if element is None:
            return False
        t = element.transform
        if self.x is not None:
            t.x = float(self.x)
        if self.y is not None:
            t.y = float(self.y)
        if self.angle is not None:
            t.angle = normalize_angle(self.angle)
        if self.scale_x is not None:
            t.scale_x = float(self.scale_x)
        if self.scale_y is not None:
            t.scale_y = float(self.scale_y)
        return True


@dataclass
class SetStyle:
    """Assign one attribute of an element's kind-specific style."""
    element_id: str
    key: str
    value: Any

    def apply(self, store: "SceneStore") -> bool:
        element = store.get(self.element_id)
        if element is None:
            return False
        if not hasattr(element.style, self.key):
            raise ValueError(f"{element.kind} style has no attribute {self.key!r}")
        setattr(element.style, self.key, self.value)
        return True


@dataclass
class SetFlag:
    """Assign an element-level attribute (visible, locked, name)."""
    element_id: str
    key: str
    value: Any

    def apply(self, store: "SceneStore") -> bool:
        element = store.get(self.element_id)
        if element is None:
            return False
        if self.key not in ("visible", "locked", "name"):
            raise ValueError(f"{self.key!r} is not an element flag")
        setattr(element, self.key, self.value)
        return True


@dataclass
class SetNaturalSize:
    """Replace an element's unscaled content size after re-measurement."""
    element_id: str
    width: float
    height: float

    def apply(self, store: "SceneStore") -> bool:
        element = store.get(self.element_id)
        if element is None:
            return False
        element.natural_width = float(self.width)
        element.natural_height = float(self.height)
        return True


@dataclass
class Reorder:
    """Move an element to a position in the editable stack (0 = lowest)."""
    element_id: str
    index: int

    def apply(self, store: "SceneStore") -> bool:
        return store.move_element(self.element_id, self.index)


@dataclass
class SetClip:
    """Attach a clip rectangle to an element."""
    element_id: str
    rect: Optional[Rect]

    def apply(self, store: "SceneStore") -> bool:
        element = store.get(self.element_id)
        if element is None:
            return False
        element.clip = self.rect
        return True
