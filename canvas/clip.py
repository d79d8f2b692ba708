"""
canvas/clip.py

Print-area clip manager.

Keeps one canonical clip rectangle derived from the print area, in scene
coordinates, and applies it to every editable element. Viewport changes
never touch it.
"""

from __future__ import annotations

import logging
from typing import Optional

from commands import SetClip, SetTransform
from models import DesignElement, Rect
from canvas.scene import SceneStore
from canvas.viewport import Viewport

log = logging.getLogger(__name__)

HORIZONTAL_TARGETS = ("left", "center", "right")
VERTICAL_TARGETS = ("top", "middle", "bottom")


class ClipManager:
    """Derives the clip rectangle from the print area and re-applies it on every change."""

    def __init__(self, store: SceneStore, viewport: Viewport):
        self._store = store
        self._viewport = viewport
        self._clip: Optional[Rect] = None
        store.set_print_area_changed_callback(self.sync)
        store.set_element_added_callback(self.apply_to)

    @property
    def clip_rect(self) -> Optional[Rect]:
        return self._clip

    def sync(self) -> None:
        """Recompute the clip from the current print area and apply it to every element."""
        area = self._store.print_area
        self._clip = area.rect() if area is not None else None
        for element in self._store.elements:
            self._store.execute(SetClip(element.id, self._clip))
        log.debug("Re-clipped %d element(s) to %s", len(self._store), self._clip)

    def apply_to(self, element: DesignElement) -> None:
        """Clip one element (new or geometry-edited) to the current rectangle."""
        self._store.execute(SetClip(element.id, self._clip))

    def align_object(self, element_id: str, horizontal: Optional[str] = None,
                     vertical: Optional[str] = None) -> bool:
        """
        Align an element's bounding box with the print area.

        Args:
            element_id: Element to move.
            horizontal: "left", "center", "right" or None to keep x.
            vertical: "top", "middle", "bottom" or None to keep y.

        Returns:
            True if the element moved; False if it no longer exists or there is
            no print area.

        Raises:
            ValueError: If a target name is not recognized.
        """
        if horizontal is not None and horizontal not in HORIZONTAL_TARGETS:
            raise ValueError(f"Unknown horizontal alignment {horizontal!r}")
        if vertical is not None and vertical not in VERTICAL_TARGETS:
            raise ValueError(f"Unknown vertical alignment {vertical!r}")

        element = self._store.get(element_id)
        area = self._store.print_area
        if element is None or area is None:
            return False

        # Renderer measurements are screen-space; scene arithmetic needs them unzoomed
        screen_w, screen_h = self._viewport.measure(element)
        w = screen_w / self._viewport.zoom
        h = screen_h / self._viewport.zoom
        r = area.rect()

        x = y = None
        if horizontal == "center":
            x = area.center_x
        elif horizontal == "left":
            x = r.left + w / 2.0
        elif horizontal == "right":
            x = r.right - w / 2.0
        if vertical == "middle":
            y = area.center_y
        elif vertical == "top":
            y = r.top + h / 2.0
        elif vertical == "bottom":
            y = r.bottom - h / 2.0

        if x is None and y is None:
            return False
        return self._store.execute(SetTransform(element_id, x=x, y=y))
