"""
canvas/viewport.py

Zoom/pan state and the mapping between scene and screen coordinates.

    screen = scene * zoom + pan
    scene  = (screen - pan) / zoom
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from models import DesignElement, Rect
from settings import CanvasZoomSettings
from utils import clamp

Point = Tuple[float, float]


class Viewport:
    """
    Viewport controller.

    Zoom is clamped to [min_zoom, max_zoom]. Wheel zoom keeps the scene point
    under the cursor fixed on screen; panning adds screen-space deltas to the
    pan offset while a pan gesture is active.
    """

    def __init__(self, zoom_settings: Optional[CanvasZoomSettings] = None):
        self._settings = zoom_settings or CanvasZoomSettings()
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._pan_anchor: Optional[Point] = None

    @property
    def min_zoom(self) -> float:
        return self._settings.min_zoom

    @property
    def max_zoom(self) -> float:
        return self._settings.max_zoom

    # ---- Mapping ----

    def to_screen(self, x: float, y: float) -> Point:
        return x * self.zoom + self.pan_x, y * self.zoom + self.pan_y

    def to_scene(self, x: float, y: float) -> Point:
        return (x - self.pan_x) / self.zoom, (y - self.pan_y) / self.zoom

    def rect_to_screen(self, r: Rect) -> Rect:
        left, top = self.to_screen(r.left, r.top)
        return Rect(left, top, r.width * self.zoom, r.height * self.zoom)

    def measure(self, element: DesignElement) -> Tuple[float, float]:
        """Screen-space size of an element's bounding box (what a renderer reports)."""
        r = self.rect_to_screen(element.bounding_rect())
        return r.width, r.height

    # ---- Zoom ----

    def set_zoom(self, zoom: float, anchor: Optional[Point] = None) -> float:
        """Set the zoom, keeping the screen point ``anchor`` fixed if given."""
        new_zoom = clamp(float(zoom), self.min_zoom, self.max_zoom)
        if anchor is not None:
            sx, sy = anchor
            scene_x, scene_y = self.to_scene(sx, sy)
            self.pan_x = sx - scene_x * new_zoom
            self.pan_y = sy - scene_y * new_zoom
        self.zoom = new_zoom
        return self.zoom

    def zoom_at(self, screen_x: float, screen_y: float, delta: float) -> float:
        """Apply a wheel delta at a screen point (zoom-to-point).

        Positive deltas zoom out, negative deltas zoom in, matching browser
        ``deltaY`` conventions.
        """
        # decay ** delta, taken in log space so huge deltas land on a limit
        exponent = float(delta) * math.log(self._settings.wheel_decay)
        if exponent >= math.log(self.max_zoom / self.zoom):
            new_zoom = self.max_zoom
        elif exponent <= math.log(self.min_zoom / self.zoom):
            new_zoom = self.min_zoom
        else:
            new_zoom = self.zoom * math.exp(exponent)
        return self.set_zoom(new_zoom, anchor=(screen_x, screen_y))

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._pan_anchor = None

    # ---- Pan ----

    @property
    def is_panning(self) -> bool:
        return self._pan_anchor is not None

    def begin_pan(self, screen_x: float, screen_y: float) -> None:
        self._pan_anchor = (screen_x, screen_y)

    def pan_to(self, screen_x: float, screen_y: float) -> None:
        """Move the pan by the screen delta since the last pointer position."""
        if self._pan_anchor is None:
            return
        ax, ay = self._pan_anchor
        self.pan_x += screen_x - ax
        self.pan_y += screen_y - ay
        self._pan_anchor = (screen_x, screen_y)

    def end_pan(self) -> None:
        self._pan_anchor = None
