"""
canvas/interaction.py

Pointer and keyboard state machine for selection, drag, rotate, scale,
marquee selection and panning.

Input arrives in screen coordinates; all hit-testing and geometry runs in
scene coordinates through the viewport. Only one gesture is active at a
time: a pointer-down while a gesture is running is ignored.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Optional, Tuple

from commands import SetTransform
from errors import LifecycleError
from models import DesignElement, Rect
from settings import CanvasHandleSettings, CanvasSelectionSettings
from canvas.clip import ClipManager
from canvas.scene import SceneStore
from canvas.viewport import Viewport
from utils import normalize_angle

log = logging.getLogger(__name__)


class Gesture:
    """Interaction states."""
    IDLE = "idle"
    SELECTING = "selecting"
    DRAGGING = "dragging"
    ROTATING = "rotating"
    SCALING = "scaling"
    PANNING = "panning"
    MARQUEE = "marquee"


class Button:
    """Pointer buttons."""
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"


class Handle:
    """Transform handles drawn around the active element."""
    ROTATE = "rotate"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


# Corner handle -> (x sign, y sign) in the element's local frame
CORNER_SIGNS: Dict[str, Tuple[int, int]] = {
    Handle.TOP_LEFT: (-1, -1),
    Handle.TOP_RIGHT: (1, -1),
    Handle.BOTTOM_LEFT: (-1, 1),
    Handle.BOTTOM_RIGHT: (1, 1),
}

DELETE_KEYS = ("Delete", "Backspace")

# Smallest scaled size a corner drag may produce, in scene units
MIN_SCALED_SIZE = 1.0


class InteractionHandler:
    """
    Selection and interaction state machine.

    Idle -> Selecting (primary press on an element) -> Dragging (motion) or
    Rotating/Scaling (press on a handle) -> Idle (release). A press on empty
    canvas clears the selection and runs a marquee until release. The pan
    button runs a pan gesture that clears the selection and suppresses the
    marquee. Locked elements can be selected but never moved, rotated or
    scaled by a gesture.

    Args:
        store: Scene store.
        viewport: Viewport used for coordinate mapping and panning.
        clip: Clip manager; moved elements are re-clipped.
        on_changed: Called after any selection or scene change.
        on_view_changed: Called after zoom/pan changes (render refresh only).
        is_live: Optional liveness check; input after it turns False raises
            LifecycleError.
    """

    def __init__(
        self,
        store: SceneStore,
        viewport: Viewport,
        clip: ClipManager,
        on_changed: Callable[[], None],
        on_view_changed: Optional[Callable[[], None]] = None,
        handle_settings: Optional[CanvasHandleSettings] = None,
        selection_settings: Optional[CanvasSelectionSettings] = None,
        is_live: Optional[Callable[[], bool]] = None,
    ):
        self._store = store
        self._viewport = viewport
        self._clip = clip
        self._on_changed = on_changed
        self._on_view_changed = on_view_changed
        self._is_live = is_live
        self._handles = handle_settings or CanvasHandleSettings()
        self._selection_settings = selection_settings or CanvasSelectionSettings()
        self.state = Gesture.IDLE
        self._target: Optional[str] = None
        self._handle: Optional[str] = None
        self._last_scene: Tuple[float, float] = (0.0, 0.0)
        self._press_screen: Tuple[float, float] = (0.0, 0.0)
        self._marquee_end: Tuple[float, float] = (0.0, 0.0)
        # Additive marquees extend the selection instead of replacing it
        self._marquee_additive = False
        # Angle between the pointer and the element's angle when rotation started
        self._rotate_offset = 0.0

    @property
    def pan_button(self) -> str:
        return self._selection_settings.pan_button

    @property
    def marquee_rect(self) -> Optional[Rect]:
        """Screen-space marquee while one is being dragged."""
        if self.state != Gesture.MARQUEE:
            return None
        x0, y0 = self._press_screen
        x1, y1 = self._marquee_end
        return Rect.from_points(x0, y0, x1, y1)

    # ---- Hit testing ----

    def handle_at(self, screen_x: float, screen_y: float) -> Optional[str]:
        """Transform handle of the active element under a screen point, if any."""
        active_id = self._store.selection.active
        element = self._store.get(active_id) if active_id else None
        if element is None or not element.visible:
            return None
        zoom = self._viewport.zoom
        sx, sy = self._viewport.to_scene(screen_x, screen_y)
        lx, ly = element.to_local(sx, sy)
        w, h = element.scaled_size
        tol = self._handles.hit_distance / zoom

        rot_y = -h / 2.0 - self._handles.rotate_offset / zoom
        if math.hypot(lx, ly - rot_y) <= tol:
            return Handle.ROTATE
        for handle, (gx, gy) in CORNER_SIGNS.items():
            if math.hypot(lx - gx * w / 2.0, ly - gy * h / 2.0) <= tol:
                return handle
        return None

    # ---- Pointer events ----

    def pointer_down(self, x: float, y: float, button: str = Button.LEFT, additive: bool = False) -> str:
        """
        Handle a pointer press at screen (x, y).

        Args:
            x, y: Screen coordinates.
            button: Which button was pressed.
            additive: Toggle the hit element in or out of the selection
                (Ctrl/Shift click) instead of replacing it.

        Returns:
            The new gesture state.
        """
        self._require_live()
        if self.state != Gesture.IDLE:
            return self.state

        if button == self.pan_button:
            if self._store.selection.clear():
                self._on_changed()
            self._viewport.begin_pan(x, y)
            self.state = Gesture.PANNING
            return self.state

        if button != Button.LEFT:
            return self.state

        self._press_screen = (x, y)
        self._last_scene = self._viewport.to_scene(x, y)

        handle = None if additive else self.handle_at(x, y)
        if handle is not None:
            element = self._store.get(self._store.selection.active)
            self._target = element.id
            self._handle = handle
            if element.locked:
                self.state = Gesture.SELECTING
            elif handle == Handle.ROTATE:
                self._rotate_offset = element.transform.angle - self._pointer_angle(element, x, y)
                self.state = Gesture.ROTATING
            else:
                self.state = Gesture.SCALING
            return self.state

        hit = self._store.element_at(*self._last_scene)
        if hit is not None:
            selection = self._store.selection
            if additive:
                changed = selection.toggle(hit.id)
            elif hit.id in selection:
                changed = False
            else:
                changed = selection.set([hit.id])
            if changed:
                self._on_changed()
            self._target = hit.id
            self.state = Gesture.SELECTING
            return self.state

        if not additive and self._store.selection.clear():
            self._on_changed()
        self._marquee_end = (x, y)
        self._marquee_additive = additive
        self.state = Gesture.MARQUEE
        return self.state

    def pointer_move(self, x: float, y: float) -> str:
        """Handle pointer motion at screen (x, y) with the button held."""
        self._require_live()
        if self.state == Gesture.PANNING:
            self._viewport.pan_to(x, y)
            self._view_changed()
        elif self.state == Gesture.MARQUEE:
            self._marquee_end = (x, y)
            self._view_changed()
        elif self.state == Gesture.SELECTING:
            target = self._store.get(self._target) if self._target else None
            if target is not None and not target.locked and self._handle is None:
                self.state = Gesture.DRAGGING
                self._drag_to(x, y)
        elif self.state == Gesture.DRAGGING:
            self._drag_to(x, y)
        elif self.state == Gesture.ROTATING:
            self._rotate_to(x, y)
        elif self.state == Gesture.SCALING:
            self._scale_to(x, y)
        return self.state

    def pointer_up(self, x: float, y: float) -> str:
        """Handle pointer release at screen (x, y); always returns to Idle."""
        self._require_live()
        if self.state == Gesture.PANNING:
            self._viewport.end_pan()
        elif self.state == Gesture.MARQUEE:
            self._marquee_end = (x, y)
            self._finish_marquee()
        self.cancel()
        return self.state

    def wheel(self, x: float, y: float, delta: float) -> float:
        """Zoom about the screen point; returns the new zoom."""
        self._require_live()
        zoom = self._viewport.zoom_at(x, y, delta)
        self._view_changed()
        return zoom

    def cancel(self) -> None:
        """Abandon any running gesture."""
        if self._viewport.is_panning:
            self._viewport.end_pan()
        self.state = Gesture.IDLE
        self._target = None
        self._handle = None
        self._marquee_additive = False

    # ---- Keyboard ----

    def key_down(self, key: str, in_text_entry: bool = False) -> bool:
        """
        Handle a key press.

        Delete/Backspace removes every selected element, except when focus is
        in a text-entry control.

        Returns:
            True if the key was handled.
        """
        self._require_live()
        if key not in DELETE_KEYS or in_text_entry:
            return False
        ids = self._store.selection.ids
        if not ids:
            return False
        removed = self._store.remove_many(ids)
        if removed:
            log.debug("Deleted %d selected element(s)", len(removed))
            self._on_changed()
        return True

    # ---- Gesture steps ----

    def _movable(self):
        for element_id in self._store.selection.ids:
            element = self._store.get(element_id)
            if element is not None and not element.locked:
                yield element

    def _drag_to(self, x: float, y: float) -> None:
        sx, sy = self._viewport.to_scene(x, y)
        dx = sx - self._last_scene[0]
        dy = sy - self._last_scene[1]
        self._last_scene = (sx, sy)
        if dx == 0 and dy == 0:
            return
        for element in list(self._movable()):
            t = element.transform
            self._store.execute(SetTransform(element.id, x=t.x + dx, y=t.y + dy))
            self._clip.apply_to(element)
        self._on_changed()

    def _pointer_angle(self, element: DesignElement, x: float, y: float) -> float:
        """Angle of the pointer around the element center; 0 when straight above."""
        sx, sy = self._viewport.to_scene(x, y)
        return math.degrees(math.atan2(sy - element.transform.y, sx - element.transform.x)) + 90.0

    def _rotate_to(self, x: float, y: float) -> None:
        element = self._store.get(self._target)
        if element is None:
            self.cancel()
            return
        angle = normalize_angle(self._pointer_angle(element, x, y) + self._rotate_offset)
        self._store.execute(SetTransform(element.id, angle=angle))
        self._clip.apply_to(element)
        self._on_changed()

    def _scale_to(self, x: float, y: float) -> None:
        element = self._store.get(self._target)
        if element is None:
            self.cancel()
            return
        if element.natural_width <= 0 or element.natural_height <= 0:
            return
        lx, ly = element.to_local(*self._viewport.to_scene(x, y))
        # Center-anchored: the dragged corner sits at half the new size
        new_w = max(abs(lx) * 2.0, MIN_SCALED_SIZE)
        new_h = max(abs(ly) * 2.0, MIN_SCALED_SIZE)
        self._store.execute(SetTransform(
            element.id,
            scale_x=new_w / element.natural_width,
            scale_y=new_h / element.natural_height,
        ))
        self._clip.apply_to(element)
        self._on_changed()

    def _finish_marquee(self) -> None:
        screen = self.marquee_rect
        min_size = self._selection_settings.marquee_min_size
        if screen is None or screen.width < min_size or screen.height < min_size:
            return
        left, top = self._viewport.to_scene(screen.left, screen.top)
        right, bottom = self._viewport.to_scene(screen.right, screen.bottom)
        area = Rect.from_points(left, top, right, bottom)
        # Only elements fully enclosed by the marquee are selected
        ids = [
            e.id for e in self._store.elements
            if e.visible and area.contains_rect(e.bounding_rect())
        ]
        if self._marquee_additive:
            ids = list(self._store.selection.ids) + ids
        if self._store.selection.set(ids):
            self._on_changed()

    def _require_live(self) -> None:
        if self._is_live is not None and not self._is_live():
            raise LifecycleError("Interaction handler belongs to a disposed design session")

    def _view_changed(self) -> None:
        if self._on_view_changed:
            self._on_view_changed()
