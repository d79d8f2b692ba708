"""
canvas/view.py

QGraphicsView that forwards pointer, wheel and key input to the session's
interaction handler and shows the scene through the session viewport.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QPainter, QTransform
from PyQt6.QtWidgets import (
    QApplication,
    QGraphicsView,
    QLineEdit,
    QPlainTextEdit,
    QTextEdit,
)

from canvas.interaction import Button
from canvas.session import DesignSession
from canvas.surface import QtSceneSurface

log = logging.getLogger(__name__)

_BUTTONS = {
    Qt.MouseButton.LeftButton: Button.LEFT,
    Qt.MouseButton.MiddleButton: Button.MIDDLE,
    Qt.MouseButton.RightButton: Button.RIGHT,
}

_KEYS = {
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Backspace: "Backspace",
}


def text_entry_has_focus() -> bool:
    """True if keyboard focus is inside a text-entry control."""
    widget = QApplication.focusWidget()
    return isinstance(widget, (QLineEdit, QTextEdit, QPlainTextEdit))


class CanvasView(QGraphicsView):
    """
    Canvas widget for one design session.

    Qt's own item selection, dragging and rubber band are disabled; all of it
    runs through the session's interaction handler. The view maps its
    top-left corner to the viewport's pan offset and scales by its zoom.
    """

    def __init__(self, session: DesignSession, surface: QtSceneSurface, parent=None):
        super().__init__(surface.scene, parent)
        self.session = session
        self.surface = surface
        surface.set_rendered_callback(self.sync_viewport)

        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        self.setDragMode(QGraphicsView.DragMode.NoDrag)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.NoAnchor)
        self.setMouseTracking(False)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def _live(self) -> bool:
        return self.session.is_live

    def sync_viewport(self):
        """Apply the session viewport (zoom and pan) to this view."""
        if not self._live():
            return
        vp = self.session.viewport
        self.setTransform(QTransform.fromScale(vp.zoom, vp.zoom))
        left, top = vp.to_scene(0, 0)
        size = self.viewport().size()
        self.setSceneRect(QRectF(left, top, size.width() / vp.zoom, size.height() / vp.zoom))

    # ---- Input forwarding ----

    def wheelEvent(self, event):
        """Zoom about the cursor."""
        if not self._live():
            return
        pos = event.position()
        # Qt reports wheel-up as positive; the viewport zooms in on negative deltas
        self.session.interaction.wheel(pos.x(), pos.y(), -event.angleDelta().y())
        event.accept()

    def mousePressEvent(self, event):
        """Start a gesture. Ctrl or Shift toggles selection membership."""
        button = _BUTTONS.get(event.button())
        if not self._live() or button is None:
            super().mousePressEvent(event)
            return
        pos = event.position()
        additive = bool(event.modifiers() & (
            Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.ShiftModifier))
        self.setFocus()
        self.session.interaction.pointer_down(pos.x(), pos.y(), button, additive)
        event.accept()

    def mouseMoveEvent(self, event):
        if not self._live():
            return
        pos = event.position()
        self.session.interaction.pointer_move(pos.x(), pos.y())
        event.accept()

    def mouseReleaseEvent(self, event):
        if not self._live():
            return
        pos = event.position()
        self.session.interaction.pointer_up(pos.x(), pos.y())
        event.accept()

    def keyPressEvent(self, event):
        """Delete/Backspace removes the selection unless a text field has focus."""
        key = _KEYS.get(event.key())
        if key is not None and self._live():
            if self.session.interaction.key_down(key, in_text_entry=text_entry_has_focus()):
                event.accept()
                return
        super().keyPressEvent(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if not self._live():
            return
        size = event.size()
        self.session.resize(size.width(), size.height())
        self.sync_viewport()


def create_canvas(session: DesignSession, parent=None) -> CanvasView:
    """Build a Qt surface and view and attach them to a session."""
    surface = QtSceneSurface(settings=session.settings)
    session.set_surface(surface)
    return CanvasView(session, surface, parent)
