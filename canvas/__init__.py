"""
canvas package

Design-canvas engine: scene store, viewport, clipping, interaction, layers,
the session object, and the Qt surface and view that present it.
"""

from canvas.selection import Selection
from canvas.scene import SceneStore
from canvas.viewport import Viewport
from canvas.clip import ClipManager
from canvas.interaction import Button, Gesture, Handle, InteractionHandler
from canvas.layers import ChangeNotifier, LayerDirectory
from canvas.text_metrics import PillowTextMeasurer
from canvas.session import DesignSession, SessionHost
from canvas.surface import QtSceneSurface
from canvas.view import CanvasView, create_canvas

__all__ = [
    "Selection",
    "SceneStore",
    "Viewport",
    "ClipManager",
    "Button",
    "Gesture",
    "Handle",
    "InteractionHandler",
    "ChangeNotifier",
    "LayerDirectory",
    "PillowTextMeasurer",
    "DesignSession",
    "SessionHost",
    "QtSceneSurface",
    "CanvasView",
    "create_canvas",
]
