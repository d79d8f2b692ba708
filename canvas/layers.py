"""
canvas/layers.py

Change notifier and the layer directory read-model.

Notifications carry no payload: subscribers re-pull whatever they show
(layers, active element, panel state) after each signal. ``version``
increases by one per signal so a subscriber can skip a re-pull it has
already done.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from models import LayerInfo
from canvas.scene import SceneStore

log = logging.getLogger(__name__)

Observer = Callable[[], None]


class ChangeNotifier:
    """Multicast registry of no-argument callbacks."""

    def __init__(self):
        self._observers: List[Observer] = []
        self.version = 0

    def __len__(self) -> int:
        return len(self._observers)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer. Returns a disposer; calling it twice is harmless."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def notify(self) -> None:
        """Fire the changed signal synchronously to every observer."""
        self.version += 1
        # Copy so observers may unsubscribe while being notified
        for observer in list(self._observers):
            observer()

    def clear(self) -> None:
        self._observers.clear()


class LayerDirectory:
    """Derives the user-facing layer list from the scene store; holds no state of its own."""

    def __init__(self, store: SceneStore):
        self._store = store

    def layers(self) -> List[LayerInfo]:
        """Editable elements, top-first, guides excluded."""
        active = self._store.selection.active
        return [
            LayerInfo(
                id=e.id,
                kind=e.kind,
                display_name=e.display_name,
                visible=e.visible,
                locked=e.locked,
                is_active=(e.id == active),
            )
            for e in reversed(self._store.elements)
        ]

    def layer_index(self, element_id: str) -> int:
        """Top-first layer-list position of an element, or -1."""
        for i, layer in enumerate(self.layers()):
            if layer.id == element_id:
                return i
        return -1

    def to_stack_index(self, layer_index: int) -> int:
        """Convert a top-first layer-list position to a bottom-first editable index."""
        return len(self._store) - 1 - int(layer_index)
