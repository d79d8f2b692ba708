"""
canvas/session.py

The design session: one canvas mount's scene store, viewport, clip manager,
interaction handler, property mutator and change notifier behind a single
object that collaborators receive by reference.

A session must be initialized with ``init()`` before use and becomes
unusable after ``dispose()``; calls outside that window raise
LifecycleError. Stale element ids are silent no-ops.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from PIL import Image

from commands import Reorder
from errors import LifecycleError, ResourceError
from models import BackgroundImage, DesignElement, ImageResult, Kind, LayerInfo, PrintArea, Rect
from settings import AppSettings, get_settings
from assets.loader import InlineImageLoader, LoadedImage
from canvas.clip import ClipManager
from canvas.interaction import InteractionHandler
from canvas.layers import ChangeNotifier, LayerDirectory
from canvas.scene import SceneStore, split_creation_options
from canvas.text_metrics import PillowTextMeasurer
from canvas.viewport import Viewport
from properties.mutator import PropertyMutator

log = logging.getLogger(__name__)

ResultCallback = Callable[[ImageResult], None]


class DesignSession:
    """
    One live canvas session.

    Args:
        settings: Application settings; defaults to the process settings.
        loader: Image loader with ``load(source, on_loaded, on_failed)``.
            Defaults to an inline (synchronous) loader.
        measurer: Text measurer with ``measure(style) -> (w, h)``.
        surface: Optional render surface with ``attach(session)``,
            ``render()`` and ``detach()``.
        make_id: Optional element id factory, called with the element kind.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        loader=None,
        measurer=None,
        surface=None,
        make_id: Optional[Callable[[str], str]] = None,
    ):
        self.settings = settings or get_settings().settings
        self._loader = loader or InlineImageLoader()
        self._measurer = measurer or PillowTextMeasurer()
        self._surface = surface
        self._make_id = make_id
        self._live = False
        # Bumped on every init/dispose so late async results can tell they are stale
        self._generation = 0
        self._canvas_width = 0.0
        self._canvas_height = 0.0

        self.store: Optional[SceneStore] = None
        self.viewport: Optional[Viewport] = None
        self.clip: Optional[ClipManager] = None
        self.interaction: Optional[InteractionHandler] = None
        self._notifier: Optional[ChangeNotifier] = None
        self._layers: Optional[LayerDirectory] = None
        self._mutator: Optional[PropertyMutator] = None
        self._assets: Dict[str, Image.Image] = {}

    # ---- Lifecycle ----

    @property
    def is_live(self) -> bool:
        return self._live

    def init(self) -> "DesignSession":
        """Build a fresh, empty scene. A live session is torn down first."""
        if self._live:
            self.dispose()
        self._generation += 1

        canvas = self.settings.canvas
        self.store = SceneStore(self.settings, self._measurer, make_id=self._make_id)
        self.viewport = Viewport(canvas.zoom)
        self.clip = ClipManager(self.store, self.viewport)
        self._notifier = ChangeNotifier()
        self._layers = LayerDirectory(self.store)
        self._mutator = PropertyMutator(self.store, self.clip, self._changed, self.settings.defaults.text)
        self.interaction = InteractionHandler(
            self.store,
            self.viewport,
            self.clip,
            on_changed=self._changed,
            on_view_changed=self._render,
            handle_settings=canvas.handles,
            selection_settings=canvas.selection,
            is_live=lambda generation=self._generation: self._is_current(generation),
        )
        self._assets = {}
        self._live = True
        if self._surface is not None:
            self._surface.attach(self)
        log.info("Design session initialized")
        return self

    def dispose(self) -> None:
        """Release listeners and the scene. Calling it again is harmless."""
        if not self._live:
            return
        self._live = False
        self._generation += 1
        self.interaction.cancel()
        self._notifier.clear()
        self.store.set_print_area_changed_callback(None)
        self.store.set_element_added_callback(None)
        if self._surface is not None:
            self._surface.detach()
        self._assets = {}
        log.info("Design session disposed")

    def set_surface(self, surface) -> None:
        """Swap the render surface; a live session attaches it immediately."""
        if self._live and self._surface is not None:
            self._surface.detach()
        self._surface = surface
        if self._live and surface is not None:
            surface.attach(self)

    def _require_live(self) -> None:
        if not self._live:
            raise LifecycleError("Design session is not initialized or has been disposed")

    def _render(self) -> None:
        if self._surface is not None:
            self._surface.render()

    def _changed(self) -> None:
        """Render refresh, then the payload-free changed signal."""
        self._render()
        self._notifier.notify()

    # ---- Observation ----

    @property
    def version(self) -> int:
        """Number of changed signals fired since ``init()``."""
        self._require_live()
        return self._notifier.version

    def subscribe(self, observer: Callable[[], None]) -> Callable[[], None]:
        """Register a change observer; returns its unsubscribe function."""
        self._require_live()
        return self._notifier.subscribe(observer)

    def get_layers(self) -> List[LayerInfo]:
        self._require_live()
        return self._layers.layers()

    def get_active_element(self) -> Optional[DesignElement]:
        self._require_live()
        active = self.store.selection.active
        return self.store.get(active) if active else None

    def get_element(self, element_id: str) -> Optional[DesignElement]:
        self._require_live()
        return self.store.get(element_id)

    def get_elements(self) -> List[DesignElement]:
        """Editable elements, bottom-first."""
        self._require_live()
        return list(self.store.elements)

    def get_safe_area(self) -> Optional[Rect]:
        """Inner (dashed) guide rectangle, or None before a print area is set."""
        self._require_live()
        inner = self.store.inner_guide()
        return inner.rect if inner is not None else None

    def index_of(self, element_id: str) -> Optional[int]:
        """Bottom-first editable index of an element, or None."""
        self._require_live()
        return self.store.index_of(element_id)

    def image_for(self, source: str) -> Optional[Image.Image]:
        """Decoded pixels for an image source already loaded into this session."""
        return self._assets.get(source)

    @property
    def selected_ids(self):
        self._require_live()
        return self.store.selection.ids

    # ---- Creation ----

    def add_text(self, content: str, style: Optional[Dict[str, Any]] = None) -> str:
        """Add a text element at the print-area center; it becomes the active element."""
        self._require_live()
        element_id = self.store.add_text(content, style)
        self._changed()
        return element_id

    def add_image(self, source: str, style: Optional[Dict[str, Any]] = None,
                  on_result: Optional[ResultCallback] = None) -> None:
        """
        Resolve an image asynchronously and add it as the active element.

        The scene is only touched once the image has decoded. A failure
        leaves the scene unchanged and is reported through ``on_result``.
        If the session is disposed (or re-initialized) before the image
        arrives, the result is discarded silently.

        Raises:
            ValueError: If ``style`` contains keys that do not apply to images.
        """
        self._require_live()
        split_creation_options(Kind.IMAGE, style)
        generation = self._generation

        def loaded(image: LoadedImage) -> None:
            if not self._is_current(generation):
                log.debug("Discarded image %s: session is gone", source[:80])
                return
            self._assets[image.source] = image.image
            element_id = self.store.add_image_element(image.source, image.width, image.height, style)
            self._changed()
            if on_result:
                on_result(ImageResult(source=source, element_id=element_id))

        def failed(error: ResourceError) -> None:
            if not self._is_current(generation):
                log.debug("Discarded image failure for %s: session is gone", source[:80])
                return
            log.warning("%s", error)
            if on_result:
                on_result(ImageResult(source=source, error=error))

        self._loader.load(source, loaded, failed)

    def _is_current(self, generation: int) -> bool:
        return self._live and self._generation == generation

    # ---- Removal ----

    def remove(self, element_id: str) -> bool:
        self._require_live()
        if not self.store.remove(element_id):
            return False
        self._changed()
        return True

    def remove_selected(self) -> List[str]:
        self._require_live()
        removed = self.store.remove_many(self.store.selection.ids)
        if removed:
            self._changed()
        return removed

    def clear_all(self) -> int:
        """Remove every editable element; the print-area guides stay."""
        self._require_live()
        count = self.store.clear_all()
        if count:
            self._changed()
        return count

    # ---- Ordering ----

    def reorder(self, element_id: str, new_index: int) -> bool:
        """Move an element to a bottom-first editable index (clamped)."""
        self._require_live()
        if not self.store.execute(Reorder(element_id, new_index)):
            return False
        self._changed()
        return True

    def reorder_layer(self, old_position: int, new_position: int) -> bool:
        """Move a layer-list row (top-first positions, as a drag in the layer panel)."""
        self._require_live()
        layers = self._layers.layers()
        if not 0 <= old_position < len(layers):
            return False
        return self.reorder(layers[old_position].id, self._layers.to_stack_index(new_position))

    def bring_to_front(self, element_id: str) -> bool:
        self._require_live()
        return self.reorder(element_id, len(self.store) - 1)

    def send_to_back(self, element_id: str) -> bool:
        return self.reorder(element_id, 0)

    # ---- Print area, alignment, background ----

    def set_print_area(self, area: PrintArea) -> None:
        """Move the print-area guides and re-clip every element to the new area."""
        self._require_live()
        self.store.set_print_area(area)
        self._changed()

    def align_object(self, element_id: str, horizontal: Optional[str] = None,
                     vertical: Optional[str] = None) -> bool:
        self._require_live()
        if not self.clip.align_object(element_id, horizontal, vertical):
            return False
        self._changed()
        return True

    def set_background_image(self, source: str, on_result: Optional[ResultCallback] = None) -> None:
        """Load the product photo behind the design and fit it to the canvas width."""
        self._require_live()
        generation = self._generation

        def loaded(image: LoadedImage) -> None:
            if not self._is_current(generation):
                log.debug("Discarded background %s: session is gone", source[:80])
                return
            self._assets[image.source] = image.image
            self.store.set_background(BackgroundImage(image.source, image.width, image.height))
            self.store.fit_background(self._canvas_width)
            self._changed()
            if on_result:
                on_result(ImageResult(source=source))

        def failed(error: ResourceError) -> None:
            if not self._is_current(generation):
                return
            log.warning("%s", error)
            if on_result:
                on_result(ImageResult(source=source, error=error))

        self._loader.load(source, loaded, failed)

    def resize(self, width: float, height: float) -> None:
        """Record the canvas size and refit the background to the new width."""
        self._require_live()
        self._canvas_width = float(width)
        self._canvas_height = float(height)
        self.store.fit_background(self._canvas_width)
        self._render()

    @property
    def canvas_size(self):
        return self._canvas_width, self._canvas_height

    # ---- Properties ----

    def update_property(self, element_id: str, key: str, value: Any) -> bool:
        self._require_live()
        return self._mutator.update_property(element_id, key, value)

    def reset_rotation(self, element_id: str) -> bool:
        self._require_live()
        return self._mutator.reset_rotation(element_id)

    def toggle_visibility(self, element_id: str) -> bool:
        self._require_live()
        return self._mutator.toggle_visibility(element_id)

    def toggle_lock(self, element_id: str) -> bool:
        self._require_live()
        return self._mutator.toggle_lock(element_id)

    # ---- Selection ----

    def select(self, ids: Union[str, Iterable[str], None]) -> bool:
        """
        Replace the selection. Ids that no longer exist are dropped.

        Returns:
            True if the selection changed.
        """
        self._require_live()
        if ids is None:
            ids = []
        elif isinstance(ids, str):
            ids = [ids]
        live_ids = [i for i in ids if i in self.store]
        if not self.store.selection.set(live_ids):
            return False
        self._changed()
        return True

    def clear_selection(self) -> bool:
        return self.select(None)


class SessionHost:
    """Keeps at most one live session at a time, such as for one editor window."""

    def __init__(self):
        self.current: Optional[DesignSession] = None

    def init(self, session: DesignSession) -> DesignSession:
        """Dispose the current session (if another) and initialize ``session``."""
        if self.current is not None and self.current is not session:
            self.current.dispose()
        self.current = session
        return session.init()

    def dispose(self) -> None:
        if self.current is not None:
            self.current.dispose()
            self.current = None
