"""
assets/loader.py

Image loading with Pillow.

Sources are filesystem paths, ``file://`` URLs or ``data:`` URIs. Every
loader exposes the same call:

    loader.load(source, on_loaded, on_failed)

``on_loaded`` receives a LoadedImage, ``on_failed`` a ResourceError. Both
are always invoked on the thread that called ``load``.
"""

from __future__ import annotations

import base64
import io
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Callable, List, Tuple

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from PIL import Image

from errors import ResourceError

log = logging.getLogger(__name__)

LoadedCallback = Callable[["LoadedImage"], None]
FailedCallback = Callable[[ResourceError], None]


@dataclass
class LoadedImage:
    """A decoded image and its pixel size."""
    source: str
    width: int
    height: int
    image: Image.Image


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ValueError("malformed data URI")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return urllib.parse.unquote_to_bytes(payload)


def load_image(source: str) -> LoadedImage:
    """
    Resolve and decode an image source.

    Args:
        source: File path, ``file://`` URL or ``data:`` URI.

    Returns:
        LoadedImage with the decoded Pillow image in RGB or RGBA mode.

    Raises:
        ResourceError: If the source cannot be read or decoded.
    """
    if not source:
        raise ResourceError(source, "empty source")
    if source.startswith(("http://", "https://")):
        raise ResourceError(source, "network sources are not supported")

    try:
        if source.startswith("data:"):
            img = Image.open(io.BytesIO(_decode_data_uri(source)))
        else:
            path = urllib.parse.unquote(source[7:]) if source.startswith("file://") else source
            img = Image.open(path)
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        # UnidentifiedImageError is an OSError; binascii.Error is a ValueError
        raise ResourceError(source, str(e) or type(e).__name__) from e

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    return LoadedImage(source=source, width=img.width, height=img.height, image=img)


class InlineImageLoader:
    """Resolves synchronously on the calling thread (headless use and tests)."""

    def load(self, source: str, on_loaded: LoadedCallback, on_failed: FailedCallback) -> None:
        try:
            loaded = load_image(source)
        except ResourceError as e:
            on_failed(e)
            return
        on_loaded(loaded)


class ImageLoadWorker(QObject):
    """
    Background worker that decodes one image.

    Signals:
        finished(object): Emitted with the LoadedImage on success
        failed(object): Emitted with a ResourceError on failure
    """

    finished = pyqtSignal(object)
    failed = pyqtSignal(object)

    def __init__(self, source: str):
        super().__init__()
        self.source = source

    def run(self):
        """Decode the image and emit the result."""
        try:
            loaded = load_image(self.source)
        except ResourceError as e:
            self.failed.emit(e)
            return
        self.finished.emit(loaded)


class _ResultRelay(QObject):
    """Lives on the requesting thread; worker signals reach it as queued calls."""

    def __init__(self, on_loaded: LoadedCallback, on_failed: FailedCallback,
                 on_done: Callable[["_ResultRelay"], None]):
        super().__init__()
        self._on_loaded = on_loaded
        self._on_failed = on_failed
        self._on_done = on_done

    @pyqtSlot(object)
    def deliver(self, loaded):
        self._on_loaded(loaded)

    @pyqtSlot(object)
    def fail(self, error):
        self._on_failed(error)

    @pyqtSlot()
    def release(self):
        self._on_done(self)


class ThreadedImageLoader:
    """
    Decodes each image on its own QThread so loading never blocks the UI.

    Requires a running Qt event loop on the calling thread for results to be
    delivered.
    """

    def __init__(self):
        # Keep Python references alive until each thread has finished
        self._jobs: List[Tuple[QThread, ImageLoadWorker, _ResultRelay]] = []

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def load(self, source: str, on_loaded: LoadedCallback, on_failed: FailedCallback) -> None:
        thread = QThread()
        worker = ImageLoadWorker(source)
        worker.moveToThread(thread)
        relay = _ResultRelay(on_loaded, on_failed, self._forget)

        thread.started.connect(worker.run)
        worker.finished.connect(relay.deliver)
        worker.failed.connect(relay.fail)

        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)

        thread.finished.connect(relay.release)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)

        self._jobs.append((thread, worker, relay))
        log.debug("Loading image %s on a worker thread", source[:80])
        thread.start()

    def wait(self, msecs: int = 5000) -> None:
        """Block until every running worker thread has finished."""
        for thread, _worker, _relay in list(self._jobs):
            thread.wait(msecs)

    def _forget(self, relay: _ResultRelay) -> None:
        self._jobs = [job for job in self._jobs if job[2] is not relay]
