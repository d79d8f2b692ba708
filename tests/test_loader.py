"""Tests for image loading from paths and data URIs, inline and threaded."""
from __future__ import annotations

import base64
import io
import os
import sys
import time

import pytest
from PIL import Image

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from assets.loader import InlineImageLoader, ThreadedImageLoader, load_image
from canvas.session import DesignSession
from conftest import FakeMeasurer
from errors import ResourceError


def png_bytes(size=(30, 20), mode="RGBA"):
    buf = io.BytesIO()
    Image.new(mode, size).save(buf, format="PNG")
    return buf.getvalue()


class TestLoadImage:
    def test_path(self, png_path):
        loaded = load_image(png_path)
        assert (loaded.width, loaded.height) == (400, 200)
        assert loaded.image.mode == "RGB"
        assert loaded.source == png_path

    def test_file_url(self, png_path):
        assert load_image("file://" + png_path).width == 400

    def test_data_uri(self):
        uri = "data:image/png;base64," + base64.b64encode(png_bytes()).decode("ascii")
        loaded = load_image(uri)
        assert (loaded.width, loaded.height) == (30, 20)

    def test_palette_converted(self, tmp_path):
        path = tmp_path / "p.png"
        Image.new("P", (8, 8)).save(path)
        assert load_image(str(path)).image.mode == "RGBA"

    @pytest.mark.parametrize("source", [
        "",
        "data:image/png;base64,@@@not-base64@@@",
        "data:image/png;base64",
        "https://example.com/logo.png",
    ])
    def test_bad_sources(self, source):
        with pytest.raises(ResourceError):
            load_image(source)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ResourceError) as info:
            load_image(str(tmp_path / "missing.png"))
        assert info.value.source.endswith("missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ResourceError):
            load_image(str(path))


class TestInlineLoader:
    def test_callbacks(self, png_path, tmp_path):
        loaded, failed = [], []
        loader = InlineImageLoader()
        loader.load(png_path, loaded.append, failed.append)
        loader.load(str(tmp_path / "nope.png"), loaded.append, failed.append)
        assert len(loaded) == 1 and len(failed) == 1


class TestThreadedLoader:
    def _pump(self, qapp, done, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not done() and time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.01)

    def test_loads_off_thread(self, qapp, png_path):
        loader = ThreadedImageLoader()
        loaded, failed = [], []
        loader.load(png_path, loaded.append, failed.append)
        self._pump(qapp, lambda: loaded or failed)
        loader.wait()
        assert len(loaded) == 1
        assert loaded[0].width == 400
        assert failed == []

    def test_failure_reported(self, qapp, tmp_path):
        loader = ThreadedImageLoader()
        loaded, failed = [], []
        loader.load(str(tmp_path / "nope.png"), loaded.append, failed.append)
        self._pump(qapp, lambda: loaded or failed)
        loader.wait()
        assert loaded == []
        assert isinstance(failed[0], ResourceError)

    def test_session_with_threaded_loader(self, qapp, settings, png_path):
        loader = ThreadedImageLoader()
        s = DesignSession(settings=settings, loader=loader, measurer=FakeMeasurer()).init()
        results = []
        s.add_image(png_path, on_result=results.append)
        assert s.get_layers() == []
        self._pump(qapp, lambda: results)
        loader.wait()
        assert results[0].ok
        assert len(s.get_layers()) == 1
        s.dispose()
