"""Shared fixtures for the canvas engine tests.

Qt-dependent tests use the offscreen platform so they run headless.
"""
from __future__ import annotations

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from PIL import Image
from PyQt6.QtWidgets import QApplication

from assets.loader import load_image
from canvas.session import DesignSession
from errors import ResourceError
from models import PrintArea
from settings import AppSettings


class FakeMeasurer:
    """Deterministic metrics: half an em per character, line_height em per line."""

    def __init__(self):
        self.calls = 0

    def measure(self, style):
        self.calls += 1
        lines = style.content.split("\n") if style.content else [""]
        width = max(len(line) for line in lines) * style.font_size / 2.0
        if style.font_weight == "bold":
            width *= 1.1
        width += style.char_spacing / 1000.0 * style.font_size * max(len(lines[0]) - 1, 0)
        height = style.font_size * style.line_height * len(lines)
        return width, height


class SequentialIds:
    """Predictable element ids: text-1, image-2, ..."""

    def __init__(self):
        self.n = 0

    def __call__(self, kind: str) -> str:
        self.n += 1
        return f"{kind}-{self.n}"


class DeferredLoader:
    """Holds load requests until the test resolves them, like a slow network."""

    def __init__(self):
        self.pending = []

    def load(self, source, on_loaded, on_failed):
        self.pending.append((source, on_loaded, on_failed))

    def resolve_all(self):
        pending, self.pending = self.pending, []
        for source, on_loaded, on_failed in pending:
            try:
                loaded = load_image(source)
            except ResourceError as e:
                on_failed(e)
            else:
                on_loaded(loaded)


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def measurer():
    return FakeMeasurer()


@pytest.fixture
def session(settings, measurer):
    s = DesignSession(settings=settings, measurer=measurer, make_id=SequentialIds())
    s.init()
    yield s
    s.dispose()


@pytest.fixture
def area():
    return PrintArea(center_x=300, center_y=400, width=200, height=300)


@pytest.fixture
def png_path(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGB", (400, 200), (200, 30, 30)).save(path)
    return str(path)
