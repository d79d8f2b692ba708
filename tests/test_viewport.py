"""Tests for viewport zoom/pan and coordinate mapping."""
from __future__ import annotations

import os
import random
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from canvas.viewport import Viewport
from settings import CanvasZoomSettings


class TestMapping:
    def test_identity(self):
        vp = Viewport()
        assert vp.to_screen(12, 34) == (12, 34)
        assert vp.to_scene(12, 34) == (12, 34)

    def test_zoom_and_pan(self):
        vp = Viewport()
        vp.zoom, vp.pan_x, vp.pan_y = 2.0, 10.0, -5.0
        assert vp.to_screen(3, 4) == (16.0, 3.0)
        assert vp.to_scene(16, 3) == (3.0, 4.0)

    def test_inverse(self):
        vp = Viewport()
        vp.set_zoom(1.7, anchor=(33, 44))
        vp.begin_pan(0, 0)
        vp.pan_to(-12, 9)
        x, y = vp.to_scene(*vp.to_screen(123.4, -56.7))
        assert x == pytest.approx(123.4)
        assert y == pytest.approx(-56.7)


class TestZoom:
    def test_clamped(self):
        vp = Viewport()
        assert vp.set_zoom(10) == 3.0
        assert vp.set_zoom(0.1) == 1.0

    def test_wheel_stays_in_range(self):
        vp = Viewport()
        rng = random.Random(3)
        for _ in range(500):
            vp.zoom_at(rng.uniform(0, 800), rng.uniform(0, 600), rng.uniform(-2000, 2000))
            assert 1.0 <= vp.zoom <= 3.0

    def test_extreme_deltas_clamp(self):
        vp = Viewport()
        assert vp.zoom_at(0, 0, -1_000_000) == 3.0
        assert vp.zoom_at(0, 0, 1_000_000) == 1.0
        assert vp.zoom_at(0, 0, -1e308) == 3.0

    def test_negative_delta_zooms_in(self):
        vp = Viewport()
        vp.zoom_at(0, 0, -100)
        assert vp.zoom == pytest.approx(0.999 ** -100)

    def test_zoom_to_point(self):
        vp = Viewport()
        before = vp.to_scene(200, 150)
        vp.zoom_at(200, 150, -300)
        after = vp.to_scene(200, 150)
        assert after[0] == pytest.approx(before[0])
        assert after[1] == pytest.approx(before[1])

    def test_zoom_to_point_at_clamp(self):
        vp = Viewport()
        vp.zoom_at(50, 50, -5000)
        before = vp.to_scene(400, 300)
        vp.zoom_at(400, 300, -5000)  # already at max
        assert vp.zoom == 3.0
        assert vp.to_scene(400, 300) == pytest.approx(before)

    def test_custom_limits(self):
        vp = Viewport(CanvasZoomSettings(min_zoom=0.5, max_zoom=8.0))
        assert vp.set_zoom(0.6) == 0.6

    def test_reset(self):
        vp = Viewport()
        vp.set_zoom(2, anchor=(100, 100))
        vp.reset()
        assert (vp.zoom, vp.pan_x, vp.pan_y) == (1.0, 0.0, 0.0)


class TestPan:
    def test_pan_adds_screen_delta(self):
        vp = Viewport()
        vp.set_zoom(2.0)
        vp.begin_pan(100, 100)
        vp.pan_to(110, 95)
        vp.pan_to(130, 95)
        assert (vp.pan_x, vp.pan_y) == (30, -5)
        vp.end_pan()
        assert not vp.is_panning

    def test_pan_without_begin_ignored(self):
        vp = Viewport()
        vp.pan_to(50, 50)
        assert (vp.pan_x, vp.pan_y) == (0, 0)
