"""Tests for the Qt render surface and canvas view (offscreen platform)."""
from __future__ import annotations

import os
import sys

import pytest
from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QFontMetricsF
from PyQt6.QtWidgets import QGraphicsDropShadowEffect, QGraphicsItem, QGraphicsPixmapItem

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from canvas.session import DesignSession
from canvas.surface import QtSceneSurface, TextGraphic
from canvas.view import CanvasView, create_canvas
from conftest import FakeMeasurer, SequentialIds
from models import SYSTEM_INNER_ID, SYSTEM_OUTER_ID, TextStyle


@pytest.fixture
def surface(qapp, settings):
    return QtSceneSurface(settings=settings)


@pytest.fixture
def live(surface, settings, area):
    s = DesignSession(settings=settings, measurer=FakeMeasurer(), surface=surface, make_id=SequentialIds())
    s.init()
    s.set_print_area(area)
    yield s
    s.dispose()


class TestGuides:
    def test_guides_lowest(self, live, surface):
        eid = live.add_text("Hello")
        outer = surface.guide_item(SYSTEM_OUTER_ID)
        inner = surface.guide_item(SYSTEM_INNER_ID)
        container = surface.container_item(eid)
        assert outer.zValue() < inner.zValue() < container.zValue()

    def test_inner_dashed(self, live, surface):
        assert surface.guide_item(SYSTEM_OUTER_ID).pen().style() == Qt.PenStyle.SolidLine
        assert surface.guide_item(SYSTEM_INNER_ID).pen().style() == Qt.PenStyle.CustomDashLine

    def test_guide_rect(self, live, surface):
        r = surface.guide_item(SYSTEM_OUTER_ID).rect()
        assert (r.x(), r.y(), r.width(), r.height()) == (200, 250, 200, 300)


class TestElements:
    def test_z_follows_stack(self, live, surface):
        a = live.add_text("A")
        b = live.add_text("B")
        assert surface.container_item(a).zValue() < surface.container_item(b).zValue()
        live.reorder(b, 0)
        assert surface.container_item(b).zValue() < surface.container_item(a).zValue()

    def test_container_clips_to_print_area(self, live, surface, area):
        eid = live.add_text("Hello")
        container = surface.container_item(eid)
        assert container.flags() & QGraphicsItem.GraphicsItemFlag.ItemClipsChildrenToShape
        r = container.rect()
        assert (r.x(), r.y(), r.width(), r.height()) == (200, 250, 200, 300)

    def test_content_centered_on_position(self, live, surface):
        eid = live.add_text("Hello")
        content = surface.content_item(eid)
        center = content.mapToScene(content.box().center())
        assert center.x() == pytest.approx(300, abs=0.01)
        assert center.y() == pytest.approx(400, abs=0.01)

    def test_hidden(self, live, surface):
        eid = live.add_text("Hello")
        live.toggle_visibility(eid)
        assert not surface.container_item(eid).isVisible()

    def test_removed(self, live, surface):
        eid = live.add_text("Hello")
        live.remove(eid)
        assert surface.container_item(eid) is None

    def test_outline_pen(self, live, surface):
        eid = live.add_text("Hello")
        assert surface.content_item(eid).pen().style() == Qt.PenStyle.NoPen
        live.update_property(eid, "outlineEnabled", True)
        live.update_property(eid, "strokeWidth", 2)
        assert surface.content_item(eid).pen().widthF() == 2

    def test_shadow_effect(self, live, surface):
        eid = live.add_text("Hello")
        live.update_property(eid, "shadow", {"blur": 5, "offsetX": 2, "offsetY": 3})
        effect = surface.content_item(eid).graphicsEffect()
        assert isinstance(effect, QGraphicsDropShadowEffect)
        assert effect.blurRadius() == 5

    def test_image_pixmap_and_flip(self, live, surface, png_path):
        results = []
        live.add_image(png_path, on_result=results.append)
        eid = results[0].element_id
        content = surface.content_item(eid)
        assert isinstance(content, QGraphicsPixmapItem)
        assert content.pixmap().width() == 400
        live.update_property(eid, "flipX", True)
        assert surface.content_item(eid).transform().m11() < 0

    def test_named_fill(self, live, surface):
        eid = live.add_text("Hello", {"fill": "red"})
        assert surface.content_item(eid).brush().color().name() == "#ff0000"


class RecordingPainter:
    def __init__(self):
        self.calls = []

    def strokePath(self, path, pen):
        self.calls.append("stroke")

    def fillPath(self, path, brush):
        self.calls.append("fill")


class TestTextGraphic:
    def test_box_is_natural_size(self, live, surface):
        eid = live.add_text("Hello")
        element = live.get_element(eid)
        box = surface.content_item(eid).box()
        assert (box.width(), box.height()) == (element.natural_width, element.natural_height)

    def test_right_alignment(self, qapp):
        style = TextStyle("Hi\nHello", text_align="right")
        item = TextGraphic(style, 120, 50)
        metrics = QFontMetricsF(item.font())
        for origin, line in zip(item.line_origins, ["Hi", "Hello"]):
            assert origin.x() + metrics.horizontalAdvance(line) == pytest.approx(120)

    def test_center_alignment(self, qapp):
        item = TextGraphic(TextStyle("Hi", text_align="center"), 120, 30)
        advance = QFontMetricsF(item.font()).horizontalAdvance("Hi")
        assert item.line_origins[0].x() == pytest.approx((120 - advance) / 2)

    def test_left_alignment(self, qapp):
        item = TextGraphic(TextStyle("Hi\nHello", text_align="left"), 120, 50)
        assert [o.x() for o in item.line_origins] == [0.0, 0.0]

    def test_line_height(self, qapp):
        style = TextStyle("A\nB\nC", font_size=20, line_height=1.5)
        item = TextGraphic(style, 40, 90)
        ys = [o.y() for o in item.line_origins]
        assert ys[1] - ys[0] == pytest.approx(30)
        assert ys[2] - ys[1] == pytest.approx(30)

    def test_stroke_painted_under_fill(self, live, surface):
        eid = live.add_text("Hello")
        live.update_property(eid, "outlineEnabled", True)
        painter = RecordingPainter()
        surface.content_item(eid).paint(painter, None)
        assert painter.calls == ["stroke", "fill"]

    def test_stored_stroke_not_painted_when_outline_off(self, live, surface):
        eid = live.add_text("Hello")
        live.update_property(eid, "strokeWidth", 3)
        painter = RecordingPainter()
        surface.content_item(eid).paint(painter, None)
        assert painter.calls == ["fill"]


class TestOverlay:
    def test_handles_for_active(self, live, surface):
        live.add_text("Hello")
        # selection outline + 4 corner handles + rotate knob
        assert len(surface.overlay_items) == 6

    def test_locked_has_outline_only(self, live, surface):
        eid = live.add_text("Hello")
        live.toggle_lock(eid)
        assert len(surface.overlay_items) == 1

    def test_nothing_selected(self, live, surface):
        live.add_text("Hello")
        live.clear_selection()
        assert surface.overlay_items == []


class TestLifecycle:
    def test_detach_clears_scene(self, live, surface):
        live.add_text("Hello")
        live.dispose()
        assert surface.scene.items() == []


class TestCanvasView:
    def test_view_maps_viewport(self, qapp, settings, area):
        s = DesignSession(settings=settings, measurer=FakeMeasurer())
        view = create_canvas(s)
        s.init()
        s.set_print_area(area)
        s.viewport.set_zoom(2.0)
        s.viewport.pan_x, s.viewport.pan_y = -100.0, -300.0
        view.sync_viewport()
        p = view.mapFromScene(QPointF(300, 400))
        assert (p.x(), p.y()) == (500, 500)
        s.dispose()

    def test_view_shows_surface_scene(self, qapp, settings, surface):
        s = DesignSession(settings=settings, measurer=FakeMeasurer(), surface=surface)
        view = CanvasView(s, surface)
        assert view.scene() is surface.scene
