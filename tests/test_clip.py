"""Tests for print-area clipping and alignment."""
from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models import PrintArea, Rect


class TestClipSync:
    def test_existing_elements_reclipped(self, session, area):
        a = session.add_text("A")
        b = session.add_text("B")
        assert session.get_element(a).clip is None
        session.set_print_area(area)
        assert session.get_element(a).clip == area.rect()
        assert session.get_element(b).clip == area.rect()

    def test_new_elements_get_current_clip(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("A")
        assert session.get_element(eid).clip == Rect(200, 250, 200, 300)

    def test_idempotent(self, session, area):
        session.add_text("A")
        session.add_text("B")
        session.set_print_area(area)
        once = [e.clip for e in session.store.elements]
        session.set_print_area(area)
        twice = [e.clip for e in session.store.elements]
        assert once == twice

    def test_second_area_replaces_first(self, session, area):
        session.set_print_area(area)
        ids = [session.add_text(t) for t in ("A", "B", "C")]
        g2 = PrintArea(50, 60, 80, 40)
        session.set_print_area(g2)
        for eid in ids:
            assert session.get_element(eid).clip == g2.rect()
        assert session.clip.clip_rect == g2.rect()

    def test_viewport_changes_leave_clip_alone(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("A")
        session.interaction.wheel(10, 10, -500)
        session.viewport.begin_pan(0, 0)
        session.viewport.pan_to(40, 70)
        assert session.get_element(eid).clip == area.rect()

    def test_geometry_edit_keeps_clip(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("A")
        session.update_property(eid, "x", 0)
        session.update_property(eid, "font_size", 80)
        assert session.get_element(eid).clip == area.rect()


class TestAlignObject:
    def test_center_middle_exact(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello world")
        session.update_property(eid, "angle", 33)
        session.update_property(eid, "scale_x", 2.5)
        session.update_property(eid, "x", 17)
        session.update_property(eid, "y", 901)
        session.viewport.set_zoom(2.7)
        assert session.align_object(eid, "center", "middle") is True
        e = session.get_element(eid)
        assert e.transform.x == 300
        assert e.transform.y == 400

    def test_left_top(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")  # 50 x 23.2
        session.align_object(eid, "left", "top")
        e = session.get_element(eid)
        assert e.transform.x == pytest.approx(225)
        assert e.transform.y == pytest.approx(250 + 11.6)

    def test_right_bottom(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        session.align_object(eid, "right", "bottom")
        e = session.get_element(eid)
        assert e.transform.x == pytest.approx(375)
        assert e.transform.y == pytest.approx(550 - 11.6)

    def test_zoom_corrected(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        session.viewport.set_zoom(2.0)
        session.align_object(eid, "left")
        assert session.get_element(eid).transform.x == pytest.approx(225)

    def test_rotation_uses_bounding_box(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        session.update_property(eid, "angle", 90)
        session.align_object(eid, "left")
        assert session.get_element(eid).transform.x == pytest.approx(200 + 11.6)

    def test_one_axis_only(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        session.update_property(eid, "y", 123)
        session.align_object(eid, horizontal="center")
        e = session.get_element(eid)
        assert (e.transform.x, e.transform.y) == (300, 123)

    def test_bad_target(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        with pytest.raises(ValueError):
            session.align_object(eid, "middle")
        with pytest.raises(ValueError):
            session.align_object(eid, None, "center")

    def test_missing_element(self, session, area):
        session.set_print_area(area)
        assert session.align_object("gone", "center", "middle") is False

    def test_no_print_area(self, session):
        eid = session.add_text("Hello")
        assert session.align_object(eid, "center", "middle") is False

    def test_notifies(self, session, area):
        session.set_print_area(area)
        eid = session.add_text("Hello")
        calls = []
        session.subscribe(lambda: calls.append(1))
        session.align_object(eid, "center")
        assert calls == [1]
