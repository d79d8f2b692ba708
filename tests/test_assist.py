"""Tests for AI-assist suggestions and the design check."""
from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from assist.panel import AssistPanel, IssueKind, effective_dpi


@pytest.fixture
def canvas(session, area):
    session.set_print_area(area)  # inner guide x 210..390, y 260..540
    return session


@pytest.fixture
def panel(canvas):
    p = AssistPanel(canvas)
    yield p
    p.close()


class TestSuggestions:
    def test_palettes_from_settings(self, panel):
        assert "#1a472a" in panel.suggested_colors
        assert "Inter" in panel.suggested_fonts

    def test_apply_color_goes_through_update_property(self, canvas, panel):
        eid = canvas.add_text("Hello")
        calls = []
        canvas.subscribe(lambda: calls.append(1))
        assert panel.apply_color("#f59e0b") is True
        assert canvas.get_element(eid).style.fill == "#f59e0b"
        assert calls == [1]

    def test_apply_font_remeasures(self, canvas, panel, measurer):
        eid = canvas.add_text("Hello")
        before = measurer.calls
        assert panel.apply_font("Oswald") is True
        assert canvas.get_element(eid).style.font_family == "Oswald"
        assert measurer.calls == before + 1

    def test_tracks_active_element(self, canvas, panel):
        assert panel.active is None
        eid = canvas.add_text("Hello")
        assert panel.active.id == eid
        canvas.clear_selection()
        assert panel.active is None

    def test_nothing_active(self, panel):
        assert panel.apply_color("#000") is False
        assert panel.apply_font("Inter") is False

    def test_image_active(self, canvas, panel, png_path):
        canvas.add_image(png_path)
        assert panel.apply_color("#000") is False

    def test_close_unsubscribes(self, canvas):
        p = AssistPanel(canvas)
        p.close()
        canvas.add_text("Hello")
        assert p.active is None


class TestDesignCheck:
    def test_clean_design(self, canvas, panel, png_path):
        canvas.add_text("Hello")
        results = []
        canvas.add_image(png_path, on_result=results.append)
        canvas.update_property(results[0].element_id, "width", 100)  # box x 250..350, 600 DPI
        result = panel.design_check("#ffffff")
        assert result.ok
        assert (result.margins, result.dpi, result.contrast) == ("ok", "ok", "ok")

    def test_margin_risk(self, canvas, panel):
        eid = canvas.add_text("Hello")
        canvas.update_property(eid, "x", 205)
        result = panel.design_check()
        assert result.margins == "risk"
        assert [i.kind for i in result.issues] == [IssueKind.MARGIN]
        assert result.issues[0].element_id == eid

    def test_hidden_elements_ignored(self, canvas, panel):
        eid = canvas.add_text("Hello")
        canvas.update_property(eid, "x", 0)
        canvas.toggle_visibility(eid)
        assert panel.design_check().ok

    def test_low_dpi(self, canvas, panel, png_path):
        results = []
        canvas.add_image(png_path, on_result=results.append)
        eid = results[0].element_id
        canvas.update_property(eid, "width", 800)  # scale 2: 150 DPI, still acceptable
        assert panel.design_check().dpi == "ok"
        canvas.update_property(eid, "scale_x", 3)
        result = panel.design_check()
        assert result.dpi == "low"
        assert result.issues[-1].value == pytest.approx(100)

    def test_low_contrast(self, canvas, panel):
        canvas.add_text("Hello", {"fill": "#f8f8f8"})
        result = panel.design_check("#ffffff")
        assert result.contrast == "low"
        assert panel.design_check("#000000").contrast == "ok"

    def test_named_color_contrast(self, canvas, panel):
        canvas.add_text("Hello", {"fill": "white"})
        assert panel.design_check("#ffffff").contrast == "low"
        assert panel.design_check("black").contrast == "ok"

    def test_unknown_color_skipped(self, canvas, panel):
        canvas.add_text("Hello", {"fill": "not-a-color"})
        assert panel.design_check("#ffffff").contrast == "ok"

    def test_effective_dpi(self, canvas, png_path):
        results = []
        canvas.add_image(png_path, on_result=results.append)
        element = canvas.get_element(results[0].element_id)
        assert effective_dpi(element, 300) == pytest.approx(600)
