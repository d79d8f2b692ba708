"""Tests for panel state derivation and the pull-based panel model."""
from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from properties.panels import ImagePanelState, PanelModel, TextPanelState, panel_state_for


class TestPanelState:
    def test_none(self):
        assert panel_state_for(None) is None

    def test_text(self, session):
        eid = session.add_text("Hello", {"fill": "#ff0000"})
        session.update_property(eid, "shadow", {"blur": 3})
        state = panel_state_for(session.get_active_element())
        assert isinstance(state, TextPanelState)
        assert state.content == "Hello"
        assert state.fill == "#ff0000"
        assert state.outline_enabled is False
        assert state.shadow_enabled is True
        assert state.shadow["blur"] == 3

    def test_image(self, session, png_path):
        session.add_image(png_path)
        state = panel_state_for(session.get_active_element())
        assert isinstance(state, ImagePanelState)
        assert (state.width, state.height) == (200, 100)
        assert state.flip_x is False


class TestPanelModel:
    def test_follows_active_element(self, session):
        seen = []
        model = PanelModel(session, on_state=seen.append)
        assert model.state is None
        eid = session.add_text("Hello")
        assert model.state.id == eid
        session.update_property(eid, "fontSize", 30)
        assert model.state.font_size == 30
        session.clear_selection()
        assert model.state is None
        assert [s is None for s in seen] == [False, False, True]
        model.close()

    def test_skips_pull_when_version_unchanged(self, session):
        model = PanelModel(session)
        pulls = model.pulls
        model.refresh()
        model.refresh()
        assert model.pulls == pulls
        session.add_text("x")
        assert model.pulls == pulls + 1
        model.close()

    def test_update_edits_active(self, session):
        model = PanelModel(session)
        eid = session.add_text("Hello")
        assert model.update("fill", "#00ff00") is True
        assert session.get_element(eid).style.fill == "#00ff00"
        model.close()

    def test_update_without_active(self, session):
        model = PanelModel(session)
        assert model.update("fill", "#00ff00") is False
        model.close()

    def test_close(self, session):
        model = PanelModel(session)
        model.close()
        session.add_text("x")
        assert model.state is None
