"""
properties package

Property editing for the active element: the mutator every panel edits
through, and the read-only panel state derived from the active element.
"""

from properties.mutator import PropertyMutator
from properties.panels import ImagePanelState, PanelModel, TextPanelState, panel_state_for

__all__ = ["PropertyMutator", "ImagePanelState", "PanelModel", "TextPanelState", "panel_state_for"]
