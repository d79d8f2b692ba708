"""
properties/panels.py

Panel state derived from the active element.

Property panels hold no element state of their own. On every change
signal they re-pull a snapshot from the session; ``PanelModel`` does that
pull and skips it when the session version has not moved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from models import DesignElement, ImageStyle, TextStyle

if TYPE_CHECKING:
    from canvas.session import DesignSession

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextPanelState:
    """Everything the text panel shows for the active text element."""
    id: str
    content: str
    font_family: str
    font_size: float
    fill: str
    text_align: str
    font_weight: str
    font_style: str
    underline: bool
    char_spacing: float
    line_height: float
    stroke: str
    stroke_width: float
    outline_enabled: bool
    shadow: Optional[Dict[str, Any]]
    shadow_enabled: bool
    angle: float
    locked: bool


@dataclass(frozen=True)
class ImagePanelState:
    """Everything the image panel shows for the active image element."""
    id: str
    angle: float
    width: float
    height: float
    scale_x: float
    scale_y: float
    flip_x: bool
    flip_y: bool
    locked: bool


PanelState = Union[TextPanelState, ImagePanelState]


def text_panel_state(element: DesignElement) -> TextPanelState:
    style = element.style
    if not isinstance(style, TextStyle):
        raise ValueError(f"{element.id} is not a text element")
    return TextPanelState(
        id=element.id,
        content=style.content,
        font_family=style.font_family,
        font_size=style.font_size,
        fill=style.fill,
        text_align=style.text_align,
        font_weight=style.font_weight,
        font_style=style.font_style,
        underline=style.underline,
        char_spacing=style.char_spacing,
        line_height=style.line_height,
        stroke=style.stroke.color,
        stroke_width=style.stroke.width,
        outline_enabled=style.outline_enabled,
        shadow=style.shadow.to_dict() if style.shadow else None,
        shadow_enabled=style.shadow is not None,
        angle=element.transform.angle,
        locked=element.locked,
    )


def image_panel_state(element: DesignElement) -> ImagePanelState:
    style = element.style
    if not isinstance(style, ImageStyle):
        raise ValueError(f"{element.id} is not an image element")
    width, height = element.scaled_size
    return ImagePanelState(
        id=element.id,
        angle=element.transform.angle,
        width=round(width, 2),
        height=round(height, 2),
        scale_x=element.transform.scale_x,
        scale_y=element.transform.scale_y,
        flip_x=style.flip_x,
        flip_y=style.flip_y,
        locked=element.locked,
    )


def panel_state_for(element: Optional[DesignElement]) -> Optional[PanelState]:
    """Panel state for an element, or None when nothing is active."""
    if element is None:
        return None
    if isinstance(element.style, TextStyle):
        return text_panel_state(element)
    if isinstance(element.style, ImageStyle):
        return image_panel_state(element)
    raise TypeError(f"Unknown element style {type(element.style).__name__}")


class PanelModel:
    """
    Subscribes to a session and keeps the active element's panel state.

    Args:
        session: A live design session.
        on_state: Optional callback run with the new state after each re-pull
            that produced a different state.
    """

    def __init__(self, session: "DesignSession", on_state: Optional[Callable[[Optional[PanelState]], None]] = None):
        self._session = session
        self._on_state = on_state
        self._seen_version = -1
        self.state: Optional[PanelState] = None
        self.pulls = 0
        self._unsubscribe = session.subscribe(self.refresh)
        self.refresh()

    def refresh(self) -> None:
        """Re-pull the active element's state unless already current."""
        version = self._session.version
        if version == self._seen_version:
            return
        self._seen_version = version
        self.pulls += 1
        state = panel_state_for(self._session.get_active_element())
        if state != self.state:
            self.state = state
            if self._on_state:
                self._on_state(state)

    def update(self, key: str, value: Any) -> bool:
        """Edit the active element through the session's update_property."""
        if self.state is None:
            return False
        return self._session.update_property(self.state.id, key, value)

    def close(self) -> None:
        self._unsubscribe()
