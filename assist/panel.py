"""
assist/panel.py

AI-assist panel model.

Suggested colors and fonts are applied to the active element through the
session's ``update_property``, exactly like a manual edit. The design check
reports three print-readiness statuses:

    margins     "ok" | "risk"   an element crosses the inner (safe) guide
    dpi         "ok" | "low"    an image prints below the minimum resolution
    contrast    "ok" | "low"    text fill is hard to read on the product color
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from models import DesignElement, ImageStyle, TextStyle
from settings import AssistSettings
from utils import contrast_ratio

if TYPE_CHECKING:
    from canvas.session import DesignSession

log = logging.getLogger(__name__)


class IssueKind:
    MARGIN = "margin"
    DPI = "dpi"
    CONTRAST = "contrast"


@dataclass(frozen=True)
class DesignIssue:
    """One design-check finding."""
    kind: str
    element_id: str
    message: str
    value: float = 0.0


@dataclass
class DesignCheck:
    """Result of ``AssistPanel.design_check``."""
    margins: str = "ok"
    dpi: str = "ok"
    contrast: str = "ok"
    issues: List[DesignIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def effective_dpi(element: DesignElement, reference_dpi: float) -> float:
    """Print resolution of an image at its current scale.

    At scale 1.0 one image pixel is one scene unit, printed at the reference
    DPI; enlarging an image spreads its pixels and lowers the DPI.
    """
    scale = max(abs(element.transform.scale_x), abs(element.transform.scale_y))
    if scale <= 0:
        return 0.0
    return reference_dpi / scale


class AssistPanel:
    """
    Suggestion and design-check model bound to a session.

    The panel re-pulls the active element on every change signal.
    """

    def __init__(self, session: "DesignSession", settings: Optional[AssistSettings] = None):
        self._session = session
        self._settings = settings or session.settings.assist
        self.active: Optional[DesignElement] = None
        self._unsubscribe = session.subscribe(self.refresh)
        self.refresh()

    @property
    def suggested_colors(self) -> List[str]:
        return list(self._settings.colors)

    @property
    def suggested_fonts(self) -> List[str]:
        return list(self._settings.fonts)

    def refresh(self) -> None:
        self.active = self._session.get_active_element()

    def close(self) -> None:
        self._unsubscribe()

    # ---- Suggestions ----

    def apply_color(self, color: str) -> bool:
        """Set the fill of the active text element. Returns False when no text is active."""
        if self.active is None or not isinstance(self.active.style, TextStyle):
            return False
        return self._session.update_property(self.active.id, "fill", color)

    def apply_font(self, font_family: str) -> bool:
        """Set the font of the active text element. Returns False when no text is active."""
        if self.active is None or not isinstance(self.active.style, TextStyle):
            return False
        return self._session.update_property(self.active.id, "font_family", font_family)

    # ---- Design check ----

    def design_check(self, product_color: str = "#ffffff") -> DesignCheck:
        """
        Check every visible element for print problems.

        Args:
            product_color: Color of the garment or product behind the design.

        Returns:
            DesignCheck with the three statuses and the individual issues.
        """
        s = self._settings
        result = DesignCheck()
        safe = self._session.get_safe_area()

        for element in self._session.get_elements():
            if not element.visible:
                continue
            if safe is not None and not safe.contains_rect(element.bounding_rect(), s.margin_tolerance):
                result.margins = "risk"
                result.issues.append(DesignIssue(
                    IssueKind.MARGIN, element.id, f"{element.display_name} crosses the safe area"))

            style = element.style
            if isinstance(style, ImageStyle):
                dpi = effective_dpi(element, s.reference_dpi)
                if dpi < s.min_dpi:
                    result.dpi = "low"
                    result.issues.append(DesignIssue(
                        IssueKind.DPI, element.id, f"{element.display_name} prints at {dpi:.0f} DPI", dpi))
            elif isinstance(style, TextStyle):
                try:
                    ratio = contrast_ratio(style.fill, product_color)
                except ValueError:
                    log.debug("Skipped contrast check for %s: unparseable color", element.id)
                    continue
                if ratio < s.min_contrast:
                    result.contrast = "low"
                    result.issues.append(DesignIssue(
                        IssueKind.CONTRAST, element.id,
                        f"{element.display_name} has contrast {ratio:.1f}:1", ratio))
        return result
