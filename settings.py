"""
settings.py

Persistent settings management for PrintCanvas.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/printcanvas/settings.toml
    - macOS: ~/Library/Application Support/printcanvas/settings.toml
    - Linux: ~/.config/printcanvas/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "printcanvas"

log = logging.getLogger(__name__)

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasZoomSettings:
    """Viewport zoom settings.

    Defaults:
        min_zoom: 1.0
        max_zoom: 3.0
        wheel_decay: 0.999
    """
    min_zoom: float = 1.0       # Default: 1.0 (100%)
    max_zoom: float = 3.0       # Default: 3.0 (300%)
    wheel_decay: float = 0.999  # Default: 0.999 per wheel delta unit


@dataclass
class CanvasHandleSettings:
    """Transform handle settings (screen pixels).

    Defaults:
        size: 8.0
        hit_distance: 6.0
        rotate_offset: 30.0
        border_color: "#0078D7"
        fill_color: "#FFFFFF"
    """
    size: float = 8.0                 # Default: 8.0 pixels
    hit_distance: float = 6.0         # Default: 6.0 pixels
    rotate_offset: float = 30.0       # Default: 30.0 pixels above the top edge
    border_color: str = "#0078D7"     # Default: blue
    fill_color: str = "#FFFFFF"       # Default: white


@dataclass
class CanvasGuideSettings:
    """Print-area guide rectangle settings.

    Defaults:
        outer_color: "#194236"
        inner_color: "#9AA0A6"
        inner_inset: 10.0
        line_width: 1.0
        dash_length: 6.0
        dash_gap: 4.0
    """
    outer_color: str = "#194236"   # Default: dark green
    inner_color: str = "#9AA0A6"   # Default: gray
    inner_inset: float = 10.0      # Default: 10.0 scene units inside the outer guide
    line_width: float = 1.0        # Default: 1.0 pixel
    dash_length: float = 6.0       # Default: 6.0 pixels
    dash_gap: float = 4.0          # Default: 4.0 pixels


@dataclass
class CanvasSelectionSettings:
    """Selection and gesture settings.

    Defaults:
        outline_color: "#0078D7"
        marquee_min_size: 2.0
        pan_button: "middle"
    """
    outline_color: str = "#0078D7"   # Default: blue
    marquee_min_size: float = 2.0    # Default: 2.0 pixels; smaller drags select nothing
    pan_button: str = "middle"       # Default: "middle" (left | middle | right)


@dataclass
class CanvasZOrderSettings:
    """Z-order layering settings for the render surface.

    Defaults:
        base: 1000
        step: 10
    """
    base: int = 1000  # Default: 1000
    step: int = 10    # Default: 10


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    guides: CanvasGuideSettings = field(default_factory=CanvasGuideSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)
    zorder: CanvasZOrderSettings = field(default_factory=CanvasZOrderSettings)


# =============================================================================
# Default Element Settings
# =============================================================================

@dataclass
class DefaultTextSettings:
    """Default styling for newly added text elements.

    Defaults:
        font_family: "Inter"
        font_size: 20
        fill: "#000000"
        align: "center"
        line_height: 1.16
        outline_color: "#000000"
        outline_width: 1.0
        shadow_color: "rgba(0,0,0,0.3)"
    """
    font_family: str = "Inter"               # Default: "Inter"
    font_size: float = 20                    # Default: 20 pixels
    fill: str = "#000000"                    # Default: black
    align: str = "center"                    # Default: "center"
    line_height: float = 1.16                # Default: 1.16 em
    outline_color: str = "#000000"           # Default: black
    outline_width: float = 1.0               # Default: 1.0 pixel
    shadow_color: str = "rgba(0,0,0,0.3)"    # Default: translucent black


@dataclass
class DefaultImageSettings:
    """Default placement for newly added images.

    Defaults:
        max_initial_width: 200.0
    """
    max_initial_width: float = 200.0  # Default: 200.0; wider images are scaled down


@dataclass
class DefaultSettings:
    """Defaults for new elements."""
    text: DefaultTextSettings = field(default_factory=DefaultTextSettings)
    image: DefaultImageSettings = field(default_factory=DefaultImageSettings)


# =============================================================================
# Assist Settings
# =============================================================================

@dataclass
class AssistSettings:
    """Design assistant settings.

    Defaults:
        colors: ["#1a472a", "#e2e8f0", "#1e293b", "#f59e0b"]
        fonts: ["Inter", "Roboto", "Montserrat", "Playfair Display", "Oswald", "Pacifico"]
        reference_dpi: 300
        min_dpi: 150
        min_contrast: 3.0
        margin_tolerance: 0.0
    """
    colors: List[str] = field(default_factory=lambda: ["#1a472a", "#e2e8f0", "#1e293b", "#f59e0b"])
    fonts: List[str] = field(default_factory=lambda: [
        "Inter", "Roboto", "Montserrat", "Playfair Display", "Oswald", "Pacifico",
    ])
    reference_dpi: float = 300.0   # Default: 300 (pixels per inch at scale 1.0)
    min_dpi: float = 150.0         # Default: 150; below this an image is "low"
    min_contrast: float = 3.0      # Default: 3.0 (WCAG large-text ratio)
    margin_tolerance: float = 0.0  # Default: 0.0 scene units past the inner guide


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        canvas: Canvas-related settings.
        defaults: Defaults for new text and image elements.
        assist: Design assistant settings.
    """
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    defaults: DefaultSettings = field(default_factory=DefaultSettings)
    assist: AssistSettings = field(default_factory=AssistSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
    """

    def __init__(self, app_name: str = APP_NAME):
        self.settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            log.warning("Ignoring unreadable settings file %s", self.settings_file, exc_info=True)
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # Canvas section
        canvas = data.get("canvas", {})
        if "zoom" in canvas:
            zm = canvas["zoom"]
            settings.canvas.zoom.min_zoom = zm.get("min_zoom", settings.canvas.zoom.min_zoom)
            settings.canvas.zoom.max_zoom = zm.get("max_zoom", settings.canvas.zoom.max_zoom)
            settings.canvas.zoom.wheel_decay = zm.get("wheel_decay", settings.canvas.zoom.wheel_decay)
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.size = h.get("size", settings.canvas.handles.size)
            settings.canvas.handles.hit_distance = h.get("hit_distance", settings.canvas.handles.hit_distance)
            settings.canvas.handles.rotate_offset = h.get("rotate_offset", settings.canvas.handles.rotate_offset)
            settings.canvas.handles.border_color = h.get("border_color", settings.canvas.handles.border_color)
            settings.canvas.handles.fill_color = h.get("fill_color", settings.canvas.handles.fill_color)
        if "guides" in canvas:
            g = canvas["guides"]
            settings.canvas.guides.outer_color = g.get("outer_color", settings.canvas.guides.outer_color)
            settings.canvas.guides.inner_color = g.get("inner_color", settings.canvas.guides.inner_color)
            settings.canvas.guides.inner_inset = g.get("inner_inset", settings.canvas.guides.inner_inset)
            settings.canvas.guides.line_width = g.get("line_width", settings.canvas.guides.line_width)
            settings.canvas.guides.dash_length = g.get("dash_length", settings.canvas.guides.dash_length)
            settings.canvas.guides.dash_gap = g.get("dash_gap", settings.canvas.guides.dash_gap)
        if "selection" in canvas:
            sel = canvas["selection"]
            settings.canvas.selection.outline_color = sel.get("outline_color", settings.canvas.selection.outline_color)
            settings.canvas.selection.marquee_min_size = sel.get("marquee_min_size", settings.canvas.selection.marquee_min_size)
            settings.canvas.selection.pan_button = sel.get("pan_button", settings.canvas.selection.pan_button)
        if "zorder" in canvas:
            z = canvas["zorder"]
            settings.canvas.zorder.base = z.get("base", settings.canvas.zorder.base)
            settings.canvas.zorder.step = z.get("step", settings.canvas.zorder.step)

        # Defaults section
        defaults = data.get("defaults", {})
        if "text" in defaults:
            t = defaults["text"]
            settings.defaults.text.font_family = t.get("font_family", settings.defaults.text.font_family)
            settings.defaults.text.font_size = t.get("font_size", settings.defaults.text.font_size)
            settings.defaults.text.fill = t.get("fill", settings.defaults.text.fill)
            settings.defaults.text.align = t.get("align", settings.defaults.text.align)
            settings.defaults.text.line_height = t.get("line_height", settings.defaults.text.line_height)
            settings.defaults.text.outline_color = t.get("outline_color", settings.defaults.text.outline_color)
            settings.defaults.text.outline_width = t.get("outline_width", settings.defaults.text.outline_width)
            settings.defaults.text.shadow_color = t.get("shadow_color", settings.defaults.text.shadow_color)
        if "image" in defaults:
            i = defaults["image"]
            settings.defaults.image.max_initial_width = i.get("max_initial_width", settings.defaults.image.max_initial_width)

        # Assist section
        assist = data.get("assist", {})
        settings.assist.colors = assist.get("colors", settings.assist.colors)
        settings.assist.fonts = assist.get("fonts", settings.assist.fonts)
        settings.assist.reference_dpi = assist.get("reference_dpi", settings.assist.reference_dpi)
        settings.assist.min_dpi = assist.get("min_dpi", settings.assist.min_dpi)
        settings.assist.min_contrast = assist.get("min_contrast", settings.assist.min_contrast)
        settings.assist.margin_tolerance = assist.get("margin_tolerance", settings.assist.margin_tolerance)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "canvas": {
                "zoom": {
                    "min_zoom": s.canvas.zoom.min_zoom,
                    "max_zoom": s.canvas.zoom.max_zoom,
                    "wheel_decay": s.canvas.zoom.wheel_decay,
                },
                "handles": {
                    "size": s.canvas.handles.size,
                    "hit_distance": s.canvas.handles.hit_distance,
                    "rotate_offset": s.canvas.handles.rotate_offset,
                    "border_color": s.canvas.handles.border_color,
                    "fill_color": s.canvas.handles.fill_color,
                },
                "guides": {
                    "outer_color": s.canvas.guides.outer_color,
                    "inner_color": s.canvas.guides.inner_color,
                    "inner_inset": s.canvas.guides.inner_inset,
                    "line_width": s.canvas.guides.line_width,
                    "dash_length": s.canvas.guides.dash_length,
                    "dash_gap": s.canvas.guides.dash_gap,
                },
                "selection": {
                    "outline_color": s.canvas.selection.outline_color,
                    "marquee_min_size": s.canvas.selection.marquee_min_size,
                    "pan_button": s.canvas.selection.pan_button,
                },
                "zorder": {
                    "base": s.canvas.zorder.base,
                    "step": s.canvas.zorder.step,
                },
            },
            "defaults": {
                "text": {
                    "font_family": s.defaults.text.font_family,
                    "font_size": s.defaults.text.font_size,
                    "fill": s.defaults.text.fill,
                    "align": s.defaults.text.align,
                    "line_height": s.defaults.text.line_height,
                    "outline_color": s.defaults.text.outline_color,
                    "outline_width": s.defaults.text.outline_width,
                    "shadow_color": s.defaults.text.shadow_color,
                },
                "image": {
                    "max_initial_width": s.defaults.image.max_initial_width,
                },
            },
            "assist": {
                "colors": list(s.assist.colors),
                "fonts": list(s.assist.fonts),
                "reference_dpi": s.assist.reference_dpi,
                "min_dpi": s.assist.min_dpi,
                "min_contrast": s.assist.min_contrast,
                "margin_tolerance": s.assist.margin_tolerance,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
