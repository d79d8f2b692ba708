"""
canvas/surface.py

Qt render surface: materializes the session's element records into a
QGraphicsScene.

The scene is rebuilt from the records on every render; items are never the
source of truth. Each element sits inside a clipping container whose
rectangle is the element's clip region, so content outside the print area
is not painted.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import (
    QBrush,
    QColor,
    QFont,
    QFontMetricsF,
    QPainter,
    QPainterPath,
    QPen,
    QPixmap,
    QPolygonF,
    QTransform,
)
from PyQt6.QtWidgets import (
    QGraphicsDropShadowEffect,
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsPixmapItem,
    QGraphicsPolygonItem,
    QGraphicsRectItem,
    QGraphicsScene,
)

from PIL.ImageQt import ImageQt

from models import DesignElement, GuideRect, ImageStyle, Rect, TextStyle
from settings import AppSettings
from canvas.interaction import CORNER_SIGNS
from utils import css_to_qcolor, rotate_point

log = logging.getLogger(__name__)

BACKGROUND_Z = -1000


def _qrect(r: Rect) -> QRectF:
    return QRectF(r.left, r.top, r.width, r.height)


def _cosmetic_pen(color: QColor, width: float = 1.0) -> QPen:
    pen = QPen(color, width)
    pen.setCosmetic(True)
    return pen


def _corners(element: DesignElement) -> List[QPointF]:
    """Rotated box corners of an element in scene coordinates, clockwise from top-left."""
    w, h = element.scaled_size
    t = element.transform
    points = []
    for lx, ly in ((-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)):
        rx, ry = rotate_point(lx, ly, t.angle)
        points.append(QPointF(t.x + rx, t.y + ry))
    return points


def _text_font(style: TextStyle) -> QFont:
    font = QFont(style.font_family)
    font.setPixelSize(max(1, int(round(style.font_size))))
    font.setBold(style.font_weight == "bold")
    font.setItalic(style.font_style == "italic")
    font.setLetterSpacing(QFont.SpacingType.AbsoluteSpacing, style.char_spacing / 1000.0 * style.font_size)
    return font


class TextGraphic(QGraphicsItem):
    """
    Text laid out inside the element's measured box.

    The box (``box()``) is the element's natural size, so the drawn text and
    the hit-tested box share one rectangle. Each line is aligned within the
    box width and advances by ``font_size * line_height``. The outline is
    stroked before the fill, leaving the glyph interiors in the fill color.
    """

    def __init__(self, style: TextStyle, width: float, height: float, parent: Optional[QGraphicsItem] = None):
        super().__init__(parent)
        self._box = QRectF(0, 0, width, height)
        self._font = _text_font(style)
        self._pen = QPen(Qt.PenStyle.NoPen)
        self._brush = QBrush(Qt.BrushStyle.NoBrush)
        self._origins: List[QPointF] = []
        self._path = self._layout(style)

    def _layout(self, style: TextStyle) -> QPainterPath:
        path = QPainterPath()
        metrics = QFontMetricsF(self._font)
        line_height = style.font_size * style.line_height
        # Glyphs sit vertically centered in their line box
        lead = (line_height - (metrics.ascent() + metrics.descent())) / 2.0
        for i, line in enumerate(style.content.split("\n")):
            advance = metrics.horizontalAdvance(line)
            if style.text_align == "right":
                x = self._box.width() - advance
            elif style.text_align == "center":
                x = (self._box.width() - advance) / 2.0
            else:
                x = 0.0
            baseline = i * line_height + lead + metrics.ascent()
            self._origins.append(QPointF(x, baseline))
            path.addText(x, baseline, self._font, line)
            if style.underline and line:
                thickness = max(1.0, metrics.lineWidth())
                path.addRect(QRectF(x, baseline + metrics.underlinePos(), advance, thickness))
        return path

    # ---- Accessors ----

    def box(self) -> QRectF:
        return QRectF(self._box)

    def font(self) -> QFont:
        return QFont(self._font)

    def path(self) -> QPainterPath:
        return QPainterPath(self._path)

    @property
    def line_origins(self) -> List[QPointF]:
        """Left end of each line's baseline, in item coordinates."""
        return list(self._origins)

    def pen(self) -> QPen:
        return QPen(self._pen)

    def setPen(self, pen: QPen):
        self.prepareGeometryChange()
        self._pen = QPen(pen)
        self.update()

    def brush(self) -> QBrush:
        return QBrush(self._brush)

    def setBrush(self, brush: QBrush):
        self._brush = QBrush(brush)
        self.update()

    # ---- QGraphicsItem ----

    def boundingRect(self) -> QRectF:
        margin = self._pen.widthF() / 2.0 if self._pen.style() != Qt.PenStyle.NoPen else 0.0
        return self._box.united(self._path.boundingRect()).adjusted(-margin, -margin, margin, margin)

    def paint(self, painter: QPainter, option, widget=None):
        if self._pen.style() != Qt.PenStyle.NoPen:
            painter.strokePath(self._path, self._pen)
        painter.fillPath(self._path, self._brush)


class QtSceneSurface:
    """
    Render surface backed by a QGraphicsScene.

    Z-values:
        background  -1000
        guides      base, base + step
        elements    base + (guide count + index) * step
        overlay     above every element
    """

    def __init__(self, scene: Optional[QGraphicsScene] = None, settings: Optional[AppSettings] = None):
        self.scene = scene if scene is not None else QGraphicsScene()
        self._settings = settings
        self._session = None
        self._pixmaps: Dict[str, QPixmap] = {}
        self._guide_items: Dict[str, QGraphicsRectItem] = {}
        self._containers: Dict[str, QGraphicsRectItem] = {}
        self._content: Dict[str, QGraphicsItem] = {}
        self._overlay: List[QGraphicsItem] = []
        self._background_item: Optional[QGraphicsPixmapItem] = None
        self._on_rendered: Optional[Callable[[], None]] = None

    def set_rendered_callback(self, callback: Optional[Callable[[], None]]):
        """Set callback run after every render (used by the view to sync its transform)."""
        self._on_rendered = callback

    # ---- Surface protocol ----

    def attach(self, session) -> None:
        self._session = session
        if self._settings is None:
            self._settings = session.settings
        self.render()

    def detach(self) -> None:
        self._session = None
        self._reset()
        self._pixmaps.clear()

    def render(self) -> None:
        """Rebuild the scene from the session's records."""
        session = self._session
        if session is None or not session.is_live:
            return
        self._reset()
        store = session.store
        zorder = self._settings.canvas.zorder

        self._render_background(session)
        for i, guide in enumerate(store.guides):
            self._render_guide(guide, zorder.base + i * zorder.step)
        for i, element in enumerate(store.elements):
            self._render_element(session, element, zorder.base + (store.system_count + i) * zorder.step)
        overlay_z = zorder.base + (store.system_count + len(store) + 1) * zorder.step
        self._render_overlay(session, overlay_z)

        if self._on_rendered:
            self._on_rendered()

    # ---- Item access ----

    def guide_item(self, guide_id: str) -> Optional[QGraphicsRectItem]:
        return self._guide_items.get(guide_id)

    def container_item(self, element_id: str) -> Optional[QGraphicsRectItem]:
        return self._containers.get(element_id)

    def content_item(self, element_id: str) -> Optional[QGraphicsItem]:
        return self._content.get(element_id)

    @property
    def overlay_items(self) -> List[QGraphicsItem]:
        return list(self._overlay)

    @property
    def background_item(self) -> Optional[QGraphicsPixmapItem]:
        return self._background_item

    # ---- Building ----

    def _reset(self) -> None:
        self.scene.clear()
        self._guide_items = {}
        self._containers = {}
        self._content = {}
        self._overlay = []
        self._background_item = None

    def _pixmap(self, session, source: str) -> Optional[QPixmap]:
        pm = self._pixmaps.get(source)
        if pm is None:
            image = session.image_for(source)
            if image is None:
                return None
            pm = QPixmap.fromImage(ImageQt(image))
            self._pixmaps[source] = pm
        return pm

    def _render_background(self, session) -> None:
        background = session.store.background
        if background is None:
            return
        pm = self._pixmap(session, background.source)
        if pm is None:
            return
        item = QGraphicsPixmapItem(pm)
        item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        item.setScale(background.scale)
        item.setZValue(BACKGROUND_Z)
        self.scene.addItem(item)
        self._background_item = item

    def _render_guide(self, guide: GuideRect, z: float) -> None:
        g = self._settings.canvas.guides
        color = QColor(g.inner_color if guide.dashed else g.outer_color)
        pen = _cosmetic_pen(color, g.line_width)
        if guide.dashed:
            # Qt dash patterns are in units of the pen width
            lw = g.line_width if g.line_width > 0 else 1.0
            pen.setStyle(Qt.PenStyle.CustomDashLine)
            pen.setDashPattern([g.dash_length / lw, g.dash_gap / lw])
        item = QGraphicsRectItem(_qrect(guide.rect))
        item.setPen(pen)
        item.setBrush(QBrush(Qt.BrushStyle.NoBrush))
        item.setZValue(z)
        self.scene.addItem(item)
        self._guide_items[guide.id] = item

    def _render_element(self, session, element: DesignElement, z: float) -> None:
        container = QGraphicsRectItem()
        container.setPen(QPen(Qt.PenStyle.NoPen))
        container.setBrush(QBrush(Qt.BrushStyle.NoBrush))
        if element.clip is not None:
            container.setRect(_qrect(element.clip))
            container.setFlag(QGraphicsItem.GraphicsItemFlag.ItemClipsChildrenToShape, True)
        container.setZValue(z)
        container.setVisible(element.visible)
        self.scene.addItem(container)

        style = element.style
        if isinstance(style, TextStyle):
            content = self._text_item(element, style)
            flip_x = flip_y = False
        elif isinstance(style, ImageStyle):
            content = self._image_item(session, element, style)
            flip_x, flip_y = style.flip_x, style.flip_y
        else:
            raise TypeError(f"Unknown element style {type(style).__name__}")

        content.setParentItem(container)
        t = element.transform
        transform = QTransform()
        transform.translate(t.x, t.y)
        transform.rotate(t.angle)
        transform.scale(t.scale_x * (-1 if flip_x else 1), t.scale_y * (-1 if flip_y else 1))
        # Content is drawn in a natural-size box centered on the element position
        transform.translate(-element.natural_width / 2.0, -element.natural_height / 2.0)
        content.setTransform(transform)

        self._containers[element.id] = container
        self._content[element.id] = content

    def _text_item(self, element: DesignElement, style: TextStyle) -> TextGraphic:
        item = TextGraphic(style, element.natural_width, element.natural_height)
        item.setBrush(QBrush(css_to_qcolor(style.fill, QColor(0, 0, 0))))

        stroke_width = style.effective_stroke_width
        if stroke_width > 0:
            item.setPen(QPen(css_to_qcolor(style.stroke.color, QColor(0, 0, 0)), stroke_width))
        else:
            item.setPen(QPen(Qt.PenStyle.NoPen))

        if style.shadow is not None:
            effect = QGraphicsDropShadowEffect()
            effect.setColor(css_to_qcolor(style.shadow.color, QColor(0, 0, 0, 76)))
            effect.setBlurRadius(style.shadow.blur)
            effect.setOffset(style.shadow.offset_x, style.shadow.offset_y)
            item.setGraphicsEffect(effect)
        return item

    def _image_item(self, session, element: DesignElement, style: ImageStyle) -> QGraphicsItem:
        pm = self._pixmap(session, style.source)
        if pm is None:
            # Pixels not in this session (inserted directly into the store)
            placeholder = QGraphicsRectItem(QRectF(0, 0, element.natural_width, element.natural_height))
            placeholder.setPen(_cosmetic_pen(QColor("#9AA0A6")))
            placeholder.setBrush(QBrush(QColor(240, 240, 240)))
            return placeholder
        item = QGraphicsPixmapItem(pm)
        item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        return item

    def _render_overlay(self, session, z: float) -> None:
        c = self._settings.canvas
        store = session.store
        zoom = session.viewport.zoom

        outline_pen = _cosmetic_pen(QColor(c.selection.outline_color))
        outline_pen.setStyle(Qt.PenStyle.DashLine)
        for element_id in store.selection.ids:
            element = store.get(element_id)
            if element is None or not element.visible:
                continue
            outline = QGraphicsPolygonItem(QPolygonF(_corners(element)))
            outline.setPen(outline_pen)
            self._add_overlay(outline, z)

        active = store.get(store.selection.active) if store.selection.active else None
        if active is not None and active.visible and not active.locked:
            self._render_handles(active, zoom, z)

        marquee = session.interaction.marquee_rect
        if marquee is not None:
            left, top = session.viewport.to_scene(marquee.left, marquee.top)
            item = QGraphicsRectItem(QRectF(left, top, marquee.width / zoom, marquee.height / zoom))
            color = QColor(c.selection.outline_color)
            item.setPen(_cosmetic_pen(color))
            color.setAlpha(40)
            item.setBrush(QBrush(color))
            self._add_overlay(item, z)

    def _render_handles(self, element: DesignElement, zoom: float, z: float) -> None:
        h = self._settings.canvas.handles
        size = h.size / zoom
        half = size / 2.0
        pen = _cosmetic_pen(QColor(h.border_color))
        brush = QBrush(QColor(h.fill_color))
        w, ht = element.scaled_size
        t = element.transform

        for gx, gy in CORNER_SIGNS.values():
            rx, ry = rotate_point(gx * w / 2.0, gy * ht / 2.0, t.angle)
            handle = QGraphicsRectItem(QRectF(t.x + rx - half, t.y + ry - half, size, size))
            handle.setPen(pen)
            handle.setBrush(brush)
            self._add_overlay(handle, z)

        rx, ry = rotate_point(0.0, -ht / 2.0 - h.rotate_offset / zoom, t.angle)
        knob = QGraphicsEllipseItem(QRectF(t.x + rx - half, t.y + ry - half, size, size))
        knob.setPen(pen)
        knob.setBrush(brush)
        self._add_overlay(knob, z)

    def _add_overlay(self, item: QGraphicsItem, z: float) -> None:
        item.setZValue(z)
        self.scene.addItem(item)
        self._overlay.append(item)
