"""
Paginated PDF rendering of a template layout.

Components are drawn top to bottom against a ReportLab canvas. A single
``Cursor`` tracks the vertical offset and page count; ``ensure_space`` is the
only place a page break happens. Every primitive drawn for a component is also
recorded as a ``DrawOp`` so a render can be inspected without parsing the PDF.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .. import config
from ..config import load_style_preset
from .bindings import apply_bindings
from .content import cell_text, image_source, list_item_text, table_rows
from .schema import BaseComponent, Box, Chips, Heading, Image, ListComponent, Spacer, Style, Table
from .visibility import is_visible


logger = logging.getLogger(__name__)


def _hex(value: Optional[str], default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except Exception:
        return default


def _s(style: dict, key: str, default):
    return style.get(key, default)


@dataclass(frozen=True)
class PageGeometry:
    width: float = config.PAGE_WIDTH
    height: float = config.PAGE_HEIGHT
    margin: float = config.PAGE_MARGIN

    @property
    def top(self) -> float:
        return self.height - self.margin

    @property
    def left(self) -> float:
        return self.margin

    @property
    def right(self) -> float:
        return self.width - self.margin

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.height - 2 * self.margin


@dataclass
class Cursor:
    y: float
    page_count: int = 1


@dataclass(frozen=True)
class DrawOp:
    kind: str
    page: int
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: str = ""
    font: str = ""
    size: float = 0.0
    role: str = ""


@dataclass
class RenderedPdf:
    content: bytes
    ops: List[DrawOp] = field(default_factory=list)
    page_count: int = 1

    def ops_with_role(self, role: str) -> List[DrawOp]:
        return [op for op in self.ops if op.role == role]


PageHook = Callable[[canvas.Canvas, int, PageGeometry, str], None]


def draw_page_frame(
    canv: canvas.Canvas,
    page_number: int,
    geometry: PageGeometry,
    title: str,
    style: Optional[dict] = None,
) -> None:
    """Default page header/footer: document label, rule, page number."""
    style = style if style is not None else load_style_preset()
    font = str(_s(style, "font_name", "Helvetica"))
    muted = _hex(_s(style, "muted_color", "#64748B"))
    rule = _hex(_s(style, "border_color", "#E2E8F0"))
    header_size = float(_s(style, "header_size", 9))

    y_line = geometry.top + 8
    canv.setStrokeColor(rule)
    canv.setLineWidth(1)
    canv.line(geometry.left, y_line, geometry.right, y_line)

    canv.setFont(font, header_size)
    canv.setFillColor(muted)
    canv.drawString(geometry.left, geometry.top + 16, title)

    canv.setFont(font, float(_s(style, "footer_size", 8)))
    canv.drawRightString(geometry.right, geometry.margin * 0.45, f"Page {page_number}")


def _split_word(canv: canvas.Canvas, word: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    pieces: List[str] = []
    piece = ""
    for ch in word:
        if piece and canv.stringWidth(piece + ch, font_name, font_size) > max_width:
            pieces.append(piece)
            piece = ch
        else:
            piece += ch
    pieces.append(piece)
    return pieces


def wrap_text(canv: canvas.Canvas, text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Word wrap using measured glyph widths. Explicit newlines start a new line;
    a single word wider than ``max_width`` is broken between characters.
    """
    lines: List[str] = []
    for paragraph in (text or "").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        cur: List[str] = []
        for w in words:
            test = " ".join(cur + [w])
            if canv.stringWidth(test, font_name, font_size) <= max_width:
                cur.append(w)
                continue
            if cur:
                lines.append(" ".join(cur))
            if canv.stringWidth(w, font_name, font_size) <= max_width:
                cur = [w]
                continue
            pieces = _split_word(canv, w, font_name, font_size, max_width)
            lines.extend(pieces[:-1])
            cur = [pieces[-1]]
        if cur:
            lines.append(" ".join(cur))
    return lines or [""]


def _fit_font(canv: canvas.Canvas, text: str, font_name: str, base_size: float, max_width: float) -> float:
    size = float(base_size)
    while size > 7.0:
        if canv.stringWidth(text, font_name, size) <= max_width:
            return size
        size -= 0.5
    return 7.0


class DocumentCanvas:
    """Drawing state owned by a single render: canvas, cursor and recorded ops."""

    def __init__(
        self,
        canv: canvas.Canvas,
        context: Any,
        geometry: PageGeometry,
        style: dict,
        title: str,
        on_page: Optional[PageHook] = None,
    ) -> None:
        self.canv = canv
        self.context = context
        self.geometry = geometry
        self.style = style
        self.title = title
        self.on_page = on_page
        self.cursor = Cursor(y=geometry.top)
        self.ops: List[DrawOp] = []
        self._start_page()

    def _start_page(self) -> None:
        if self.on_page is not None:
            self.on_page(self.canv, self.cursor.page_count, self.geometry, self.title)

    def new_page(self) -> None:
        self.canv.showPage()
        self.cursor.page_count += 1
        self.cursor.y = self.geometry.top
        self._start_page()

    def ensure_space(self, height: float) -> None:
        # a fresh page never breaks again; oversize content is drawn best effort
        if self.cursor.y - height < self.geometry.margin and self.cursor.y < self.geometry.top:
            self.new_page()

    def font_for(self, bold: bool = False, italic: bool = False) -> str:
        if bold and italic:
            return str(_s(self.style, "font_bold_italic", "Helvetica-BoldOblique"))
        if bold:
            return str(_s(self.style, "font_bold", "Helvetica-Bold"))
        if italic:
            return str(_s(self.style, "font_italic", "Helvetica-Oblique"))
        return str(_s(self.style, "font_name", "Helvetica"))

    def text(
        self,
        x: float,
        y: float,
        text: str,
        font: str,
        size: float,
        color: Optional[colors.Color] = None,
        align: str = "left",
        role: str = "text",
    ) -> None:
        self.canv.setFillColor(color or _hex(_s(self.style, "text_color", "#0F172A")))
        self.canv.setFont(font, size)
        if align == "center":
            self.canv.drawCentredString(x, y, text)
        elif align == "right":
            self.canv.drawRightString(x, y, text)
        else:
            self.canv.drawString(x, y, text)
        width = self.canv.stringWidth(text, font, size)
        self.ops.append(
            DrawOp("text", self.cursor.page_count, x, y, width, size, text=text, font=font, size=size, role=role)
        )

    def line(self, x1: float, y: float, x2: float, color: colors.Color, role: str, width: float = 1) -> None:
        self.canv.setStrokeColor(color)
        self.canv.setLineWidth(width)
        self.canv.line(x1, y, x2, y)
        self.ops.append(DrawOp("line", self.cursor.page_count, x1, y, x2 - x1, 0.0, role=role))

    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        role: str,
        stroke_color: Optional[colors.Color] = None,
        fill_color: Optional[colors.Color] = None,
        line_width: float = 1,
        radius: float = 0,
    ) -> None:
        if stroke_color is not None:
            self.canv.setStrokeColor(stroke_color)
            self.canv.setLineWidth(line_width)
        if fill_color is not None:
            self.canv.setFillColor(fill_color)
        stroke = 1 if stroke_color is not None else 0
        fill = 1 if fill_color is not None else 0
        if radius:
            self.canv.roundRect(x, y, w, h, radius=radius, stroke=stroke, fill=fill)
        else:
            self.canv.rect(x, y, w, h, stroke=stroke, fill=fill)
        self.ops.append(DrawOp("rect", self.cursor.page_count, x, y, w, h, role=role))

    def anchor_x(self, align: str) -> float:
        if align == "center":
            return self.geometry.left + self.geometry.content_width / 2
        if align == "right":
            return self.geometry.right
        return self.geometry.left

    def draw_lines(
        self,
        text: str,
        size: float,
        bold: bool = False,
        italic: bool = False,
        color: Optional[str] = None,
        align: str = "left",
        role: str = "text",
    ) -> None:
        font = self.font_for(bold, italic)
        line_height = size + float(_s(self.style, "line_gap", 6))
        fill = _hex(color, _hex(_s(self.style, "text_color", "#0F172A")))
        x = self.anchor_x(align)
        for line in wrap_text(self.canv, text, font, size, self.geometry.content_width):
            self.ensure_space(line_height)
            self.text(x, self.cursor.y - size, line, font, size, color=fill, align=align, role=role)
            self.cursor.y -= line_height

    def finish(self, buffer: io.BytesIO) -> bytes:
        self.canv.showPage()
        self.canv.save()
        return buffer.getvalue()


def _style(component: BaseComponent) -> Style:
    return component.style or Style()


def _draw_heading(doc: DocumentCanvas, component: Heading) -> None:
    style = _style(component)
    level = min(max(component.level, 1), 4)
    sizes = _s(doc.style, "heading_sizes", {})
    size = float(style.font_size or sizes.get(str(level), 18))
    doc.draw_lines(
        apply_bindings(component.text, doc.context),
        size,
        bold=True,
        italic=style.italic,
        color=style.color,
        align=style.align or "left",
        role="heading",
    )


def _draw_text(doc: DocumentCanvas, component: BaseComponent) -> None:
    style = _style(component)
    size = float(style.font_size or _s(doc.style, "body_size", 12))
    doc.draw_lines(
        apply_bindings(component.text, doc.context),
        size,
        bold=style.bold,
        italic=style.italic,
        color=style.color,
        align=style.align or "left",
    )


def _draw_list(doc: DocumentCanvas, component: ListComponent) -> None:
    style = _style(component)
    size = float(style.font_size or _s(doc.style, "body_size", 12))
    bullet = str(_s(doc.style, "list_bullet", "•"))
    for item in component.items:
        text = list_item_text(item, doc.context)
        if not text:
            continue
        doc.draw_lines(
            f"{bullet} {text}",
            size,
            bold=style.bold,
            italic=style.italic,
            color=style.color,
            align=style.align or "left",
            role="list-item",
        )


def _draw_chips(doc: DocumentCanvas, component: Chips) -> None:
    style = _style(component)
    size = float(style.font_size or _s(doc.style, "chip_size", 11))
    pad_x = float(_s(doc.style, "chip_pad_x", 8))
    pad_y = float(_s(doc.style, "chip_pad_y", 4))
    gap = float(_s(doc.style, "chip_gap", 6))
    font = doc.font_for(style.bold, style.italic)
    chip_h = size + 2 * pad_y
    row_h = chip_h + gap
    left = doc.geometry.left

    x = left
    row_open = False
    for chip in component.items:
        label = apply_bindings(chip.label, doc.context)
        if not label:
            continue
        w = doc.canv.stringWidth(label, font, size) + 2 * pad_x
        if not row_open or x + w > doc.geometry.right:
            if row_open:
                doc.cursor.y -= row_h
            doc.ensure_space(row_h)
            x = left
            row_open = True
        bottom = doc.cursor.y - chip_h
        doc.rect(
            x, bottom, w, chip_h,
            role="chip",
            fill_color=_hex(chip.color or _s(doc.style, "chip_color", "#E2E8F0")),
            radius=chip_h / 2,
        )
        doc.text(x + pad_x, bottom + pad_y + size * 0.2, label, font, size, color=_hex(style.color, None), role="chip-label")
        x += w + gap
    if row_open:
        doc.cursor.y -= row_h


def _draw_divider(doc: DocumentCanvas, component: BaseComponent) -> None:
    h = float(_s(doc.style, "divider_height", 12))
    doc.ensure_space(h)
    rule = _hex(_s(doc.style, "rule_color", "#D9E3F2"))
    doc.line(doc.geometry.left, doc.cursor.y - h / 2, doc.geometry.right, rule, role="divider")
    doc.cursor.y -= h


def _draw_spacer(doc: DocumentCanvas, component: Spacer) -> None:
    doc.ensure_space(component.size)
    doc.cursor.y -= component.size


def _image_reader(src: str) -> Optional[ImageReader]:
    header, sep, payload = src.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        return None
    try:
        return ImageReader(io.BytesIO(base64.b64decode(payload, validate=True)))
    except (binascii.Error, ValueError, OSError):
        logger.debug("Image data URI could not be decoded")
        return None


def _draw_image(doc: DocumentCanvas, component: Image) -> None:
    src = image_source(component, doc.context)
    if not src:
        return
    w = min(float(component.width or _s(doc.style, "image_width", 96)), doc.geometry.content_width)
    h = min(float(component.height or _s(doc.style, "image_height", 96)), doc.geometry.content_height)
    doc.ensure_space(h)
    x = doc.geometry.left
    bottom = doc.cursor.y - h
    reader = _image_reader(src) if src.startswith("data:") else None
    if reader is not None:
        doc.canv.drawImage(reader, x, bottom, width=w, height=h, preserveAspectRatio=True, mask="auto")
        doc.ops.append(DrawOp("image", doc.cursor.page_count, x, bottom, w, h, role="image"))
    else:
        doc.rect(x, bottom, w, h, role="image-placeholder", stroke_color=_hex(_s(doc.style, "border_color", "#E2E8F0")))
    doc.cursor.y -= h


def _draw_box(doc: DocumentCanvas, component: Box) -> None:
    style = _style(component)
    pad = float(style.padding if style.padding is not None else _s(doc.style, "box_padding", 6))
    inset = float(_s(doc.style, "box_inset", 4))

    start_page = doc.cursor.page_count
    top = doc.cursor.y
    doc.cursor.y -= pad
    for child in component.children:
        render_component(doc, child)
    doc.cursor.y -= pad

    # border covers only what was drawn on the page the box finished on
    if doc.cursor.page_count != start_page:
        top = doc.geometry.top
    height_used = top - doc.cursor.y

    border = style.border
    border_width = float(border.width) if border is not None and border.width else 1.0
    border_color = border.color if border is not None else None
    doc.rect(
        doc.geometry.left - inset,
        doc.cursor.y,
        doc.geometry.content_width + 2 * inset,
        height_used,
        role="box-border",
        stroke_color=_hex(border_color or _s(doc.style, "border_color", "#E2E8F0")),
        line_width=border_width,
    )


def _draw_cell(
    doc: DocumentCanvas,
    index: int,
    slot: float,
    row_h: float,
    text: str,
    font: str,
    base_size: float,
    align: str,
    role: str,
) -> None:
    pad = float(_s(doc.style, "table_cell_pad", 4))
    size = _fit_font(doc.canv, text, font, base_size, slot - 2 * pad) if text else base_size
    x0 = doc.geometry.left + index * slot
    if align == "right":
        x = x0 + slot - pad
    elif align == "center":
        x = x0 + slot / 2
    else:
        x = x0 + pad
    baseline = doc.cursor.y - (row_h + size * 0.6) / 2
    doc.text(x, baseline, text, font, size, align=align, role=role)


def _draw_table(doc: DocumentCanvas, component: Table) -> None:
    columns = component.columns
    rows = table_rows(component, doc.context)
    row_h = float(_s(doc.style, "table_row_height", 18))
    # equal-width slots; column width hints only apply to HTML
    slot = doc.geometry.content_width / max(len(columns), 1)

    if component.show_header:
        doc.ensure_space(row_h)
        header_font = doc.font_for(bold=True)
        header_size = float(_s(doc.style, "table_header_size", 10))
        for index, column in enumerate(columns):
            _draw_cell(doc, index, slot, row_h, column.label or column.key, header_font,
                       header_size, column.align or "left", role="table-header")
        doc.line(doc.geometry.left, doc.cursor.y - row_h, doc.geometry.right,
                 _hex(_s(doc.style, "rule_color", "#D9E3F2")), role="table-rule")
        doc.cursor.y -= row_h

    cell_font = doc.font_for()
    cell_size = float(_s(doc.style, "table_cell_size", 11))
    for row in rows:
        doc.ensure_space(row_h)
        for index, column in enumerate(columns):
            _draw_cell(doc, index, slot, row_h, cell_text(row, column), cell_font,
                       cell_size, column.align or "left", role="table-cell")
        doc.ops.append(DrawOp("row", doc.cursor.page_count, doc.geometry.left, doc.cursor.y - row_h,
                              doc.geometry.content_width, row_h, role="table-row"))
        doc.cursor.y -= row_h


PDF_DRAWERS: Dict[str, Callable[[DocumentCanvas, Any], None]] = {
    "heading": _draw_heading,
    "text": _draw_text,
    "list": _draw_list,
    "chips": _draw_chips,
    "divider": _draw_divider,
    "spacer": _draw_spacer,
    "image": _draw_image,
    "box": _draw_box,
    "table": _draw_table,
}


def render_component(doc: DocumentCanvas, component: BaseComponent) -> None:
    draw = PDF_DRAWERS.get(getattr(component, "type", ""))
    if draw is None:
        return
    try:
        if not is_visible(component, doc.context):
            return
        draw(doc, component)
    except Exception:
        logger.exception("Failed to draw component %s", component.id)
    if component.style is not None and component.style.margin_bottom:
        doc.cursor.y -= float(component.style.margin_bottom)


def draw_document(
    layout: Sequence[BaseComponent],
    context: Any,
    title: Optional[str] = None,
    geometry: Optional[PageGeometry] = None,
    on_page: Optional[PageHook] = None,
) -> RenderedPdf:
    geometry = geometry or PageGeometry()
    style = load_style_preset()
    label = title or config.DEFAULT_DOCUMENT_TITLE
    hook = on_page if on_page is not None else partial(draw_page_frame, style=style)

    buffer = io.BytesIO()
    canv = canvas.Canvas(buffer, pagesize=(geometry.width, geometry.height), invariant=1)
    canv.setTitle(label)

    doc = DocumentCanvas(canv, context, geometry, style, label, on_page=hook)
    for component in layout:
        render_component(doc, component)
    content = doc.finish(buffer)
    logger.debug("Rendered %s into %d page(s)", label, doc.cursor.page_count)
    return RenderedPdf(content=content, ops=doc.ops, page_count=doc.cursor.page_count)


def render_document_pdf(
    layout: Sequence[BaseComponent],
    context: Any,
    title: Optional[str] = None,
    geometry: Optional[PageGeometry] = None,
    on_page: Optional[PageHook] = None,
) -> bytes:
    return draw_document(layout, context, title=title, geometry=geometry, on_page=on_page).content
