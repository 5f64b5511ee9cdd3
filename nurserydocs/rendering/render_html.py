from __future__ import annotations

import logging
from html import escape
from typing import Any, Callable, Dict, List, Optional, Sequence

from .. import config
from .bindings import apply_bindings, stringify
from .content import cell_text, image_source, list_item_text, table_rows
from .schema import (
    BaseComponent,
    Box,
    Chips,
    Heading,
    Image,
    ListComponent,
    Spacer,
    Style,
    Table,
)
from .visibility import is_visible


logger = logging.getLogger(__name__)

BORDER_COLOR = "#e2e8f0"
CHIP_COLOR = "#e2e8f0"

DOCUMENT_CSS = """
    @page { size: A4; margin: 0; }
    body { font-family: Inter, ui-sans-serif, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; color: #0f172a; background: #f8fafc; }
    .doc { background: white; max-width: 820px; margin: 12px auto; padding: 24px 28px; border: 1px solid #e2e8f0; border-radius: 12px; box-shadow: 0 10px 30px rgba(15, 23, 42, 0.08); }
    h1,h2,h3,h4 { margin: 0 0 8px 0; }
    p { margin: 0 0 10px 0; line-height: 1.45; }
    table { font-size: 14px; }
    th { font-size: 12px; text-transform: uppercase; letter-spacing: 0.04em; color: #475569; }
"""


def _attr(value: Any) -> str:
    return escape(str(value), quote=True)


def style_to_css(style: Optional[Style]) -> str:
    if style is None:
        return ""
    css: List[str] = []
    if style.font_size:
        css.append(f"font-size:{stringify(style.font_size)}px")
    if style.bold:
        css.append("font-weight:700")
    if style.italic:
        css.append("font-style:italic")
    if style.color:
        css.append(f"color:{style.color}")
    if style.background:
        css.append(f"background:{style.background}")
    if style.padding is not None:
        css.append(f"padding:{stringify(style.padding)}px")
    if style.margin_bottom is not None:
        css.append(f"margin-bottom:{stringify(style.margin_bottom)}px")
    if style.align:
        css.append(f"text-align:{style.align}")
    if style.border is not None and style.border.width:
        css.append(f"border:{stringify(style.border.width)}px solid {style.border.color or BORDER_COLOR}")
    return ";".join(css)


def _heading(component: Heading, context: Any, css: str) -> str:
    level = min(max(component.level, 1), 4)
    text = escape(apply_bindings(component.text, context))
    return f'<h{level} style="{_attr(css)}">{text}</h{level}>'


def _text(component: BaseComponent, context: Any, css: str) -> str:
    return f'<p style="{_attr(css)}">{escape(apply_bindings(component.text, context))}</p>'


def _list(component: ListComponent, context: Any, css: str) -> str:
    entries = []
    for item in component.items:
        text = list_item_text(item, context)
        if text:
            entries.append(f"<li>{escape(text)}</li>")
    return f'<ul style="{_attr(css)}">{"".join(entries)}</ul>'


def _chips(component: Chips, context: Any, css: str) -> str:
    spans = []
    for chip in component.items:
        label = apply_bindings(chip.label, context)
        if not label:
            continue
        spans.append(
            '<span style="display:inline-block;padding:4px 8px;border-radius:12px;margin-right:6px;'
            f'background:{_attr(chip.color or CHIP_COLOR)};">{escape(label)}</span>'
        )
    return f'<div style="{_attr(css)}">{"".join(spans)}</div>'


def _divider(component: BaseComponent, context: Any, css: str) -> str:
    return f'<hr style="border:0;border-top:1px solid {BORDER_COLOR};{_attr(css)}" />'


def _spacer(component: Spacer, context: Any, css: str) -> str:
    return f'<div style="height:{stringify(component.size)}px;"></div>'


def _image(component: Image, context: Any, css: str) -> str:
    src = image_source(component, context)
    if not src:
        return ""
    size = ""
    if component.width:
        size += f"width:{stringify(component.width)}px;"
    if component.height:
        size += f"height:{stringify(component.height)}px;"
    return f'<img src="{_attr(src)}" style="{_attr(size + css)}" />'


def _box(component: Box, context: Any, css: str) -> str:
    children = "".join(render_component_html(child, context) for child in component.children)
    return (
        f'<div style="border:1px solid {BORDER_COLOR};border-radius:8px;padding:12px;{_attr(css)}">'
        f"{children}</div>"
    )


def _table(component: Table, context: Any, css: str) -> str:
    columns = component.columns
    header = ""
    if component.show_header:
        cells = []
        for column in columns:
            width = f"width:{stringify(column.width)}%;" if column.width else ""
            cells.append(
                f'<th style="text-align:{column.align or "left"};{width}'
                f'border-bottom:1px solid {BORDER_COLOR};padding:6px 8px;">{escape(column.label)}</th>'
            )
        header = f"<thead><tr>{''.join(cells)}</tr></thead>"
    body = []
    for row in table_rows(component, context):
        cells = [
            f'<td style="text-align:{column.align or "left"};padding:6px 8px;border-bottom:1px solid #f1f5f9;">'
            f"{escape(cell_text(row, column))}</td>"
            for column in columns
        ]
        body.append(f"<tr>{''.join(cells)}</tr>")
    return (
        f'<table style="width:100%;border-collapse:collapse;{_attr(css)}">'
        f"{header}<tbody>{''.join(body)}</tbody></table>"
    )


HTML_RENDERERS: Dict[str, Callable[[Any, Any, str], str]] = {
    "heading": _heading,
    "text": _text,
    "list": _list,
    "chips": _chips,
    "divider": _divider,
    "spacer": _spacer,
    "image": _image,
    "box": _box,
    "table": _table,
}


def render_component_html(component: BaseComponent, context: Any) -> str:
    renderer = HTML_RENDERERS.get(getattr(component, "type", ""))
    if renderer is None:
        return ""
    try:
        if not is_visible(component, context):
            return ""
        return renderer(component, context, style_to_css(component.style))
    except Exception:
        logger.exception("Failed to render component %s as HTML", component.id)
        return ""


def render_document_html(
    layout: Sequence[BaseComponent],
    context: Any,
    title: Optional[str] = None,
) -> str:
    body = "".join(render_component_html(component, context) for component in layout)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "  <head>\n"
        '    <meta charset="utf-8" />\n'
        f"    <title>{escape(title or config.DEFAULT_DOCUMENT_TITLE)}</title>\n"
        f"    <style>{DOCUMENT_CSS}</style>\n"
        "  </head>\n"
        "  <body>\n"
        f'    <div class="doc">{body}</div>\n'
        "  </body>\n"
        "</html>\n"
    )
