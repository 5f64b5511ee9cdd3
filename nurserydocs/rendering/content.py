"""Content extraction shared by the HTML and PDF renderers."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List

from .bindings import apply_bindings, resolve_path, stringify
from .formatting import format_value
from .schema import Column, Image, ListItem, Table


def list_item_text(item: ListItem, context: Any) -> str:
    """Bound value, else literal label; blank when neither resolves."""
    if item.binding:
        return stringify(resolve_path(context, item.binding))
    return apply_bindings(item.label, context)


def image_source(component: Image, context: Any) -> str:
    if component.url:
        return component.url
    return stringify(resolve_path(context, component.binding))


def table_rows(component: Table, context: Any) -> List[Any]:
    rows = resolve_path(context, component.rows_binding)
    return list(rows) if isinstance(rows, (list, tuple)) else []


def cell_text(row: Any, column: Column) -> str:
    if column.binding:
        raw = resolve_path(row, column.binding)
    else:
        raw = row.get(column.key) if isinstance(row, Mapping) else None
    return format_value(raw, column.format)
