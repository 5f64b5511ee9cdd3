from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any


PLACEHOLDER_RE = re.compile(r"\{\{\s*([^}]+)\s*\}\}")
REPEAT_MARKER = "[]"


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if segment.isascii() and segment.isdigit():
            index = int(segment)
            return current[index] if index < len(current) else None
    return None


def resolve_path(context: Any, path: str | None) -> Any:
    """
    Resolve a dotted path such as ``order.customer.name`` against ``context``.

    A segment ending in ``[]`` is read as a plain field; iterating the array is
    up to the caller. Missing values resolve to ``None``.
    """
    if not path:
        return None
    current = context
    for segment in path.split("."):
        if segment.endswith(REPEAT_MARKER):
            segment = segment[: -len(REPEAT_MARKER)]
        current = _step(current, segment)
        if current is None:
            return None
    return current


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def apply_bindings(text: str | None, context: Any) -> str:
    if not text:
        return ""
    return PLACEHOLDER_RE.sub(lambda match: stringify(resolve_path(context, match.group(1).strip())), text)
