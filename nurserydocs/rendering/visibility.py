from __future__ import annotations

from numbers import Number
from typing import Any

from .bindings import resolve_path
from .schema import BaseComponent, Condition


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion: ``1`` never equals ``True`` or ``"1"``."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, Number) and isinstance(right, Number):
        return left == right
    if left is None or right is None:
        return left is right
    return type(left) is type(right) and left == right


def condition_holds(condition: Condition, context: Any) -> bool:
    value = resolve_path(context, condition.field)
    if condition.operator == "exists":
        return value is not None and value != ""
    if condition.operator == "equals":
        return strict_equals(value, condition.value)
    if condition.operator == "not_equals":
        return not strict_equals(value, condition.value)
    return True


def is_visible(component: BaseComponent, context: Any) -> bool:
    return all(condition_holds(condition, context) for condition in component.visible_when)
