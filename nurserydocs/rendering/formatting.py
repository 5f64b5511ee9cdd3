from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from .. import config
from .bindings import stringify


logger = logging.getLogger(__name__)

FORMAT_KINDS = ("text", "currency", "number", "date")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, float, Decimal, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return Decimal(0)
        return number if number.is_finite() else Decimal(0)
    return Decimal(0)


def _grouped(number: Decimal, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        rounded = number
    if rounded == 0:
        rounded = abs(rounded)
    return format(rounded, ",f")


def format_currency(value: Any) -> str:
    number = _to_decimal(value)
    text = _grouped(abs(number), 2)
    sign = "-" if number < 0 and text.strip("0.,") else ""
    return f"{sign}{config.CURRENCY_SYMBOL}{text}"


def format_number(value: Any) -> str:
    text = _grouped(_to_decimal(value), config.NUMBER_MAX_FRACTION_DIGITS)
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    return None


def format_date(value: Any) -> str:
    parsed = _parse_date(value)
    if parsed is None:
        logger.debug("Unparseable date value %r, using plain text", value)
        return stringify(value)
    return parsed.isoformat()


def format_value(value: Any, fmt: Optional[str] = None) -> str:
    if value is None:
        return ""
    if fmt == "currency":
        return format_currency(value)
    if fmt == "number":
        return format_number(value)
    if fmt == "date":
        return format_date(value)
    return stringify(value)
