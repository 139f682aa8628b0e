"""
app/validators/value_parsers.py

Locale-tolerant number and date parsing plus calendar-day arithmetic.

Every parser returns ``None`` for absent or unparseable input instead of
raising; callers branch on ``None`` explicitly. Dates are plain
:class:`datetime.date` values, so there is no time-of-day or timezone
component to drift between environments.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST_DATE_RE = re.compile(r"^(\d{2})[-/](\d{2})[-/](\d{4})$")
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

MISSING_DISPLAY = "—"


def clean(value: Any) -> str:
    """
    Return ``value`` as a stripped string; ``None`` becomes ``""``.
    """

    if value is None:
        return ""
    return str(value).strip()


def parse_number(value: Any) -> float | None:
    """
    Parse a decimal that may use a comma as the decimal separator.

    The longest leading numeric prefix is used (``"412,5 kg"`` -> 412.5).
    Returns ``None`` for empty, non-numeric, or non-finite input.
    """

    text = clean(value)
    if not text:
        return None
    text = text.replace(",", ".", 1)
    match = _NUMBER_PREFIX_RE.match(text)
    if match is None:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def _build_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> date | None:
    """
    Parse ``YYYY-MM-DD``, ``DD-MM-YYYY`` or ``DD/MM/YYYY``.

    Impossible calendar dates (``31-02-2024``) and any other layout return ``None``.
    """

    text = clean(value)
    if not text:
        return None

    match = _ISO_DATE_RE.match(text)
    if match:
        return _build_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _DAY_FIRST_DATE_RE.match(text)
    if match:
        return _build_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))

    return None


def days_between(start: date | None, end: date | None) -> int | None:
    """
    Whole calendar days from ``start`` to ``end`` (negative when reversed).
    """

    if start is None or end is None:
        return None
    return (end - start).days


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_date(value: date | None) -> str:
    """Display form ``DD-MM-YYYY``."""
    if value is None:
        return MISSING_DISPLAY
    return value.strftime("%d-%m-%Y")


def format_kg(value: float | None) -> str:
    if value is None:
        return MISSING_DISPLAY
    return f"{value:.1f} kg"


def format_celsius(value: float | None) -> str:
    if value is None:
        return MISSING_DISPLAY
    return f"{value:.1f} °C"
