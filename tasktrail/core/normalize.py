"""Normalization and parsing of user-supplied task values."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from tasktrail.core.errors import ValidationError

DEFAULT_STATUS = "todo"
DATE_FORMAT = "%Y-%m-%d"


def normalize_status(status: str | None) -> str:
    """Trim and lower-case a status; blank input becomes `todo`."""
    value = (status or "").strip().lower()
    return value or DEFAULT_STATUS


def normalize_tags(names: Iterable[str] | None) -> list[str]:
    """Trim, drop blanks and de-duplicate case-insensitively.

    The first-seen spelling of each name wins and first-occurrence order is kept,
    so ``["Work", " work ", "HOME"]`` becomes ``["Work", "HOME"]``.
    """
    seen: set[str] = set()
    result: list[str] = []
    for name in names or ():
        trimmed = name.strip()
        if not trimmed:
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return result


def parse_date(value: str | None, *, field: str = "date") -> date | None:
    """Parse a `YYYY-MM-DD` string; blank input means no date."""
    trimmed = (value or "").strip()
    if not trimmed:
        return None
    try:
        return datetime.strptime(trimmed, DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError(f"invalid {field}: expected YYYY-MM-DD, got {trimmed!r}") from exc


def format_date(value: date | None) -> str:
    """Render a date as `YYYY-MM-DD`, or `none` when absent."""
    if value is None:
        return "none"
    return value.strftime(DATE_FORMAT)
