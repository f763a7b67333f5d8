"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return a naive UTC timestamp suitable for `sa.DateTime()` columns."""
    return datetime.now(UTC).replace(tzinfo=None)
