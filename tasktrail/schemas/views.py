"""Schemas for saved views."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel

from tasktrail.schemas.filters import TaskFilter

RUNTIME_ANNOTATION_TYPES = (datetime,)


class ViewSave(SQLModel):
    """Insert (no id) or update (id given) payload for a saved view."""

    id: int | None = None
    name: str
    filter: TaskFilter = Field(default_factory=TaskFilter)


class ViewRead(SQLModel):
    """Saved view with its filter decoded from the wire form."""

    id: int
    name: str
    filter: TaskFilter
    created_at: datetime
    updated_at: datetime
