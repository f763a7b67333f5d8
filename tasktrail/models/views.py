"""Saved view model: a named, serialized task filter."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from tasktrail.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class View(SQLModel, table=True):
    """Named query persisted as the JSON wire form of a `TaskFilter`."""

    __tablename__ = "views"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    filter_json: str = Field(default="{}")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
