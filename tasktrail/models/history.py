"""Append-only task history model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from tasktrail.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)

EVENT_CREATED = "created"
EVENT_UPDATED = "updated"
EVENT_DELETED = "deleted"


class HistoryEntry(SQLModel, table=True):
    """Audit record for one task mutation; rows are never updated once written.

    `task_id` carries no foreign key: the trail, including the
    final `deleted` entry, outlives the task it describes.
    """

    __tablename__ = "history"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(index=True)
    event_type: str = Field(index=True)
    details: str = Field(default="")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
