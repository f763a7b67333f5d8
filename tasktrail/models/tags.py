"""Tag catalog model and the task/tag junction table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, func
from sqlmodel import Field, SQLModel

from tasktrail.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Tag(SQLModel, table=True):
    """Named label; names are unique case-insensitively, first casing is kept."""

    __tablename__ = "tags"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())


Index(
    "uq_tags_name_lower",
    func.lower(Tag.__table__.c.name),  # type: ignore[attr-defined]
    unique=True,
)


class TaskTag(SQLModel, table=True):
    """Association between a task and one of its tags."""

    __tablename__ = "task_tags"  # pyright: ignore[reportAssignmentType]

    task_id: int = Field(foreign_key="tasks.id", primary_key=True, ondelete="CASCADE")
    tag_id: int = Field(
        foreign_key="tags.id",
        primary_key=True,
        ondelete="CASCADE",
        index=True,
    )
