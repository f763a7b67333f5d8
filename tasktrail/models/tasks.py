"""Task model: a node in the parent/child task hierarchy."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from tasktrail.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (date, datetime)


class Task(SQLModel, table=True):
    """Persisted task row; tags live in `task_tags`, the audit trail in `history`."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(default="")
    description: str = Field(default="")
    status: str = Field(default="todo", index=True)
    priority: int = Field(default=0, index=True)
    due_at: date | None = Field(default=None, index=True)
    # Children survive deletion of their parent and become roots.
    parent_task_id: int | None = Field(
        default=None,
        foreign_key="tasks.id",
        ondelete="SET NULL",
        index=True,
    )

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
