"""Schemas for task input, task snapshots and flattened tree rows."""

from __future__ import annotations

from datetime import date, datetime

from sqlmodel import Field, SQLModel

from tasktrail.schemas.history import HistoryEntryRead
from tasktrail.schemas.tags import TagRead

RUNTIME_ANNOTATION_TYPES = (date, datetime)

# SQLite INTEGER is a signed 64-bit value.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class TaskInput(SQLModel):
    """Full desired state of a task for create and update.

    Update is a replacement, not a patch: omitted fields take their defaults,
    so callers pass the complete task (see `task_input_from_task`).
    """

    title: str = ""
    description: str = ""
    status: str = ""
    priority: int = Field(default=0, ge=INT64_MIN, le=INT64_MAX)
    due_at: date | None = None
    parent_task_id: int | None = Field(default=None, ge=INT64_MIN, le=INT64_MAX)
    tags: list[str] = Field(default_factory=list)


class TaskRead(SQLModel):
    """Fully loaded task snapshot with its tags attached."""

    id: int
    parent_task_id: int | None = None
    title: str
    description: str
    status: str
    priority: int
    due_at: date | None = None
    created_at: datetime
    updated_at: datetime
    tags: list[TagRead] = Field(default_factory=list)

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags]


class TaskTreeRow(SQLModel):
    """One line of a flattened task tree as served to renderers."""

    task: TaskRead
    depth: int
    has_children: bool
    collapsed: bool


class TaskDetailRead(SQLModel):
    """A task together with its history trail, oldest entry first."""

    task: TaskRead
    history: list[HistoryEntryRead] = Field(default_factory=list)
