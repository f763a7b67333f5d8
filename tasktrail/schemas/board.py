"""Schemas for the status-lane board payload."""

from __future__ import annotations

from sqlmodel import Field, SQLModel

from tasktrail.schemas.tasks import TaskRead, TaskTreeRow


class TagCountRead(SQLModel):
    """Tag usage count across the tasks shown on the board."""

    id: int
    name: str
    count: int


class BoardRead(SQLModel):
    """Board lanes; tree lanes are flattened rows, `doing` is a flat list."""

    pending: list[TaskTreeRow] = Field(default_factory=list)
    doing: list[TaskRead] = Field(default_factory=list)
    eventually: list[TaskTreeRow] = Field(default_factory=list)
    done: list[TaskTreeRow] = Field(default_factory=list)
    tag_counts: list[TagCountRead] = Field(default_factory=list)
