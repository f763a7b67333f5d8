"""Schemas for tag read/write payloads."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TagRead(SQLModel):
    """Tag payload attached to tasks and returned by tag listings."""

    id: int
    name: str
    created_at: datetime


class TagCreate(SQLModel):
    """Payload for get-or-create of a tag by name."""

    name: str


class TaskTagsUpdate(SQLModel):
    """Replacement tag set for one task."""

    tags: list[str] = []
