"""Schemas for task history entries."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class HistoryEntryRead(SQLModel):
    """History entry payload returned by read endpoints."""

    id: int
    task_id: int
    event_type: str
    details: str
    created_at: datetime
