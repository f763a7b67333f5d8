"""Deterministic audit summaries for task history entries.

Pure functions only: snapshots in, strings (or structured change records) out.
Tag lists are rendered sorted and dates as `YYYY-MM-DD` so the same pair of
snapshots always produces the same text.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from tasktrail.core.normalize import format_date
from tasktrail.models.history import EVENT_CREATED, EVENT_DELETED, EVENT_UPDATED

NO_CHANGES = f"{EVENT_UPDATED}: no changes"


class _Named(Protocol):
    @property
    def name(self) -> str: ...


class AuditedTask(Protocol):
    """Snapshot shape the audit formatter reads (satisfied by `TaskRead`)."""

    @property
    def title(self) -> str: ...
    @property
    def description(self) -> str: ...
    @property
    def status(self) -> str: ...
    @property
    def priority(self) -> int: ...
    @property
    def due_at(self) -> date | None: ...
    @property
    def parent_task_id(self) -> int | None: ...
    @property
    def tags(self) -> Sequence[_Named]: ...


@dataclass(frozen=True, slots=True)
class FieldChange:
    """One changed field between two snapshots, values already rendered."""

    field: str
    before: str
    after: str


def format_tags(tags: Sequence[_Named]) -> str:
    if not tags:
        return "none"
    return ",".join(sorted(tag.name for tag in tags))


def format_parent(parent_task_id: int | None) -> str:
    if not parent_task_id:
        return "none"
    return str(parent_task_id)


def _value_or_none(value: str) -> str:
    return value.strip() or "none"


def _format_snapshot(event: str, task: AuditedTask) -> str:
    return (
        f"{event}: title='{task.title}' status={task.status} priority={task.priority} "
        f"due={format_date(task.due_at)} tags={format_tags(task.tags)}"
    )


def format_created(task: AuditedTask) -> str:
    return _format_snapshot(EVENT_CREATED, task)


def format_deleted(task: AuditedTask) -> str:
    return _format_snapshot(EVENT_DELETED, task)


def compute_changes(before: AuditedTask, after: AuditedTask) -> list[FieldChange]:
    """Return changed fields in canonical order: title, description, status,
    priority, parent, due, tags."""
    changes: list[FieldChange] = []
    if before.title != after.title:
        changes.append(FieldChange("title", before.title, after.title))
    if before.description != after.description:
        changes.append(FieldChange("description", before.description, after.description))
    if before.status != after.status:
        changes.append(FieldChange("status", before.status, after.status))
    if before.priority != after.priority:
        changes.append(FieldChange("priority", str(before.priority), str(after.priority)))

    before_parent = format_parent(before.parent_task_id)
    after_parent = format_parent(after.parent_task_id)
    if before_parent != after_parent:
        changes.append(FieldChange("parent", before_parent, after_parent))

    before_due = format_date(before.due_at)
    after_due = format_date(after.due_at)
    if before_due != after_due:
        changes.append(FieldChange("due", before_due, after_due))

    before_tags = format_tags(before.tags)
    after_tags = format_tags(after.tags)
    if before_tags != after_tags:
        changes.append(FieldChange("tags", before_tags, after_tags))
    return changes


def render_change(change: FieldChange) -> str:
    return f"{change.field}: '{_value_or_none(change.before)}' -> '{_value_or_none(change.after)}'"


def render_changes(changes: Sequence[FieldChange]) -> str:
    """Render a change record as history text; empty records say so explicitly."""
    if not changes:
        return NO_CHANGES
    return f"{EVENT_UPDATED}: " + "; ".join(render_change(change) for change in changes)


def format_diff(before: AuditedTask, after: AuditedTask) -> str:
    return render_changes(compute_changes(before, after))
