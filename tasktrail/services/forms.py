"""Parsing of raw form text into `TaskInput`, plus status cycling helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from tasktrail.core.errors import ValidationError
from tasktrail.core.normalize import DEFAULT_STATUS, normalize_status, parse_date
from tasktrail.schemas.tasks import INT64_MAX, INT64_MIN, TaskInput

if TYPE_CHECKING:
    from datetime import date

    from tasktrail.schemas.tasks import TaskRead

STATUS_ORDER: tuple[str, ...] = ("todo", "doing", "eventually", "done")


def _parse_int(trimmed: str, *, field: str) -> int:
    try:
        value = int(trimmed)
    except ValueError as exc:
        raise ValidationError(f"invalid {field}: {trimmed!r} is not an integer") from exc
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValidationError(f"invalid {field}: {trimmed!r} is out of range")
    return value


def parse_priority(value: str | None) -> int:
    trimmed = (value or "").strip()
    if not trimmed:
        return 0
    return _parse_int(trimmed, field="priority")


def parse_due(value: str | None) -> date | None:
    return parse_date(value, field="due date")


def parse_parent(value: str | None) -> int | None:
    trimmed = (value or "").strip()
    if not trimmed:
        return None
    return _parse_int(trimmed, field="parent task id")


def parse_tags(value: str | None) -> list[str]:
    """Split a comma separated tag field, dropping blank entries."""
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def parse_task_form(fields: Mapping[str, str]) -> TaskInput:
    """Build a `TaskInput` from raw form text keyed by field name.

    Recognized keys: title, description, status, priority, due, tags, parent.
    Missing keys are treated as blank.
    """
    return TaskInput(
        title=fields.get("title", "").strip(),
        description=fields.get("description", "").strip(),
        status=fields.get("status", "").strip(),
        priority=parse_priority(fields.get("priority")),
        due_at=parse_due(fields.get("due")),
        parent_task_id=parse_parent(fields.get("parent")),
        tags=parse_tags(fields.get("tags")),
    )


def task_input_from_task(task: TaskRead) -> TaskInput:
    """Full replacement input reproducing `task`, parent and tags included."""
    return TaskInput(
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_at=task.due_at,
        parent_task_id=task.parent_task_id,
        tags=task.tag_names,
    )


def cycle_status(current: str | None, delta: int) -> str:
    value = normalize_status(current)
    index = STATUS_ORDER.index(value) if value in STATUS_ORDER else 0
    return STATUS_ORDER[(index + delta) % len(STATUS_ORDER)]


def next_status(current: str | None) -> str:
    return cycle_status(current, 1)


def prev_status(current: str | None) -> str:
    return cycle_status(current, -1)


def toggle_status(current: str | None, target: str) -> str:
    """Switch to `target`, or back to `todo` when already there."""
    target = normalize_status(target)
    if normalize_status(current) == target:
        return DEFAULT_STATUS
    return target
