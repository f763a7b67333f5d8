"""Shared FastAPI dependencies and query-parameter helpers for API routers."""

from __future__ import annotations

from fastapi import Depends, Query

from tasktrail.db.session import get_repository
from tasktrail.schemas.filters import TaskFilter
from tasktrail.schemas.tasks import TaskRead, TaskTreeRow
from tasktrail.services.tree import FlattenedTree

REPOSITORY_DEP = Depends(get_repository)


def task_filter_params(
    q: str | None = Query(default=None, description="Substring of title or description."),
    status: str | None = Query(default=None, description="Exact status to match."),
    tags: str | None = Query(default=None, description="Comma separated tag names, ANY-of."),
    due_before: str | None = Query(default=None, description="Inclusive upper due bound."),
    due_after: str | None = Query(default=None, description="Inclusive lower due bound."),
) -> TaskFilter:
    """Build a `TaskFilter` from list/tree/board query parameters."""
    return TaskFilter.from_query_params(
        q=q,
        status=status,
        tags=tags,
        due_before=due_before,
        due_after=due_after,
    )


TASK_FILTER_DEP = Depends(task_filter_params)


def to_tree_rows(flattened: FlattenedTree[TaskRead]) -> list[TaskTreeRow]:
    return [
        TaskTreeRow(
            task=row.task,
            depth=row.depth,
            has_children=row.has_children,
            collapsed=row.collapsed,
        )
        for row in flattened.rows()
    ]
