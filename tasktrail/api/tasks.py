"""Task CRUD, tree, tag-assignment and history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from tasktrail.api.deps import REPOSITORY_DEP, TASK_FILTER_DEP, to_tree_rows
from tasktrail.schemas.common import OkResponse
from tasktrail.schemas.filters import TaskFilter
from tasktrail.schemas.history import HistoryEntryRead
from tasktrail.schemas.tags import TaskTagsUpdate
from tasktrail.schemas.tasks import TaskDetailRead, TaskInput, TaskRead, TaskTreeRow
from tasktrail.services.repository import TaskRepository
from tasktrail.services.tree import flatten_tree

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    task_filter: TaskFilter = TASK_FILTER_DEP,
    repository: TaskRepository = REPOSITORY_DEP,
) -> list[TaskRead]:
    """List tasks matching the filter, highest priority first."""
    return await repository.list_tasks(task_filter)


@router.post("", response_model=TaskRead)
async def create_task(
    payload: TaskInput,
    repository: TaskRepository = REPOSITORY_DEP,
) -> TaskRead:
    """Create a task with its tags and record a `created` history entry."""
    return await repository.create_task(payload)


@router.get("/tree", response_model=list[TaskTreeRow])
async def list_task_tree(
    task_filter: TaskFilter = TASK_FILTER_DEP,
    collapsed: list[int] = Query(default=[]),
    repository: TaskRepository = REPOSITORY_DEP,
) -> list[TaskTreeRow]:
    """Return the filtered tasks as depth-annotated rows in tree order.

    Tasks whose parent is filtered out appear as roots; children of a
    `collapsed` task are omitted.
    """
    tasks = await repository.list_tasks(task_filter)
    return to_tree_rows(flatten_tree(tasks, collapsed))


@router.get("/{task_id}", response_model=TaskDetailRead)
async def get_task(
    task_id: int,
    repository: TaskRepository = REPOSITORY_DEP,
) -> TaskDetailRead:
    """Get a task with its tags and full history trail."""
    task = await repository.get_task_with_tags(task_id)
    history = await repository.list_history(task_id)
    return TaskDetailRead(task=task, history=history)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    payload: TaskInput,
    repository: TaskRepository = REPOSITORY_DEP,
) -> TaskRead:
    """Replace a task's fields and tags; the diff is recorded in history."""
    return await repository.update_task(task_id, payload)


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(
    task_id: int,
    repository: TaskRepository = REPOSITORY_DEP,
) -> OkResponse:
    """Delete a task; children are re-rooted and history is kept."""
    await repository.delete_task(task_id)
    return OkResponse()


@router.put("/{task_id}/tags", response_model=TaskRead)
async def set_task_tags(
    task_id: int,
    payload: TaskTagsUpdate,
    repository: TaskRepository = REPOSITORY_DEP,
) -> TaskRead:
    """Replace the tag set of one task."""
    return await repository.set_task_tags(task_id, payload.tags)


@router.get("/{task_id}/history", response_model=list[HistoryEntryRead])
async def list_task_history(
    task_id: int,
    repository: TaskRepository = REPOSITORY_DEP,
) -> list[HistoryEntryRead]:
    """List history entries oldest first; also works for deleted tasks."""
    return await repository.list_history(task_id)
