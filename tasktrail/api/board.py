"""Status-lane board endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Query

from tasktrail.api.deps import REPOSITORY_DEP, TASK_FILTER_DEP, to_tree_rows
from tasktrail.core.config import settings
from tasktrail.schemas.board import BoardRead, TagCountRead
from tasktrail.schemas.filters import TaskFilter
from tasktrail.services.board import build_board
from tasktrail.services.repository import TaskRepository

router = APIRouter(prefix="/board", tags=["board"])


@router.get("", response_model=BoardRead)
async def get_board(
    task_filter: TaskFilter = TASK_FILTER_DEP,
    collapsed: list[int] = Query(default=[]),
    done_limit: int | None = Query(default=None, ge=0),
    repository: TaskRepository = REPOSITORY_DEP,
) -> BoardRead:
    """Split the filtered tasks into pending, doing, eventually and done lanes."""
    tasks = await repository.list_tasks(task_filter)
    tags = await repository.list_tags()
    board = build_board(
        tasks,
        tags,
        collapsed=collapsed,
        done_limit=settings.done_lane_limit if done_limit is None else done_limit,
    )
    return BoardRead(
        pending=to_tree_rows(board.pending),
        doing=board.doing,
        eventually=to_tree_rows(board.eventually),
        done=to_tree_rows(board.done),
        tag_counts=[
            TagCountRead(id=entry.id, name=entry.name, count=entry.count)
            for entry in board.tag_counts
        ],
    )
