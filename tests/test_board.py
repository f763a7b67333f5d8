# ruff: noqa: INP001
"""Tests for board lane construction and tag counts."""

from __future__ import annotations

from datetime import datetime, timedelta

from tasktrail.schemas.tags import TagRead
from tasktrail.schemas.tasks import TaskRead
from tasktrail.services.board import build_board

BASE = datetime(2025, 1, 1, 9, 0, 0)


def _tag(tag_id: int, name: str) -> TagRead:
    return TagRead(id=tag_id, name=name, created_at=BASE)


def _task(
    task_id: int,
    status: str,
    *,
    parent: int | None = None,
    minutes: int = 0,
    tags: list[TagRead] | None = None,
) -> TaskRead:
    return TaskRead(
        id=task_id,
        parent_task_id=parent,
        title=f"task {task_id}",
        description="",
        status=status,
        priority=0,
        created_at=BASE,
        updated_at=BASE + timedelta(minutes=minutes),
        tags=tags or [],
    )


def test_lanes_partition_by_status() -> None:
    tasks = [
        _task(1, "todo"),
        _task(2, "doing", parent=1),
        _task(3, "blocked"),
        _task(4, "eventually"),
        _task(5, "done", parent=1),
    ]
    board = build_board(tasks)

    assert [task.id for task in board.pending.tasks] == [1, 2, 3]
    assert board.pending.depths == {1: 0, 2: 1, 3: 0}
    assert [task.id for task in board.doing] == [2]
    assert [task.id for task in board.eventually.tasks] == [4]
    # The parent lives in another lane, so the done task is a root here.
    assert board.done.depths == {5: 0}


def test_done_lane_sorted_by_update_and_capped() -> None:
    tasks = [_task(task_id, "done", minutes=task_id) for task_id in range(1, 6)]
    board = build_board(tasks, done_limit=3)

    assert [task.id for task in board.done.tasks] == [5, 4, 3]


def test_collapsed_ids_apply_to_tree_lanes() -> None:
    tasks = [_task(1, "todo"), _task(2, "todo", parent=1)]
    board = build_board(tasks, collapsed={1})

    assert [row.task.id for row in board.pending.rows()] == [1]
    assert board.pending.rows()[0].collapsed is True


def test_tag_counts_sorted_by_count_then_name() -> None:
    work, home, misc = _tag(1, "work"), _tag(2, "home"), _tag(3, "misc")
    tasks = [
        _task(1, "todo", tags=[work, home]),
        _task(2, "done", tags=[work]),
        _task(3, "doing", tags=[misc]),
    ]
    board = build_board(tasks, [misc, home, work])

    assert [(entry.name, entry.count) for entry in board.tag_counts] == [
        ("work", 2),
        ("home", 1),
        ("misc", 1),
    ]
