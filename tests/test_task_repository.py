# ruff: noqa: INP001
"""Integration tests for TaskRepository against a file-backed SQLite database."""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncEngine

from tasktrail.core.errors import NotFoundError, StorageError, StructuralError, ValidationError
from tasktrail.core.time import utcnow
from tasktrail.db.session import build_engine, build_session_maker, create_schema
from tasktrail.schemas.filters import TaskFilter
from tasktrail.schemas.tasks import TaskInput
from tasktrail.services import audit
from tasktrail.services.forms import task_input_from_task
from tasktrail.services.repository import TaskRepository
from tasktrail.services.tree import flatten_tree


async def _make_repository(tmp_path: Path) -> tuple[AsyncEngine, TaskRepository]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasktrail.db'}")
    await create_schema(engine)
    return engine, TaskRepository(build_session_maker(engine))


@pytest.mark.asyncio
async def test_create_task_normalizes_and_records_created_entry(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(
            TaskInput(title="Write tests", status="  DOING ", tags=["Work", " work ", "Home"]),
        )
        assert created.status == "doing"
        assert sorted(created.tag_names) == ["Home", "Work"]

        loaded = await repository.get_task_with_tags(created.id)
        assert len(loaded.tags) == 2

        history = await repository.list_history(created.id)
        assert [entry.event_type for entry in history] == ["created"]
        assert history[0].details == (
            "created: title='Write tests' status=doing priority=0 due=none tags=Home,Work"
        )
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_blank_status_defaults_to_todo(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="x", status="   "))
        assert created.status == "todo"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_update_due_only_records_single_change(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="Plan", tags=["a", "b"]))
        payload = task_input_from_task(created).model_copy(update={"due_at": date(2025, 1, 1)})

        updated = await repository.update_task(created.id, payload)
        assert updated.due_at == date(2025, 1, 1)

        history = await repository.list_history(created.id)
        assert [entry.event_type for entry in history] == ["created", "updated"]
        assert history[-1].details == "updated: due: 'none' -> '2025-01-01'"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_update_without_changes_is_still_recorded(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="Same", tags=["x"]))
        await repository.update_task(created.id, task_input_from_task(created))

        history = await repository.list_history(created.id)
        assert history[-1].details == "updated: no changes"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_update_missing_task_raises_not_found(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        with pytest.raises(NotFoundError):
            await repository.update_task(404, TaskInput(title="ghost"))
        with pytest.raises(NotFoundError):
            await repository.delete_task(404)
        with pytest.raises(NotFoundError):
            await repository.get_task_with_tags(404)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_delete_parent_reroots_child_and_keeps_history(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        parent = await repository.create_task(TaskInput(title="Parent", tags=["p"]))
        child = await repository.create_task(
            TaskInput(title="Child", parent_task_id=parent.id),
        )

        await repository.delete_task(parent.id)

        reloaded = await repository.get_task_with_tags(child.id)
        assert reloaded.parent_task_id is None

        history = await repository.list_history(parent.id)
        assert [entry.event_type for entry in history] == ["created", "deleted"]
        assert history[-1].details == (
            "deleted: title='Parent' status=todo priority=0 due=none tags=p"
        )
        # The tag itself survives; only the link is removed.
        assert [tag.name for tag in await repository.list_tags()] == ["p"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_parent_must_exist(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        with pytest.raises(NotFoundError):
            await repository.create_task(TaskInput(title="orphan", parent_task_id=99))
        assert await repository.list_tasks() == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_update_rejects_self_parent_and_cycles(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        a = await repository.create_task(TaskInput(title="A"))
        b = await repository.create_task(TaskInput(title="B", parent_task_id=a.id))
        c = await repository.create_task(TaskInput(title="C", parent_task_id=b.id))

        with pytest.raises(StructuralError):
            await repository.update_task(
                a.id,
                task_input_from_task(a).model_copy(update={"parent_task_id": a.id}),
            )
        with pytest.raises(StructuralError):
            await repository.update_task(
                a.id,
                task_input_from_task(a).model_copy(update={"parent_task_id": c.id}),
            )

        reloaded = await repository.get_task_with_tags(a.id)
        assert reloaded.parent_task_id is None
        assert len(await repository.list_history(a.id)) == 1

        rows = flatten_tree(await repository.list_tasks()).rows()
        assert [(row.task.title, row.depth) for row in rows] == [("A", 0), ("B", 1), ("C", 2)]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_failed_mutation_leaves_no_partial_state(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:

        def _boom(_task: object) -> str:
            raise RuntimeError("audit failed")

        monkeypatch.setattr(audit, "format_created", _boom)
        with pytest.raises(RuntimeError):
            await repository.create_task(TaskInput(title="half", tags=["t"]))

        assert await repository.list_tasks() == []
        assert await repository.list_tags() == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_list_tasks_filters_and_orders(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        low = await repository.create_task(
            TaskInput(title="Write report", priority=1, tags=["Work"], due_at=date(2025, 1, 10)),
        )
        high = await repository.create_task(
            TaskInput(title="Groceries", description="milk", priority=5, tags=["Home"]),
        )
        tie = await repository.create_task(
            TaskInput(title="Call plumber", priority=1, status="done", due_at=date(2025, 2, 1)),
        )

        everything = await repository.list_tasks()
        assert [task.id for task in everything] == [high.id, low.id, tie.id]

        by_query = await repository.list_tasks(TaskFilter(query="MILK"))
        assert [task.id for task in by_query] == [high.id]

        by_status = await repository.list_tasks(TaskFilter(status="Done"))
        assert [task.id for task in by_status] == [tie.id]

        by_due = await repository.list_tasks(
            TaskFilter(due_after=date(2025, 1, 10), due_before=date(2025, 1, 31)),
        )
        assert [task.id for task in by_due] == [low.id]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_query_treats_like_wildcards_literally(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        await repository.create_task(TaskInput(title="100% done"))
        await repository.create_task(TaskInput(title="1000 things"))

        result = await repository.list_tasks(TaskFilter(query="100%"))
        assert [task.title for task in result] == ["100% done"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_multi_tag_filter_matches_any_tag(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        work = await repository.create_task(TaskInput(title="w", tags=["Work"]))
        home = await repository.create_task(TaskInput(title="h", tags=["Home"]))
        both = await repository.create_task(TaskInput(title="b", tags=["Work", "Home"]))
        await repository.create_task(TaskInput(title="none"))

        result = await repository.list_tasks(TaskFilter(tags=["work", "HOME"]))
        assert [task.id for task in result] == [work.id, home.id, both.id]

        combined = await repository.list_tasks(TaskFilter(tags=["work"], status="done"))
        assert combined == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_tags_are_shared_case_insensitively(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        await repository.create_task(TaskInput(title="one", tags=["Work"]))
        second = await repository.create_task(TaskInput(title="two", tags=["work"]))

        tags = await repository.list_tags()
        assert [tag.name for tag in tags] == ["Work"]
        assert second.tag_names == ["Work"]

        same = await repository.create_tag("  WORK ")
        assert same.id == tags[0].id
        with pytest.raises(ValidationError):
            await repository.create_tag("   ")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_set_task_tags_is_idempotent(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="t"))

        first = await repository.set_task_tags(created.id, ["b", "A", "a"])
        second = await repository.set_task_tags(created.id, ["b", "A"])

        assert first.tag_names == second.tag_names == ["A", "b"]
        history = await repository.list_history(created.id)
        assert [entry.details for entry in history[1:]] == ["updated: tags: 'none' -> 'A,b'"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_delete_tag_unlinks_tasks(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="t", tags=["gone", "kept"]))
        gone = next(tag for tag in created.tags if tag.name == "gone")

        await repository.delete_tag(gone.id)

        reloaded = await repository.get_task_with_tags(created.id)
        assert reloaded.tag_names == ["kept"]
        with pytest.raises(NotFoundError):
            await repository.get_tag(gone.id)
        with pytest.raises(NotFoundError):
            await repository.delete_tag(gone.id)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_history_of_unknown_task_is_empty(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        assert await repository.list_history(12345) == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_unreachable_database_raises_storage_error(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'db.sqlite'}")
    repository = TaskRepository(build_session_maker(engine))
    try:
        with pytest.raises(StorageError):
            await repository.list_tasks()
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_timestamps_read_back_as_naive_utc(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        before = utcnow()
        created = await repository.create_task(TaskInput(title="stamped"))
        loaded = await repository.get_task_with_tags(created.id)

        assert loaded.created_at.tzinfo is None
        assert loaded.created_at == created.created_at
        assert before - timedelta(seconds=1) <= loaded.created_at <= utcnow()
        assert loaded.updated_at >= loaded.created_at

        history = await repository.list_history(created.id)
        assert history[0].created_at.tzinfo is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_set_task_tags_returns_bumped_updated_at(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="t"))
        tagged = await repository.set_task_tags(created.id, ["x"])

        reloaded = await repository.get_task_with_tags(created.id)
        assert tagged.updated_at == reloaded.updated_at
        assert tagged.updated_at >= created.updated_at
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_updates_all_commit(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        created = await repository.create_task(TaskInput(title="shared"))

        results = await asyncio.gather(
            *(
                repository.update_task(created.id, TaskInput(title="shared", priority=index))
                for index in range(1, 9)
            ),
            *(repository.create_task(TaskInput(title=f"new {index}")) for index in range(4)),
        )

        assert len(results) == 12
        history = await repository.list_history(created.id)
        assert [entry.event_type for entry in history].count("updated") == 8
        assert len(await repository.list_tasks()) == 5
    finally:
        await engine.dispose()


def test_task_input_rejects_out_of_range_integers() -> None:
    with pytest.raises(PydanticValidationError):
        TaskInput(title="t", priority=2**63)
    with pytest.raises(PydanticValidationError):
        TaskInput(title="t", parent_task_id=-(2**63) - 1)


@pytest.mark.asyncio
async def test_out_of_range_integers_raise_validation_error(tmp_path: Path) -> None:
    engine, repository = await _make_repository(tmp_path)
    try:
        with pytest.raises(ValidationError):
            await repository.create_task(TaskInput.model_construct(title="t", priority=2**63))
        with pytest.raises(ValidationError):
            await repository.get_task_with_tags(2**64)
        with pytest.raises(ValidationError):
            await repository.delete_task(2**64)
        assert await repository.list_tasks() == []
    finally:
        await engine.dispose()
