# ruff: noqa: INP001
"""Engine setup, schema initialization and migration tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from tasktrail.core.config import settings
from tasktrail.db import session as db_session
from tasktrail.db.session import _normalize_database_url, build_engine, build_session_maker, init_db
from tasktrail.schemas.tasks import TaskInput
from tasktrail.services.repository import TaskRepository


def test_normalize_database_url() -> None:
    assert _normalize_database_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert _normalize_database_url("sqlite+aiosqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert _normalize_database_url("not-a-url") == "not-a-url"


@pytest.mark.asyncio
async def test_connections_enforce_foreign_keys(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'fk.db'}")
    try:
        async with engine.connect() as conn:
            enabled = (await conn.execute(text("PRAGMA foreign_keys"))).scalar_one()
        assert enabled == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_init_db_creates_schema_for_explicit_engine(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}")
    try:
        await init_db(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert {"tasks", "tags", "task_tags", "history", "views"} <= set(tables)
    finally:
        await engine.dispose()


def test_migrations_build_a_working_schema(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    db_session.run_migrations()

    async def _exercise() -> list[str]:
        engine = build_engine(url)
        try:
            repository = TaskRepository(build_session_maker(engine))
            parent = await repository.create_task(TaskInput(title="p", tags=["Work"]))
            await repository.create_task(
                TaskInput(title="c", parent_task_id=parent.id, tags=["work"]),
            )
            await repository.delete_task(parent.id)
            remaining = await repository.list_tasks()
            assert remaining[0].parent_task_id is None
            return [tag.name for tag in await repository.list_tags()]
        finally:
            await engine.dispose()

    assert asyncio.run(_exercise()) == ["Work"]
