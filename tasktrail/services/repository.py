"""Task repository: the only writer of tasks, tag links, history and views.

Every public operation opens its own session. Mutations run in a single
transaction covering the task row, its tag associations and its history entry,
so readers never see one without the others. Reads use one transaction per
call and therefore a single consistent snapshot.

Callers abort slow operations through ordinary asyncio cancellation (for
example ``async with asyncio.timeout(2): await repo.list_tasks(...)``); the
session context rolls the open transaction back on the way out.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col, select

from tasktrail.core.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    StructuralError,
    ValidationError,
)
from tasktrail.core.logging import get_logger
from tasktrail.core.normalize import normalize_status, normalize_tags
from tasktrail.core.time import utcnow
from tasktrail.models.history import (
    EVENT_CREATED,
    EVENT_DELETED,
    EVENT_UPDATED,
    HistoryEntry,
)
from tasktrail.models.tags import Tag, TaskTag
from tasktrail.models.tasks import Task
from tasktrail.models.views import View
from tasktrail.schemas.filters import TaskFilter
from tasktrail.schemas.history import HistoryEntryRead
from tasktrail.schemas.tags import TagRead
from tasktrail.schemas.tasks import TaskInput, TaskRead
from tasktrail.schemas.views import ViewRead, ViewSave
from tasktrail.services import audit

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import async_sessionmaker
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
# Execution option marking a session connection as a writer; see `configure_sqlite`.
WRITE_TRANSACTION_OPTION = "tasktrail_write"


def _out_of_range(operation: str) -> ValidationError:
    return ValidationError(f"{operation} failed: integer value out of range")


def _tag_read(tag: Tag) -> TagRead:
    return TagRead.model_validate(tag, from_attributes=True)


def _task_read(row: Task, tags: Sequence[TagRead]) -> TaskRead:
    return TaskRead.model_validate(row, from_attributes=True, update={"tags": list(tags)})


def _view_read(row: View) -> ViewRead:
    return ViewRead(
        id=row.id,
        name=row.name,
        filter=TaskFilter.from_json(row.filter_json),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TaskRepository:
    """CRUD over tasks, tags and views with normalization and audit history."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _transaction(
        self,
        operation: str,
        *,
        write: bool = False,
    ) -> AsyncIterator[AsyncSession]:
        """Open a session and transaction; commit on success, roll back otherwise.

        Write transactions take the SQLite write lock when they begin, so two
        concurrent read-then-write mutations queue instead of deadlocking.
        """
        try:
            async with self._session_maker() as session, session.begin():
                if write:
                    await session.connection(
                        execution_options={WRITE_TRANSACTION_OPTION: True},
                    )
                yield session
        except OverflowError as exc:
            raise _out_of_range(operation) from exc
        except SQLAlchemyError as exc:
            if isinstance(getattr(exc, "orig", None), OverflowError):
                raise _out_of_range(operation) from exc
            logger.warning(
                "task.repository.storage_error operation=%s error=%s",
                operation,
                exc,
            )
            raise StorageError(f"{operation} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Session-scoped helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _tags_by_task(
        session: AsyncSession,
        task_ids: Iterable[int],
    ) -> dict[int, list[TagRead]]:
        ids = list(task_ids)
        if not ids:
            return {}
        statement = (
            select(TaskTag.task_id, Tag)
            .join(Tag, col(Tag.id) == col(TaskTag.tag_id))
            .where(col(TaskTag.task_id).in_(ids))
            .order_by(func.lower(col(Tag.name)), col(Tag.id))
        )
        mapping: dict[int, list[TagRead]] = defaultdict(list)
        for task_id, tag in await session.exec(statement):
            mapping[task_id].append(_tag_read(tag))
        return mapping

    async def _get_row(self, session: AsyncSession, task_id: int) -> Task:
        row = await session.get(Task, task_id)
        if row is None:
            raise NotFoundError("task", task_id)
        return row

    async def _load_task(self, session: AsyncSession, task_id: int) -> TaskRead:
        row = await self._get_row(session, task_id)
        tags = await self._tags_by_task(session, [task_id])
        return _task_read(row, tags.get(task_id, []))

    async def _validate_parent(
        self,
        session: AsyncSession,
        *,
        task_id: int | None,
        parent_task_id: int | None,
    ) -> None:
        """Reject a missing parent, self-parenting, or a parent below the task."""
        if parent_task_id is None:
            return
        if task_id is not None and parent_task_id == task_id:
            raise StructuralError("a task cannot be its own parent", task_ids=(task_id,))
        parent = await session.get(Task, parent_task_id)
        if parent is None:
            raise NotFoundError("task", parent_task_id)
        if task_id is None:
            return

        seen: set[int] = {parent_task_id}
        current_id = parent.parent_task_id
        while current_id is not None:
            if current_id == task_id:
                raise StructuralError(
                    f"making task {parent_task_id} the parent of task {task_id} would "
                    "create a cycle",
                    task_ids=(task_id, parent_task_id),
                )
            if current_id in seen:
                # Pre-existing loop above the proposed parent.
                raise StructuralError(
                    f"task hierarchy above task {parent_task_id} contains a cycle",
                    task_ids=tuple(seen),
                )
            seen.add(current_id)
            ancestor = await session.get(Task, current_id)
            if ancestor is None:
                break
            current_id = ancestor.parent_task_id

    @staticmethod
    async def _get_or_create_tag(session: AsyncSession, name: str) -> Tag:
        statement = select(Tag).where(func.lower(col(Tag.name)) == name.lower())
        existing = (await session.exec(statement)).first()
        if existing is not None:
            return existing
        tag = Tag(name=name)
        session.add(tag)
        await session.flush()
        return tag

    async def _replace_tags(
        self,
        session: AsyncSession,
        task_id: int,
        names: Iterable[str],
    ) -> None:
        await session.exec(delete(TaskTag).where(col(TaskTag.task_id) == task_id))
        for name in normalize_tags(names):
            tag = await self._get_or_create_tag(session, name)
            session.add(TaskTag(task_id=task_id, tag_id=tag.id))
        await session.flush()

    @staticmethod
    def _append_history(
        session: AsyncSession,
        *,
        task_id: int,
        event_type: str,
        details: str,
    ) -> None:
        session.add(HistoryEntry(task_id=task_id, event_type=event_type, details=details))

    @staticmethod
    def _apply_input(row: Task, payload: TaskInput) -> None:
        row.title = payload.title
        row.description = payload.description
        row.status = normalize_status(payload.status)
        row.priority = payload.priority
        row.due_at = payload.due_at
        row.parent_task_id = payload.parent_task_id

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(self, payload: TaskInput) -> TaskRead:
        """Insert a task, link its tags and record a `created` history entry."""
        async with self._transaction("create_task", write=True) as session:
            await self._validate_parent(
                session,
                task_id=None,
                parent_task_id=payload.parent_task_id,
            )
            now = utcnow()
            row = Task(created_at=now, updated_at=now)
            self._apply_input(row, payload)
            session.add(row)
            await session.flush()
            task_id = row.id
            await self._replace_tags(session, task_id, payload.tags)

            created = await self._load_task(session, task_id)
            self._append_history(
                session,
                task_id=task_id,
                event_type=EVENT_CREATED,
                details=audit.format_created(created),
            )
        logger.info(
            "task.repository.created task_id=%s status=%s tags=%s",
            created.id,
            created.status,
            len(created.tags),
        )
        return created

    async def update_task(self, task_id: int, payload: TaskInput) -> TaskRead:
        """Replace a task's fields and tags and record the field-level diff."""
        async with self._transaction("update_task", write=True) as session:
            before = await self._load_task(session, task_id)
            await self._validate_parent(
                session,
                task_id=task_id,
                parent_task_id=payload.parent_task_id,
            )
            row = await self._get_row(session, task_id)
            self._apply_input(row, payload)
            row.updated_at = utcnow()
            session.add(row)
            await session.flush()
            await self._replace_tags(session, task_id, payload.tags)

            after = await self._load_task(session, task_id)
            changes = audit.compute_changes(before, after)
            self._append_history(
                session,
                task_id=task_id,
                event_type=EVENT_UPDATED,
                details=audit.render_changes(changes),
            )
        logger.info(
            "task.repository.updated task_id=%s changed_fields=%s",
            task_id,
            ",".join(change.field for change in changes) or "none",
        )
        return after

    async def delete_task(self, task_id: int) -> None:
        """Record a `deleted` snapshot, then remove the task row.

        Children are re-rooted by the `ON DELETE SET NULL` parent reference,
        tag links cascade, and the history trail is kept.
        """
        async with self._transaction("delete_task", write=True) as session:
            before = await self._load_task(session, task_id)
            self._append_history(
                session,
                task_id=task_id,
                event_type=EVENT_DELETED,
                details=audit.format_deleted(before),
            )
            await session.flush()
            await session.exec(delete(Task).where(col(Task.id) == task_id))
        logger.info("task.repository.deleted task_id=%s", task_id)

    async def get_task_with_tags(self, task_id: int) -> TaskRead:
        async with self._transaction("get_task_with_tags") as session:
            return await self._load_task(session, task_id)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[TaskRead]:
        """Return tasks matching the filter, ordered by priority desc then id.

        The order is deterministic and is used directly as sibling order when
        the result is flattened into a tree.
        """
        task_filter = task_filter or TaskFilter()
        statement = select(Task)
        if task_filter.query:
            needle = task_filter.query
            statement = statement.where(
                or_(
                    col(Task.title).icontains(needle, autoescape=True),
                    col(Task.description).icontains(needle, autoescape=True),
                ),
            )
        if task_filter.status:
            statement = statement.where(col(Task.status) == task_filter.status)
        if task_filter.tags:
            tagged = (
                select(TaskTag.task_id)
                .join(Tag, col(Tag.id) == col(TaskTag.tag_id))
                .where(func.lower(col(Tag.name)).in_([name.lower() for name in task_filter.tags]))
            )
            statement = statement.where(col(Task.id).in_(tagged))
        if task_filter.due_before is not None:
            statement = statement.where(col(Task.due_at) <= task_filter.due_before)
        if task_filter.due_after is not None:
            statement = statement.where(col(Task.due_at) >= task_filter.due_after)
        statement = statement.order_by(col(Task.priority).desc(), col(Task.id).asc())

        async with self._transaction("list_tasks") as session:
            rows = list(await session.exec(statement))
            tags = await self._tags_by_task(session, [row.id for row in rows])
            result = [_task_read(row, tags.get(row.id, [])) for row in rows]
        logger.debug("task.repository.listed count=%s", len(result))
        return result

    async def set_task_tags(self, task_id: int, names: Iterable[str]) -> TaskRead:
        """Replace a task's tag links; repeating the same names changes nothing.

        A changed tag set is recorded as an `updated` history entry.
        """
        async with self._transaction("set_task_tags", write=True) as session:
            before = await self._load_task(session, task_id)
            await self._replace_tags(session, task_id, names)
            after = await self._load_task(session, task_id)
            changes = audit.compute_changes(before, after)
            if changes:
                row = await self._get_row(session, task_id)
                row.updated_at = utcnow()
                session.add(row)
                after = after.model_copy(update={"updated_at": row.updated_at})
                self._append_history(
                    session,
                    task_id=task_id,
                    event_type=EVENT_UPDATED,
                    details=audit.render_changes(changes),
                )
        logger.info("task.repository.tags_set task_id=%s tags=%s", task_id, len(after.tags))
        return after

    async def list_history(self, task_id: int) -> list[HistoryEntryRead]:
        """Return a task's trail oldest first; works for deleted tasks too."""
        statement = (
            select(HistoryEntry)
            .where(col(HistoryEntry.task_id) == task_id)
            .order_by(col(HistoryEntry.created_at).asc(), col(HistoryEntry.id).asc())
        )
        async with self._transaction("list_history") as session:
            rows = list(await session.exec(statement))
        return [HistoryEntryRead.model_validate(row, from_attributes=True) for row in rows]

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def list_tags(self) -> list[TagRead]:
        statement = select(Tag).order_by(func.lower(col(Tag.name)), col(Tag.id))
        async with self._transaction("list_tags") as session:
            rows = list(await session.exec(statement))
        return [_tag_read(row) for row in rows]

    async def get_tag(self, tag_id: int) -> TagRead:
        async with self._transaction("get_tag") as session:
            row = await session.get(Tag, tag_id)
            if row is None:
                raise NotFoundError("tag", tag_id)
            return _tag_read(row)

    async def create_tag(self, name: str) -> TagRead:
        """Get-or-create by case-insensitive name."""
        names = normalize_tags([name])
        if not names:
            raise ValidationError("tag name must not be blank")
        async with self._transaction("create_tag", write=True) as session:
            tag = await self._get_or_create_tag(session, names[0])
            result = _tag_read(tag)
        return result

    async def delete_tag(self, tag_id: int) -> None:
        """Delete a tag; its task links cascade away."""
        async with self._transaction("delete_tag", write=True) as session:
            row = await session.get(Tag, tag_id)
            if row is None:
                raise NotFoundError("tag", tag_id)
            await session.exec(delete(TaskTag).where(col(TaskTag.tag_id) == tag_id))
            await session.delete(row)
        logger.info("task.repository.tag_deleted tag_id=%s", tag_id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    async def save_view(self, payload: ViewSave) -> ViewRead:
        """Insert a view when `payload.id` is empty, otherwise update it by id."""
        name = payload.name.strip()
        if not name:
            raise ValidationError("view name must not be blank")
        filter_json = payload.filter.to_json()

        async with self._transaction("save_view", write=True) as session:
            clash_statement = select(View).where(col(View.name) == name)
            if payload.id is not None:
                clash_statement = clash_statement.where(col(View.id) != payload.id)
            if (await session.exec(clash_statement)).first() is not None:
                raise ConflictError(f"view name {name!r} is already in use")

            if payload.id is None:
                row = View(name=name, filter_json=filter_json)
            else:
                existing = await session.get(View, payload.id)
                if existing is None:
                    raise NotFoundError("view", payload.id)
                row = existing
                row.name = name
                row.filter_json = filter_json
                row.updated_at = utcnow()
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise ConflictError(f"view name {name!r} is already in use") from exc
            result = _view_read(row)
        logger.info("task.repository.view_saved view_id=%s name=%s", result.id, result.name)
        return result

    async def list_views(self) -> list[ViewRead]:
        statement = select(View).order_by(col(View.name).asc())
        async with self._transaction("list_views") as session:
            rows = list(await session.exec(statement))
        return [_view_read(row) for row in rows]

    async def get_view_by_name(self, name: str) -> ViewRead:
        statement = select(View).where(col(View.name) == name.strip())
        async with self._transaction("get_view_by_name") as session:
            row = (await session.exec(statement)).first()
            if row is None:
                raise NotFoundError("view", name)
            return _view_read(row)

    async def delete_view(self, view_id: int) -> None:
        async with self._transaction("delete_view", write=True) as session:
            row = await session.get(View, view_id)
            if row is None:
                raise NotFoundError("view", view_id)
            await session.delete(row)
        logger.info("task.repository.view_deleted view_id=%s", view_id)
