"""Saved view endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from tasktrail.api.deps import REPOSITORY_DEP
from tasktrail.schemas.common import OkResponse
from tasktrail.schemas.views import ViewRead, ViewSave
from tasktrail.services.repository import TaskRepository

router = APIRouter(prefix="/views", tags=["views"])


@router.get("", response_model=list[ViewRead])
async def list_views(repository: TaskRepository = REPOSITORY_DEP) -> list[ViewRead]:
    return await repository.list_views()


@router.post("", response_model=ViewRead)
async def save_view(
    payload: ViewSave,
    repository: TaskRepository = REPOSITORY_DEP,
) -> ViewRead:
    """Insert a view, or update it in place when `id` is given."""
    return await repository.save_view(payload)


@router.get("/{name}", response_model=ViewRead)
async def get_view(name: str, repository: TaskRepository = REPOSITORY_DEP) -> ViewRead:
    return await repository.get_view_by_name(name)


@router.delete("/{view_id}", response_model=OkResponse)
async def delete_view(view_id: int, repository: TaskRepository = REPOSITORY_DEP) -> OkResponse:
    await repository.delete_view(view_id)
    return OkResponse()
