"""Tag catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from tasktrail.api.deps import REPOSITORY_DEP
from tasktrail.schemas.common import OkResponse
from tasktrail.schemas.tags import TagCreate, TagRead
from tasktrail.services.repository import TaskRepository

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagRead])
async def list_tags(repository: TaskRepository = REPOSITORY_DEP) -> list[TagRead]:
    """List all tags by name."""
    return await repository.list_tags()


@router.post("", response_model=TagRead)
async def create_tag(
    payload: TagCreate,
    repository: TaskRepository = REPOSITORY_DEP,
) -> TagRead:
    """Get or create a tag by case-insensitive name."""
    return await repository.create_tag(payload.name)


@router.get("/{tag_id}", response_model=TagRead)
async def get_tag(tag_id: int, repository: TaskRepository = REPOSITORY_DEP) -> TagRead:
    return await repository.get_tag(tag_id)


@router.delete("/{tag_id}", response_model=OkResponse)
async def delete_tag(tag_id: int, repository: TaskRepository = REPOSITORY_DEP) -> OkResponse:
    """Delete a tag and unlink it from every task."""
    await repository.delete_tag(tag_id)
    return OkResponse()
