"""Public schema exports shared across services and API route modules."""

from tasktrail.schemas.board import BoardRead, TagCountRead
from tasktrail.schemas.common import HealthStatusResponse, OkResponse
from tasktrail.schemas.filters import TaskFilter
from tasktrail.schemas.history import HistoryEntryRead
from tasktrail.schemas.tags import TagCreate, TagRead, TaskTagsUpdate
from tasktrail.schemas.tasks import TaskDetailRead, TaskInput, TaskRead, TaskTreeRow
from tasktrail.schemas.views import ViewRead, ViewSave

__all__ = [
    "BoardRead",
    "HealthStatusResponse",
    "HistoryEntryRead",
    "OkResponse",
    "TagCountRead",
    "TagCreate",
    "TagRead",
    "TaskDetailRead",
    "TaskFilter",
    "TaskInput",
    "TaskRead",
    "TaskTagsUpdate",
    "TaskTreeRow",
    "ViewRead",
    "ViewSave",
]
