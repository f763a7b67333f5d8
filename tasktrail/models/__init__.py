"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from tasktrail.models.history import HistoryEntry
from tasktrail.models.tags import Tag, TaskTag
from tasktrail.models.tasks import Task
from tasktrail.models.views import View

__all__ = [
    "HistoryEntry",
    "Tag",
    "Task",
    "TaskTag",
    "View",
]
