"""Typed error taxonomy raised by the task repository and tree flattener.

Presentation layers choose behavior (status line text, HTTP status code) from
the error kind alone; `code` and `status_code` give them a stable mapping
without re-parsing messages.
"""

from __future__ import annotations


class TaskTrailError(Exception):
    """Base class for every error the core raises on purpose."""

    code = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrailError):
    """A derived value (priority, date, name, filter payload) is malformed."""

    code = "validation_error"
    status_code = 422


class NotFoundError(TaskTrailError):
    """The operation targets a task, tag or view that does not exist."""

    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, identifier: object) -> None:
        super().__init__(f"{kind} {identifier!r} not found")
        self.kind = kind
        self.identifier = identifier


class ConflictError(TaskTrailError):
    """A unique name is already taken (saved views)."""

    code = "conflict"
    status_code = 409


class StorageError(TaskTrailError):
    """I/O, connection or transaction failure in the storage engine."""

    code = "storage_error"
    status_code = 503


class StructuralError(TaskTrailError):
    """The parent/child graph is malformed (self-parenting or a cycle)."""

    code = "structural_error"
    status_code = 409

    def __init__(self, message: str, *, task_ids: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.task_ids = task_ids
