"""Task filter value and its wire form used by saved views."""

from __future__ import annotations

from datetime import date

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from tasktrail.core.errors import ValidationError
from tasktrail.core.normalize import normalize_tags, parse_date

RUNTIME_ANNOTATION_TYPES = (date,)


class TaskFilter(SQLModel):
    """Query shape passed to `TaskRepository.list_tasks`.

    Tags match ANY-of; every other criterion is combined with AND. Due bounds
    are inclusive and exclude tasks without a due date.
    """

    query: str = Field(default="", description="Case-insensitive substring of title/description.")
    status: str = Field(default="", description="Exact (normalized) status to match.")
    tags: list[str] = Field(default_factory=list, description="Tag names, matched ANY-of.")
    due_before: date | None = None
    due_after: date | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: object) -> object:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if value is None:
            return ""
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list | tuple) and all(isinstance(item, str) for item in value):
            return normalize_tags(value)
        return value

    @property
    def is_empty(self) -> bool:
        return not (
            self.query or self.status or self.tags or self.due_before or self.due_after
        )

    def to_json(self) -> str:
        """Serialize for `views.filter_json`; absent bounds are omitted, not nulled."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | bytes | None) -> TaskFilter:
        """Parse the wire form; an empty payload yields the empty filter."""
        if raw is None or not raw.strip():
            return cls()
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid filter payload: {exc.error_count()} error(s)") from exc

    @classmethod
    def from_query_params(
        cls,
        *,
        q: str | None = None,
        status: str | None = None,
        tags: str | None = None,
        due_before: str | None = None,
        due_after: str | None = None,
    ) -> TaskFilter:
        """Build a filter from HTTP query strings (`tags` is comma separated)."""
        return cls(
            query=q or "",
            status=status or "",
            tags=(tags or "").split(","),
            due_before=parse_date(due_before, field="due_before"),
            due_after=parse_date(due_after, field="due_after"),
        )
