"""Status lanes and tag counts for the terminal board.

Splits one filtered task list into the lanes the board shows and flattens
each tree lane with `flatten_tree`, the same function the HTTP tree endpoint
uses.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tasktrail.services.tree import FlattenedTree, flatten_tree

if TYPE_CHECKING:
    from tasktrail.schemas.tags import TagRead
    from tasktrail.schemas.tasks import TaskRead

DEFAULT_DONE_LIMIT = 10


@dataclass(frozen=True, slots=True)
class TagCount:
    id: int
    name: str
    count: int


@dataclass(frozen=True, slots=True)
class Board:
    pending: FlattenedTree[TaskRead]
    eventually: FlattenedTree[TaskRead]
    done: FlattenedTree[TaskRead]
    doing: list[TaskRead] = field(default_factory=list)
    tag_counts: list[TagCount] = field(default_factory=list)


def count_tags(tasks: Iterable[TaskRead], tags: Iterable[TagRead]) -> list[TagCount]:
    """Count tag usage across `tasks`; most used first, then by name."""
    usage = Counter(tag.name for task in tasks for tag in task.tags)
    entries = [TagCount(id=tag.id, name=tag.name, count=usage[tag.name]) for tag in tags]
    entries.sort(key=lambda entry: (-entry.count, entry.name))
    return entries


def build_board(
    tasks: Sequence[TaskRead],
    tags: Iterable[TagRead] = (),
    *,
    collapsed: Iterable[int] | None = None,
    done_limit: int = DEFAULT_DONE_LIMIT,
) -> Board:
    """Partition tasks into lanes; unknown statuses land in `pending`."""
    collapsed_ids = frozenset(collapsed or ())
    pending: list[TaskRead] = []
    doing: list[TaskRead] = []
    eventually: list[TaskRead] = []
    done: list[TaskRead] = []
    for task in tasks:
        if task.status == "done":
            done.append(task)
        elif task.status == "eventually":
            eventually.append(task)
        else:
            if task.status == "doing":
                doing.append(task)
            pending.append(task)

    # Most recently finished first.
    done.sort(key=lambda task: task.updated_at, reverse=True)
    done = done[:done_limit]

    return Board(
        pending=flatten_tree(pending, collapsed_ids),
        eventually=flatten_tree(eventually, collapsed_ids),
        done=flatten_tree(done, collapsed_ids),
        doing=doing,
        tag_counts=count_tags(tasks, tags),
    )
