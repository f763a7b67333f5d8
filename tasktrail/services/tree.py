"""Flatten a parent-pointer task list into an ordered, depth-annotated tree.

The same function backs the terminal board lanes and the HTTP tree endpoint,
so it is kept pure: no I/O, no mutation of its inputs, no retained state.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from tasktrail.core.errors import StructuralError


class TreeNode(Protocol):
    @property
    def id(self) -> int: ...
    @property
    def parent_task_id(self) -> int | None: ...


NodeT = TypeVar("NodeT", bound=TreeNode)


@dataclass(frozen=True, slots=True)
class TreeRow(Generic[NodeT]):
    task: NodeT
    depth: int
    has_children: bool
    collapsed: bool


@dataclass(frozen=True, slots=True)
class FlattenedTree(Generic[NodeT]):
    """Depth-first pre-order walk of the forest restricted to the input set."""

    tasks: list[NodeT] = field(default_factory=list)
    depths: dict[int, int] = field(default_factory=dict)
    has_children: dict[int, bool] = field(default_factory=dict)
    collapsed: frozenset[int] = frozenset()

    def rows(self) -> list[TreeRow[NodeT]]:
        return [
            TreeRow(
                task=task,
                depth=self.depths[task.id],
                has_children=self.has_children.get(task.id, False),
                collapsed=task.id in self.collapsed,
            )
            for task in self.tasks
        ]


def effective_parents(tasks: Sequence[TreeNode]) -> dict[int, int | None]:
    """Map each task id to its parent id if that parent is in the set, else None."""
    present = {task.id for task in tasks}
    parents: dict[int, int | None] = {}
    for task in tasks:
        parent_id = task.parent_task_id
        parents[task.id] = parent_id if parent_id is not None and parent_id in present else None
    return parents


def ensure_acyclic(parents: dict[int, int | None]) -> None:
    """Raise `StructuralError` if any parent chain loops back on itself."""
    acyclic: set[int] = set()
    for start in parents:
        path: list[int] = []
        on_path: set[int] = set()
        current: int | None = start
        while current is not None and current not in acyclic:
            if current in on_path:
                cycle = tuple(path[path.index(current) :])
                raise StructuralError(
                    "task hierarchy contains a cycle: "
                    + " -> ".join(str(task_id) for task_id in (*cycle, current)),
                    task_ids=cycle,
                )
            on_path.add(current)
            path.append(current)
            current = parents.get(current)
        acyclic.update(path)


def flatten_tree(
    tasks: Sequence[NodeT],
    collapsed: Iterable[int] | None = None,
) -> FlattenedTree[NodeT]:
    """Order `tasks` depth-first, keeping input order among siblings.

    A task whose parent is missing from `tasks` is a root for this view. A
    collapsed task is emitted but its descendants are omitted.
    """
    collapsed_ids = frozenset(collapsed or ())
    if not tasks:
        return FlattenedTree(collapsed=collapsed_ids)

    input_order = {task.id: index for index, task in enumerate(tasks)}
    parents = effective_parents(tasks)
    ensure_acyclic(parents)

    children_by_parent: dict[int | None, list[NodeT]] = defaultdict(list)
    for task in tasks:
        children_by_parent[parents[task.id]].append(task)
    for group in children_by_parent.values():
        group.sort(key=lambda task: input_order[task.id])

    has_children = {
        parent_id: True
        for parent_id, group in children_by_parent.items()
        if parent_id is not None and group
    }

    visible: list[NodeT] = []
    depths: dict[int, int] = {}
    stack: list[tuple[NodeT, int]] = [
        (task, 0) for task in reversed(children_by_parent.get(None, []))
    ]
    while stack:
        task, depth = stack.pop()
        visible.append(task)
        depths[task.id] = depth
        if task.id in collapsed_ids:
            continue
        stack.extend(
            (child, depth + 1) for child in reversed(children_by_parent.get(task.id, []))
        )

    return FlattenedTree(
        tasks=visible,
        depths=depths,
        has_children=has_children,
        collapsed=collapsed_ids,
    )
