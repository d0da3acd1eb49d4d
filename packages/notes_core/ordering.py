"""Sibling ordering for pages within a workspace and markdowns within a page.

New children are appended at ``max(position) + 1`` (``0`` for the first
child). Positions are never renumbered after a delete, so gaps are
expected; only the relative order matters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import InstrumentedAttribute

from .models import Markdown, Page
from .storage import Executor

__all__ = [
    "SiblingScope",
    "pages_of",
    "markdowns_of",
    "next_position",
    "neighbor",
]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SiblingScope:
    """The set of rows sharing one parent."""

    position: InstrumentedAttribute
    parent: InstrumentedAttribute
    parent_id: int


def pages_of(workspace_id: int) -> SiblingScope:
    return SiblingScope(Page.position, Page.workspace_id, workspace_id)


def markdowns_of(page_id: int) -> SiblingScope:
    return SiblingScope(Markdown.position, Markdown.page_id, page_id)


async def next_position(executor: Executor, scope: SiblingScope) -> int:
    """Return the position a new child of *scope* should take.

    Must run in the same transaction as the insert that uses it.
    """

    stmt = select(
        (func.coalesce(func.max(scope.position), -1) + 1).label("next_pos")
    ).where(scope.parent == scope.parent_id)
    rows = await executor.query(stmt)
    return int(rows[0]["next_pos"])


def neighbor(ordered: Sequence[T], current_id: int, offset: int) -> Optional[T]:
    """Return the item *offset* steps from ``current_id`` in an ordered list.

    ``None`` when the current item is absent or the step falls off either end.
    """

    for index, item in enumerate(ordered):
        if item.id == current_id:  # type: ignore[attr-defined]
            target = index + offset
            if 0 <= target < len(ordered):
                return ordered[target]
            return None
    return None
