"""Typed access to workspaces, pages and markdown entries.

This is the entry point used by front ends. Row access is delegated to the
:class:`~.storage.StorageEngine` and sibling positions to :mod:`.ordering`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, insert, select
from sqlalchemy.engine import RowMapping

from .errors import NotFoundError, StorageError, ValidationError
from .models import Markdown, Page, Workspace
from .ordering import markdowns_of, neighbor, next_position, pages_of
from .schemas import MAX_INTEGER, MarkdownRecord, PageRecord, WorkspaceRecord
from .storage import Executor, StorageEngine, StorageHandle

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = ["HierarchyRepository", "require_text", "require_id", "storage_context"]

_WORKSPACE_COLUMNS = (Workspace.id, Workspace.name)
_PAGE_COLUMNS = (Page.id, Page.title, Page.position, Page.workspace_id)
_MARKDOWN_COLUMNS = (Markdown.id, Markdown.content, Markdown.position, Markdown.page_id)

RecordT = TypeVar("RecordT", bound=BaseModel)


def require_text(field: str, value: object) -> str:
    """Reject missing or blank names, titles and contents."""

    if not isinstance(value, str):
        raise ValidationError(field, "must be a string")
    if not value.strip():
        raise ValidationError(field, "must not be empty")
    return value


def require_id(field: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer identifier")
    if not -MAX_INTEGER - 1 <= value <= MAX_INTEGER:
        raise ValidationError(field, "out of the 64-bit integer range")
    return value


def _record(model: type[RecordT], row: RowMapping) -> RecordT:
    # Stored rows are trusted as they are; input validation only guards writes.
    return model.model_construct(**row)


@contextmanager
def storage_context(entity: str, identifier: Optional[int] = None) -> Iterator[None]:
    # Attach the entity being touched to bare storage failures.
    try:
        yield
    except StorageError as exc:
        if exc.entity is not None:
            raise
        label = entity if identifier is None else f"{entity} {identifier}"
        raise StorageError(
            f"{label}: {exc}", entity=entity, identifier=identifier
        ) from exc


class HierarchyRepository:
    """Workspace → page → markdown operations."""

    def __init__(self, storage: StorageEngine) -> None:
        self.storage = storage

    def _executor(self, handle: Optional[StorageHandle]) -> Executor:
        return handle if handle is not None else self.storage

    # ========================================================================
    # Workspaces
    # ========================================================================

    async def create_workspace(self, name: str) -> WorkspaceRecord:
        name = require_text("name", name)
        with storage_context("workspace"):
            result = await self.storage.execute(insert(Workspace).values(name=name))
        logger.info("workspace_created", extra={"workspace_id": result.inserted_id})
        return WorkspaceRecord(id=result.inserted_id, name=name)

    async def list_workspaces(
        self, *, handle: Optional[StorageHandle] = None
    ) -> list[WorkspaceRecord]:
        """All workspaces in creation order."""
        with storage_context("workspace"):
            rows = await self._executor(handle).query(
                select(*_WORKSPACE_COLUMNS).order_by(Workspace.id)
            )
        return [_record(WorkspaceRecord, row) for row in rows]

    async def get_workspace(
        self, workspace_id: int, *, handle: Optional[StorageHandle] = None
    ) -> WorkspaceRecord:
        workspace_id = require_id("workspace_id", workspace_id)
        with storage_context("workspace", workspace_id):
            rows = await self._executor(handle).query(
                select(*_WORKSPACE_COLUMNS).where(Workspace.id == workspace_id)
            )
        if not rows:
            raise NotFoundError("workspace", workspace_id)
        return _record(WorkspaceRecord, rows[0])

    async def delete_workspace(self, workspace_id: int) -> None:
        """Delete a workspace together with its pages and their markdowns."""

        workspace_id = require_id("workspace_id", workspace_id)
        with storage_context("workspace", workspace_id):
            async with self.storage.transaction() as handle:
                if not self.storage.cascade_enforced:
                    page_ids = select(Page.id).where(Page.workspace_id == workspace_id)
                    await handle.execute(delete(Markdown).where(Markdown.page_id.in_(page_ids)))
                    await handle.execute(delete(Page).where(Page.workspace_id == workspace_id))
                result = await handle.execute(
                    delete(Workspace).where(Workspace.id == workspace_id)
                )
                if result.rows_affected == 0:
                    raise NotFoundError("workspace", workspace_id)
        logger.info("workspace_deleted", extra={"workspace_id": workspace_id})

    # ========================================================================
    # Pages
    # ========================================================================

    async def create_page(self, workspace_id: int, title: str) -> PageRecord:
        """Append a page at the end of the workspace's page list."""

        workspace_id = require_id("workspace_id", workspace_id)
        title = require_text("title", title)
        with storage_context("page"):
            async with self.storage.transaction() as handle:
                await self.get_workspace(workspace_id, handle=handle)
                position = await next_position(handle, pages_of(workspace_id))
                result = await handle.execute(
                    insert(Page).values(
                        title=title, position=position, workspace_id=workspace_id
                    )
                )
        logger.info(
            "page_created",
            extra={"page_id": result.inserted_id, "workspace_id": workspace_id, "position": position},
        )
        return PageRecord(
            id=result.inserted_id, title=title, position=position, workspace_id=workspace_id
        )

    async def list_pages(
        self, workspace_id: int, *, handle: Optional[StorageHandle] = None
    ) -> list[PageRecord]:
        """Pages of a workspace by ascending position; empty for unknown workspaces."""
        workspace_id = require_id("workspace_id", workspace_id)
        with storage_context("workspace", workspace_id):
            rows = await self._executor(handle).query(
                select(*_PAGE_COLUMNS)
                .where(Page.workspace_id == workspace_id)
                .order_by(Page.position)
            )
        return [_record(PageRecord, row) for row in rows]

    async def get_page(
        self, page_id: int, *, handle: Optional[StorageHandle] = None
    ) -> PageRecord:
        page_id = require_id("page_id", page_id)
        with storage_context("page", page_id):
            rows = await self._executor(handle).query(
                select(*_PAGE_COLUMNS).where(Page.id == page_id)
            )
        if not rows:
            raise NotFoundError("page", page_id)
        return _record(PageRecord, rows[0])

    async def delete_page(self, page_id: int) -> None:
        """Delete a page and its markdowns. Sibling positions are left as they are."""

        page_id = require_id("page_id", page_id)
        with storage_context("page", page_id):
            async with self.storage.transaction() as handle:
                if not self.storage.cascade_enforced:
                    await handle.execute(delete(Markdown).where(Markdown.page_id == page_id))
                result = await handle.execute(delete(Page).where(Page.id == page_id))
                if result.rows_affected == 0:
                    raise NotFoundError("page", page_id)
        logger.info("page_deleted", extra={"page_id": page_id})

    async def get_next_sibling(self, page_id: int) -> Optional[PageRecord]:
        """The page after *page_id* in its workspace, or ``None`` if it is last.

        Raises:
            NotFoundError: If *page_id* does not exist.
        """
        return await self._sibling(page_id, 1)

    async def get_previous_sibling(self, page_id: int) -> Optional[PageRecord]:
        """The page before *page_id* in its workspace, or ``None`` if it is first.

        Raises:
            NotFoundError: If *page_id* does not exist.
        """
        return await self._sibling(page_id, -1)

    async def _sibling(self, page_id: int, offset: int) -> Optional[PageRecord]:
        page_id = require_id("page_id", page_id)
        async with self.storage.transaction() as handle:
            page = await self.get_page(page_id, handle=handle)
            pages = await self.list_pages(page.workspace_id, handle=handle)
        return neighbor(pages, page_id, offset)

    # ========================================================================
    # Markdowns
    # ========================================================================

    async def create_markdown(self, page_id: int, content: str) -> MarkdownRecord:
        """Append a markdown entry at the end of the page."""

        page_id = require_id("page_id", page_id)
        content = require_text("content", content)
        with storage_context("markdown"):
            async with self.storage.transaction() as handle:
                await self.get_page(page_id, handle=handle)
                position = await next_position(handle, markdowns_of(page_id))
                result = await handle.execute(
                    insert(Markdown).values(content=content, position=position, page_id=page_id)
                )
        logger.debug(
            "markdown_created",
            extra={"markdown_id": result.inserted_id, "page_id": page_id, "position": position},
        )
        return MarkdownRecord(
            id=result.inserted_id, content=content, position=position, page_id=page_id
        )

    async def list_markdowns(
        self, page_id: int, *, handle: Optional[StorageHandle] = None
    ) -> list[MarkdownRecord]:
        page_id = require_id("page_id", page_id)
        with storage_context("page", page_id):
            rows = await self._executor(handle).query(
                select(*_MARKDOWN_COLUMNS)
                .where(Markdown.page_id == page_id)
                .order_by(Markdown.position)
            )
        return [_record(MarkdownRecord, row) for row in rows]

    async def get_markdown(
        self, markdown_id: int, *, handle: Optional[StorageHandle] = None
    ) -> MarkdownRecord:
        markdown_id = require_id("markdown_id", markdown_id)
        with storage_context("markdown", markdown_id):
            rows = await self._executor(handle).query(
                select(*_MARKDOWN_COLUMNS).where(Markdown.id == markdown_id)
            )
        if not rows:
            raise NotFoundError("markdown", markdown_id)
        return _record(MarkdownRecord, rows[0])

    async def delete_markdown(self, markdown_id: int) -> None:
        markdown_id = require_id("markdown_id", markdown_id)
        with storage_context("markdown", markdown_id):
            result = await self.storage.execute(
                delete(Markdown).where(Markdown.id == markdown_id)
            )
        if result.rows_affected == 0:
            raise NotFoundError("markdown", markdown_id)
