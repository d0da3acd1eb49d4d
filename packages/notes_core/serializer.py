"""Workspace export/import as a portable JSON document."""

from __future__ import annotations

import logging
from typing import Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import insert

from .errors import ValidationError
from .models import Markdown, Page, Workspace
from .repository import HierarchyRepository, require_id, storage_context
from .schemas import PageExport, WorkspaceExport

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = ["WorkspaceSerializer", "dump_export", "load_export"]


def _validation_error(exc: PydanticValidationError) -> ValidationError:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "document"
    return ValidationError(location, first["msg"])


def dump_export(document: WorkspaceExport) -> bytes:
    """Encode *document* as UTF-8 JSON with two-space indentation."""

    return document.model_dump_json(indent=2).encode("utf-8")


def load_export(raw: Union[bytes, str]) -> WorkspaceExport:
    """Parse and validate an export document.

    Raises:
        ValidationError: If *raw* is not valid JSON or does not match the
            document shape (blank names, negative positions, ...).
    """

    try:
        return WorkspaceExport.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise _validation_error(exc) from exc


class WorkspaceSerializer:
    """Converts workspace subtrees to and from :class:`WorkspaceExport`."""

    def __init__(self, repository: HierarchyRepository) -> None:
        self.repository = repository
        self.storage = repository.storage

    async def export_workspace(self, workspace_id: int) -> WorkspaceExport:
        """Snapshot a workspace with its pages and markdowns in position order.

        Raises:
            NotFoundError: If the workspace does not exist.
        """

        workspace_id = require_id("workspace_id", workspace_id)
        async with self.storage.transaction() as handle:
            workspace = await self.repository.get_workspace(workspace_id, handle=handle)
            pages = await self.repository.list_pages(workspace_id, handle=handle)
            page_exports = [
                PageExport(
                    page=page,
                    markdowns=await self.repository.list_markdowns(page.id, handle=handle),
                )
                for page in pages
            ]

        logger.info(
            "workspace_exported",
            extra={"workspace_id": workspace_id, "pages": len(page_exports)},
        )
        return WorkspaceExport(workspace=workspace, pages=page_exports)

    async def import_workspace(self, document: WorkspaceExport) -> int:
        """Insert *document* as a brand new workspace and return its id.

        Titles, contents and positions are kept verbatim; every identifier is
        freshly minted. Runs as one transaction: any failing row leaves no
        trace of the import.
        """

        if not isinstance(document, WorkspaceExport):
            raise ValidationError("document", "expected a WorkspaceExport")
        # Models built with model_construct or mutated after validation get checked here.
        try:
            document = WorkspaceExport.model_validate(document.model_dump())
        except PydanticValidationError as exc:
            raise _validation_error(exc) from exc

        markdown_count = 0
        with storage_context("workspace"):
            async with self.storage.transaction() as handle:
                result = await handle.execute(
                    insert(Workspace).values(name=document.workspace.name)
                )
                workspace_id = result.inserted_id
                for entry in document.pages:
                    page_result = await handle.execute(
                        insert(Page).values(
                            title=entry.page.title,
                            position=entry.page.position,
                            workspace_id=workspace_id,
                        )
                    )
                    for markdown in entry.markdowns:
                        await handle.execute(
                            insert(Markdown).values(
                                content=markdown.content,
                                position=markdown.position,
                                page_id=page_result.inserted_id,
                            )
                        )
                        markdown_count += 1

        logger.info(
            "workspace_imported",
            extra={
                "workspace_id": workspace_id,
                "source_workspace_id": document.workspace.id,
                "pages": len(document.pages),
                "markdowns": markdown_count,
            },
        )
        return workspace_id
