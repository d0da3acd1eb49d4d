"""Pydantic records returned by the repository and the interchange document."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

__all__ = [
    "MAX_INTEGER",
    "NonEmptyText",
    "Identifier",
    "Position",
    "WorkspaceRecord",
    "PageRecord",
    "MarkdownRecord",
    "PageExport",
    "WorkspaceExport",
]


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


# Largest value a SQLite INTEGER column can hold.
MAX_INTEGER = 2**63 - 1

NonEmptyText = Annotated[str, AfterValidator(_require_text)]
Identifier = Annotated[int, Field(ge=-MAX_INTEGER - 1, le=MAX_INTEGER)]
Position = Annotated[int, Field(ge=0, le=MAX_INTEGER)]


class WorkspaceRecord(BaseModel):
    """Workspace row."""

    model_config = ConfigDict(from_attributes=True)

    id: Identifier
    name: NonEmptyText


class PageRecord(BaseModel):
    """Page row; ``position`` orders pages within a workspace."""

    model_config = ConfigDict(from_attributes=True)

    id: Identifier
    title: NonEmptyText
    position: Position
    workspace_id: Identifier


class MarkdownRecord(BaseModel):
    """Markdown entry row; ``position`` orders entries within a page."""

    model_config = ConfigDict(from_attributes=True)

    id: Identifier
    content: NonEmptyText
    position: Position
    page_id: Identifier


# ========================================================================
# Interchange document
# ========================================================================


class PageExport(BaseModel):
    page: PageRecord
    markdowns: list[MarkdownRecord] = Field(default_factory=list)


class WorkspaceExport(BaseModel):
    """Snapshot of a workspace subtree.

    Identifiers inside the document are informational; importing always
    mints new ones.
    """

    workspace: WorkspaceRecord
    pages: list[PageExport] = Field(default_factory=list)
