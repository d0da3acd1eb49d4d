"""Page and markdown entry models."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .workspaces import Workspace

__all__ = ["Page", "Markdown"]


class Page(Base):
    """Ordered unit of content within a workspace."""

    __tablename__ = "pages"
    __table_args__ = (
        Index("idx_pages_workspace_id", "workspace_id"),
        Index("idx_pages_position", "workspace_id", "position", unique=True),
        CheckConstraint("position >= 0", name="position_non_negative"),
        # AUTOINCREMENT keeps SQLite from reusing the id of a deleted last row.
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    workspace: Mapped["Workspace"] = relationship(back_populates="pages")
    markdowns: Mapped[list["Markdown"]] = relationship(
        back_populates="page",
        order_by="Markdown.position",
        passive_deletes=True,
    )


class Markdown(Base):
    """A single stored markdown fragment within a page."""

    __tablename__ = "markdowns"
    __table_args__ = (
        Index("idx_markdowns_page_id", "page_id"),
        Index("idx_markdowns_position", "page_id", "position", unique=True),
        CheckConstraint("position >= 0", name="position_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    page_id: Mapped[int] = mapped_column(
        ForeignKey("pages.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    page: Mapped[Page] = relationship(back_populates="markdowns")
