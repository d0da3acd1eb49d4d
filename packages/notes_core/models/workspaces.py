"""Workspace model: the root of a page hierarchy."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:  # pragma: no cover
    from .content import Page

__all__ = ["Workspace"]


class Workspace(Base):
    """Top level container owning an ordered list of pages."""

    __tablename__ = "workspaces"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    pages: Mapped[list["Page"]] = relationship(
        back_populates="workspace",
        order_by="Page.position",
        passive_deletes=True,
    )
