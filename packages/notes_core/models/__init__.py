"""SQLAlchemy models for the workspace → page → markdown hierarchy."""

from .base import Base
from .content import Markdown, Page
from .workspaces import Workspace

__all__ = ["Base", "Workspace", "Page", "Markdown"]
