"""Persistence layer for workspaces, pages and markdown entries."""

from .errors import NotesError, NotFoundError, StorageError, ValidationError
from .repository import HierarchyRepository
from .schemas import MarkdownRecord, PageExport, PageRecord, WorkspaceExport, WorkspaceRecord
from .serializer import WorkspaceSerializer, dump_export, load_export
from .settings import NotesSettings
from .storage import ExecuteResult, StorageEngine, StorageHandle, get_storage, reset_storage

__all__ = [
    "NotesError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "HierarchyRepository",
    "WorkspaceSerializer",
    "dump_export",
    "load_export",
    "NotesSettings",
    "StorageEngine",
    "StorageHandle",
    "ExecuteResult",
    "get_storage",
    "reset_storage",
    "WorkspaceRecord",
    "PageRecord",
    "MarkdownRecord",
    "PageExport",
    "WorkspaceExport",
]
