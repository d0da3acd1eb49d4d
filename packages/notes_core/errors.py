"""Error taxonomy raised by the notes persistence layer."""

from __future__ import annotations

from typing import Optional

__all__ = ["NotesError", "StorageError", "NotFoundError", "ValidationError"]


class NotesError(Exception):
    """Base class for every failure raised by ``notes_core``."""


class StorageError(NotesError):
    """The store is unavailable or rejected a statement.

    ``entity``/``identifier`` name the row being touched when it is known.
    """

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        identifier: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier


class NotFoundError(NotesError):
    """A workspace, page or markdown identifier does not resolve to a live row."""

    def __init__(self, entity: str, identifier: int) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class ValidationError(NotesError):
    """Caller-supplied data was rejected before any store call was made."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
