"""Runtime configuration for the notes store."""

from __future__ import annotations

import os
from dataclasses import dataclass

__all__ = ["DEFAULT_DATABASE_URL", "NotesSettings", "normalize_database_url"]

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./ekandata.db"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class NotesSettings:
    """Notes store settings."""

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    enforce_foreign_keys: bool = True

    @classmethod
    def from_env(cls) -> NotesSettings:
        database_url = (
            os.getenv("EKAN_NOTES_DB_URL")
            or os.getenv("DATABASE_URL")
            or DEFAULT_DATABASE_URL
        )
        return cls(
            database_url=database_url,
            echo=_env_flag("EKAN_NOTES_DB_ECHO", False),
            enforce_foreign_keys=_env_flag("EKAN_NOTES_FOREIGN_KEYS", True),
        )


def normalize_database_url(database_url: str) -> str:
    """Rewrite driverless URLs to the async driver used for that backend."""

    if database_url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + database_url[len("sqlite://") :]
    if database_url.startswith("postgres://"):
        return "postgresql+psycopg://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url
