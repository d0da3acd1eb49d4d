"""Runtime configuration helpers for command handlers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from packages.env import load_env
from packages.notes_core.settings import NotesSettings


@dataclass(frozen=True)
class RuntimeConfig:
    """Resolved configuration for command handlers."""

    settings: NotesSettings
    log_level: str


def bootstrap() -> None:
    """Load environment variables once."""

    load_env()


def build_runtime_config(
    *, log_level: str, database_url: Optional[str] = None
) -> RuntimeConfig:
    """Construct a :class:`RuntimeConfig`; ``--database-url`` overrides the environment."""

    settings = NotesSettings.from_env()
    if database_url:
        settings = replace(settings, database_url=database_url)
    return RuntimeConfig(settings=settings, log_level=log_level)
