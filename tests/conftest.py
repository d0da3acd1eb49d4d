"""Shared fixtures: every test gets its own SQLite file under ``tmp_path``."""

from pathlib import Path

import pytest
import pytest_asyncio

from packages.notes_core import (
    HierarchyRepository,
    NotesSettings,
    StorageEngine,
    WorkspaceSerializer,
)


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture()
def notes_settings(tmp_path: Path) -> NotesSettings:
    return NotesSettings(database_url=sqlite_url(tmp_path / "notes.db"))


@pytest_asyncio.fixture()
async def storage(notes_settings):
    engine = StorageEngine(notes_settings)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def repository(storage):
    return HierarchyRepository(storage)


@pytest_asyncio.fixture()
async def serializer(repository):
    return WorkspaceSerializer(repository)
