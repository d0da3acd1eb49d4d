import pytest
from sqlalchemy import insert, select

from packages.notes_core import NotesSettings, StorageEngine, StorageError
from packages.notes_core import storage as storage_module
from packages.notes_core.models import Markdown, Page, Workspace


class Boom(Exception):
    pass


@pytest.mark.asyncio
async def test_execute_reports_inserted_id_and_rows(storage):
    first = await storage.execute(insert(Workspace).values(name="W"))
    second = await storage.execute(insert(Workspace).values(name="X"))

    assert first.rows_affected == 1
    assert first.inserted_id is not None
    assert second.inserted_id > first.inserted_id

    rows = await storage.query(select(Workspace.id, Workspace.name).order_by(Workspace.id))
    assert [row["name"] for row in rows] == ["W", "X"]


@pytest.mark.asyncio
async def test_text_statements_accept_parameters(storage):
    await storage.execute("INSERT INTO workspaces (name) VALUES (:name)", {"name": "raw"})

    rows = await storage.query("SELECT name FROM workspaces WHERE name = :name", {"name": "raw"})

    assert len(rows) == 1
    assert rows[0]["name"] == "raw"


@pytest.mark.asyncio
async def test_transaction_commits_on_success(storage):
    async with storage.transaction() as handle:
        result = await handle.execute(insert(Workspace).values(name="kept"))
        await handle.execute(
            insert(Page).values(title="p", position=0, workspace_id=result.inserted_id)
        )

    pages = await storage.query(select(Page.title))
    assert [row["title"] for row in pages] == ["p"]


@pytest.mark.asyncio
async def test_transaction_rolls_back_and_reraises_original_error(storage):
    original = Boom("stop")

    with pytest.raises(Boom) as exc_info:
        async with storage.transaction() as handle:
            await handle.execute(insert(Workspace).values(name="discarded"))
            raise original

    assert exc_info.value is original
    assert await storage.query(select(Workspace.id)) == []


@pytest.mark.asyncio
async def test_nested_transaction_is_rejected(storage):
    async with storage.transaction():
        with pytest.raises(StorageError, match="nested"):
            async with storage.transaction():
                pass


@pytest.mark.asyncio
async def test_plain_statements_join_the_active_transaction(storage):
    with pytest.raises(Boom):
        async with storage.transaction():
            await storage.execute(insert(Workspace).values(name="joined"))
            assert len(await storage.query(select(Workspace.id))) == 1
            raise Boom()

    assert await storage.query(select(Workspace.id)) == []


@pytest.mark.asyncio
async def test_handle_is_unusable_after_transaction(storage):
    async with storage.transaction() as handle:
        pass

    with pytest.raises(StorageError, match="after its transaction ended"):
        await handle.query(select(Workspace.id))


@pytest.mark.asyncio
async def test_constraint_violation_becomes_storage_error(storage):
    with pytest.raises(StorageError) as exc_info:
        await storage.execute(insert(Page).values(title="orphan", position=0, workspace_id=999))

    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_sibling_positions_are_unique_in_the_store(storage):
    workspace = await storage.execute(insert(Workspace).values(name="W"))
    await storage.execute(
        insert(Page).values(title="a", position=0, workspace_id=workspace.inserted_id)
    )

    with pytest.raises(StorageError):
        await storage.execute(
            insert(Page).values(title="b", position=0, workspace_id=workspace.inserted_id)
        )


@pytest.mark.asyncio
async def test_foreign_keys_cascade_by_default(storage):
    await storage.initialize()
    assert storage.cascade_enforced is True

    workspace = await storage.execute(insert(Workspace).values(name="W"))
    page = await storage.execute(
        insert(Page).values(title="p", position=0, workspace_id=workspace.inserted_id)
    )
    await storage.execute(
        insert(Markdown).values(content="m", position=0, page_id=page.inserted_id)
    )

    await storage.execute(f"DELETE FROM workspaces WHERE id = {workspace.inserted_id}")

    assert await storage.query(select(Page.id)) == []
    assert await storage.query(select(Markdown.id)) == []


@pytest.mark.asyncio
async def test_cascade_reported_off_without_foreign_keys(tmp_path):
    engine = StorageEngine(
        NotesSettings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'nofk.db'}",
            enforce_foreign_keys=False,
        )
    )
    try:
        await engine.initialize()
        assert engine.cascade_enforced is False
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_initialization_failure_is_cached(tmp_path):
    missing_dir = tmp_path / "missing" / "deeper" / "notes.db"
    engine = StorageEngine(NotesSettings(database_url=f"sqlite+aiosqlite:///{missing_dir}"))

    with pytest.raises(StorageError) as first:
        await engine.query(select(Workspace.id))
    missing_dir.parent.mkdir(parents=True)
    with pytest.raises(StorageError) as second:
        await engine.query(select(Workspace.id))

    assert second.value.__cause__ is first.value.__cause__
    await engine.dispose()


@pytest.mark.asyncio
async def test_drop_schema_removes_tables(storage):
    await storage.execute(insert(Workspace).values(name="W"))

    await storage.drop_schema()

    with pytest.raises(StorageError):
        await storage.query(select(Workspace.id))

    await storage.create_schema()
    assert await storage.query(select(Workspace.id)) == []


@pytest.mark.asyncio
async def test_disposed_storage_is_not_reinitialized(notes_settings):
    engine = StorageEngine(notes_settings)
    await engine.initialize()
    await engine.dispose()

    with pytest.raises(StorageError, match="disposed"):
        await engine.query(select(Workspace.id))


@pytest.mark.asyncio
async def test_get_storage_returns_one_process_wide_instance(notes_settings):
    await storage_module.reset_storage()
    try:
        first = storage_module.get_storage(notes_settings)
        second = storage_module.get_storage()

        assert first is second
        await first.execute(insert(Workspace).values(name="shared"))
        rows = await second.query(select(Workspace.name))
        assert [row["name"] for row in rows] == ["shared"]
    finally:
        await storage_module.reset_storage()

    assert storage_module._storage is None


@pytest.mark.asyncio
async def test_out_of_range_integers_surface_as_storage_errors(storage):
    with pytest.raises(StorageError):
        await storage.query(select(Workspace.id).where(Workspace.id == 2**64))
    with pytest.raises(StorageError):
        await storage.execute(insert(Workspace).values(id=2**63, name="too big"))


@pytest.mark.asyncio
async def test_store_rejects_negative_positions(storage):
    workspace = await storage.execute(insert(Workspace).values(name="W"))

    with pytest.raises(StorageError):
        await storage.execute(
            insert(Page).values(title="P", position=-1, workspace_id=workspace.inserted_id)
        )
