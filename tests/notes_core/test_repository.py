import asyncio

import pytest
from sqlalchemy import insert

from packages.notes_core import (
    HierarchyRepository,
    NotesSettings,
    NotFoundError,
    StorageEngine,
    StorageError,
    ValidationError,
)
from packages.notes_core.models import Markdown


class _UnreachableStorage:
    """Fails the test if the repository touches the store."""

    cascade_enforced = True

    async def execute(self, *args, **kwargs):
        raise AssertionError("store must not be reached")

    async def query(self, *args, **kwargs):
        raise AssertionError("store must not be reached")

    def transaction(self):
        raise AssertionError("store must not be reached")


@pytest.mark.asyncio
async def test_create_and_list_workspaces_in_creation_order(repository):
    first = await repository.create_workspace("Inbox")
    second = await repository.create_workspace("Archive")

    workspaces = await repository.list_workspaces()

    assert [w.id for w in workspaces] == [first.id, second.id]
    assert [w.name for w in workspaces] == ["Inbox", "Archive"]
    assert await repository.get_workspace(first.id) == first


@pytest.mark.asyncio
async def test_page_positions_increase_in_creation_order(repository):
    workspace = await repository.create_workspace("W")

    pages = [await repository.create_page(workspace.id, f"page {i}") for i in range(5)]

    positions = [page.position for page in pages]
    assert positions == [0, 1, 2, 3, 4]
    listed = await repository.list_pages(workspace.id)
    assert [page.id for page in listed] == [page.id for page in pages]


@pytest.mark.asyncio
async def test_positions_are_not_renumbered_after_delete(repository):
    workspace = await repository.create_workspace("W")
    a = await repository.create_page(workspace.id, "A")
    b = await repository.create_page(workspace.id, "B")
    c = await repository.create_page(workspace.id, "C")

    await repository.delete_page(b.id)
    d = await repository.create_page(workspace.id, "D")

    listed = await repository.list_pages(workspace.id)
    assert [(page.title, page.position) for page in listed] == [
        ("A", a.position),
        ("C", c.position),
        ("D", 3),
    ]
    assert d.position == 3


@pytest.mark.asyncio
async def test_concurrent_page_creation_keeps_positions_unique(repository):
    workspace = await repository.create_workspace("W")

    pages = await asyncio.gather(
        *(repository.create_page(workspace.id, f"p{i}") for i in range(10))
    )

    assert sorted(page.position for page in pages) == list(range(10))


@pytest.mark.asyncio
async def test_concurrent_markdown_creation_keeps_positions_unique(repository):
    workspace = await repository.create_workspace("W")
    page = await repository.create_page(workspace.id, "P")

    entries = await asyncio.gather(
        *(repository.create_markdown(page.id, f"entry {i}") for i in range(6))
    )

    assert sorted(entry.position for entry in entries) == list(range(6))


@pytest.mark.asyncio
async def test_delete_page_scenario(repository):
    workspace = await repository.create_workspace("W")
    a = await repository.create_page(workspace.id, "A")
    b = await repository.create_page(workspace.id, "B")
    assert (a.position, b.position) == (0, 1)
    m1 = await repository.create_markdown(a.id, "m1")

    await repository.delete_page(a.id)

    pages = await repository.list_pages(workspace.id)
    assert [page.title for page in pages] == ["B"]
    with pytest.raises(NotFoundError):
        await repository.get_markdown(m1.id)
    assert await repository.list_markdowns(a.id) == []


@pytest.mark.asyncio
async def test_delete_workspace_removes_pages_and_markdowns(repository):
    workspace = await repository.create_workspace("W")
    keep = await repository.create_workspace("Keep")
    page = await repository.create_page(workspace.id, "P")
    entry = await repository.create_markdown(page.id, "body")
    kept_page = await repository.create_page(keep.id, "Still here")

    await repository.delete_workspace(workspace.id)

    assert await repository.list_pages(workspace.id) == []
    with pytest.raises(NotFoundError):
        await repository.get_workspace(workspace.id)
    with pytest.raises(NotFoundError):
        await repository.get_page(page.id)
    with pytest.raises(NotFoundError):
        await repository.get_markdown(entry.id)
    assert await repository.get_page(kept_page.id) == kept_page


@pytest.mark.asyncio
async def test_delete_cascades_without_store_foreign_keys(tmp_path):
    storage = StorageEngine(
        NotesSettings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'nofk.db'}",
            enforce_foreign_keys=False,
        )
    )
    repository = HierarchyRepository(storage)
    try:
        workspace = await repository.create_workspace("W")
        assert storage.cascade_enforced is False
        first = await repository.create_page(workspace.id, "P1")
        second = await repository.create_page(workspace.id, "P2")
        m1 = await repository.create_markdown(first.id, "one")
        m2 = await repository.create_markdown(second.id, "two")

        await repository.delete_page(first.id)
        with pytest.raises(NotFoundError):
            await repository.get_markdown(m1.id)
        assert await repository.get_markdown(m2.id) == m2

        await repository.delete_workspace(workspace.id)
        with pytest.raises(NotFoundError):
            await repository.get_page(second.id)
        with pytest.raises(NotFoundError):
            await repository.get_markdown(m2.id)
    finally:
        await storage.dispose()


@pytest.mark.asyncio
async def test_deleting_missing_rows_raises_not_found(repository):
    with pytest.raises(NotFoundError) as exc_info:
        await repository.delete_workspace(404)
    assert exc_info.value.entity == "workspace"
    assert exc_info.value.identifier == 404

    with pytest.raises(NotFoundError):
        await repository.delete_page(404)
    with pytest.raises(NotFoundError):
        await repository.delete_markdown(404)


@pytest.mark.asyncio
async def test_create_under_missing_parent_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        await repository.create_page(123, "orphan")
    with pytest.raises(NotFoundError):
        await repository.create_markdown(456, "orphan")

    assert await repository.list_workspaces() == []


@pytest.mark.asyncio
async def test_markdowns_listed_by_position(repository):
    workspace = await repository.create_workspace("W")
    page = await repository.create_page(workspace.id, "P")
    for content in ("first", "second", "third"):
        await repository.create_markdown(page.id, content)

    entries = await repository.list_markdowns(page.id)

    assert [entry.content for entry in entries] == ["first", "second", "third"]
    assert [entry.position for entry in entries] == [0, 1, 2]
    assert all(entry.page_id == page.id for entry in entries)


@pytest.mark.asyncio
async def test_delete_markdown(repository):
    workspace = await repository.create_workspace("W")
    page = await repository.create_page(workspace.id, "P")
    entry = await repository.create_markdown(page.id, "gone")

    await repository.delete_markdown(entry.id)

    assert await repository.list_markdowns(page.id) == []


@pytest.mark.asyncio
async def test_listing_twice_is_stable(repository):
    workspace = await repository.create_workspace("W")
    for title in ("a", "b", "c"):
        await repository.create_page(workspace.id, title)

    assert await repository.list_workspaces() == await repository.list_workspaces()
    assert await repository.list_pages(workspace.id) == await repository.list_pages(workspace.id)


@pytest.mark.asyncio
async def test_sibling_navigation(repository):
    workspace = await repository.create_workspace("W")
    a = await repository.create_page(workspace.id, "A")
    b = await repository.create_page(workspace.id, "B")
    c = await repository.create_page(workspace.id, "C")

    assert await repository.get_next_sibling(a.id) == b
    assert await repository.get_next_sibling(b.id) == c
    assert await repository.get_previous_sibling(c.id) == b
    assert await repository.get_previous_sibling(b.id) == a


@pytest.mark.asyncio
async def test_sibling_navigation_boundaries_return_none(repository):
    workspace = await repository.create_workspace("W")
    first = await repository.create_page(workspace.id, "first")
    last = await repository.create_page(workspace.id, "last")

    assert await repository.get_previous_sibling(first.id) is None
    assert await repository.get_next_sibling(last.id) is None


@pytest.mark.asyncio
async def test_next_and_previous_are_inverse(repository):
    workspace = await repository.create_workspace("W")
    pages = [await repository.create_page(workspace.id, f"p{i}") for i in range(4)]
    await repository.delete_page(pages[1].id)
    remaining = await repository.list_pages(workspace.id)

    for page in remaining[:-1]:
        following = await repository.get_next_sibling(page.id)
        assert await repository.get_previous_sibling(following.id) == page


@pytest.mark.asyncio
async def test_navigation_stays_inside_the_workspace(repository):
    first = await repository.create_workspace("first")
    second = await repository.create_workspace("second")
    only = await repository.create_page(first.id, "only")
    await repository.create_page(second.id, "elsewhere")

    assert await repository.get_next_sibling(only.id) is None


@pytest.mark.asyncio
async def test_navigation_from_missing_page_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        await repository.get_next_sibling(42)
    with pytest.raises(NotFoundError):
        await repository.get_previous_sibling(42)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda repo: repo.create_workspace(""),
        lambda repo: repo.create_workspace("   "),
        lambda repo: repo.create_page(1, ""),
        lambda repo: repo.create_markdown(1, "\n\t"),
        lambda repo: repo.get_page("1"),
        lambda repo: repo.delete_workspace(True),
    ],
)
async def test_validation_happens_before_any_store_call(call):
    repository = HierarchyRepository(_UnreachableStorage())

    with pytest.raises(ValidationError):
        await call(repository)


@pytest.mark.asyncio
async def test_storage_errors_carry_entity_context(repository):
    await repository.storage.drop_schema()

    with pytest.raises(StorageError) as exc_info:
        await repository.get_page(7)

    assert exc_info.value.entity == "page"
    assert exc_info.value.identifier == 7


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", [2**63, 2**64, -(2**63) - 1])
async def test_identifiers_outside_64_bits_are_rejected(identifier):
    repository = HierarchyRepository(_UnreachableStorage())

    with pytest.raises(ValidationError):
        await repository.get_page(identifier)


@pytest.mark.asyncio
async def test_rows_written_outside_the_repository_are_still_readable(repository):
    workspace = await repository.create_workspace("W")
    page = await repository.create_page(workspace.id, "P")
    await repository.storage.execute(
        insert(Markdown).values(content="", position=5, page_id=page.id)
    )

    entries = await repository.list_markdowns(page.id)

    assert [(entry.content, entry.position) for entry in entries] == [("", 5)]
    assert await repository.get_markdown(entries[0].id) == entries[0]
