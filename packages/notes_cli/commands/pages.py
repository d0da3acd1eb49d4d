"""Page commands, including sequential navigation."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace
from typing import Optional

from packages.notes_core import PageRecord

from ..config import RuntimeConfig
from ..services import confirm, run_with_repository

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    create = subparsers.add_parser("page-create", help="Append a page to a workspace")
    create.add_argument("workspace_id", type=int)
    create.add_argument("title")
    create.set_defaults(handler=_cmd_create)

    listing = subparsers.add_parser("page-list", help="List pages of a workspace in order")
    listing.add_argument("workspace_id", type=int)
    listing.set_defaults(handler=_cmd_list)

    remove = subparsers.add_parser("page-delete", help="Delete a page and its entries")
    remove.add_argument("page_id", type=int)
    remove.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    remove.set_defaults(handler=_cmd_delete)

    following = subparsers.add_parser("page-next", help="Show the page after PAGE_ID")
    following.add_argument("page_id", type=int)
    following.set_defaults(handler=_cmd_next)

    preceding = subparsers.add_parser("page-prev", help="Show the page before PAGE_ID")
    preceding.add_argument("page_id", type=int)
    preceding.set_defaults(handler=_cmd_prev)


def _print_page(page: PageRecord) -> None:
    print(f"{page.id}\t{page.position}\t{page.title}")


def _cmd_create(args: Namespace, runtime: RuntimeConfig) -> None:
    page = run_with_repository(
        runtime, lambda repository: repository.create_page(args.workspace_id, args.title)
    )
    _print_page(page)


def _cmd_list(args: Namespace, runtime: RuntimeConfig) -> None:
    pages = run_with_repository(
        runtime, lambda repository: repository.list_pages(args.workspace_id)
    )
    if not pages:
        print("No pages.")
        return
    for page in pages:
        _print_page(page)


def _cmd_delete(args: Namespace, runtime: RuntimeConfig) -> None:
    if not confirm("Are you sure you would like to delete this page?", assume_yes=args.yes):
        print("Aborted.")
        return
    run_with_repository(runtime, lambda repository: repository.delete_page(args.page_id))
    print(f"Deleted page {args.page_id}")


def _print_neighbor(page: Optional[PageRecord], edge: str) -> None:
    if page is None:
        print(f"Already at the {edge} page.")
        return
    _print_page(page)


def _cmd_next(args: Namespace, runtime: RuntimeConfig) -> None:
    page = run_with_repository(
        runtime, lambda repository: repository.get_next_sibling(args.page_id)
    )
    _print_neighbor(page, "last")


def _cmd_prev(args: Namespace, runtime: RuntimeConfig) -> None:
    page = run_with_repository(
        runtime, lambda repository: repository.get_previous_sibling(args.page_id)
    )
    _print_neighbor(page, "first")
