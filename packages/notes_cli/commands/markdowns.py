"""Markdown entry commands."""

from __future__ import annotations

import sys
from argparse import _SubParsersAction, Namespace

from ..config import RuntimeConfig
from ..services import run_with_repository

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    add = subparsers.add_parser("markdown-add", help="Append a markdown entry to a page")
    add.add_argument("page_id", type=int)
    add.add_argument("content", help="Markdown text ('-' reads stdin)")
    add.set_defaults(handler=_cmd_add)

    listing = subparsers.add_parser("markdown-list", help="Print the entries of a page in order")
    listing.add_argument("page_id", type=int)
    listing.set_defaults(handler=_cmd_list)


def _cmd_add(args: Namespace, runtime: RuntimeConfig) -> None:
    content = args.content
    if content == "-":
        content = sys.stdin.read()
    markdown = run_with_repository(
        runtime, lambda repository: repository.create_markdown(args.page_id, content)
    )
    print(f"{markdown.id}\t{markdown.position}")


def _cmd_list(args: Namespace, runtime: RuntimeConfig) -> None:
    markdowns = run_with_repository(
        runtime, lambda repository: repository.list_markdowns(args.page_id)
    )
    for markdown in markdowns:
        print(f"--- [{markdown.id}] #{markdown.position}")
        print(markdown.content)
