"""Command registrations for the notes CLI."""

from __future__ import annotations

from argparse import _SubParsersAction

from . import markdowns, pages, schema, transfer, workspaces

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    """Register all CLI commands with *subparsers*."""

    schema.register(subparsers)
    workspaces.register(subparsers)
    pages.register(subparsers)
    markdowns.register(subparsers)
    transfer.register(subparsers)
