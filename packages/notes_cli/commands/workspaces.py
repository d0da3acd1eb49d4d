"""Workspace commands."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

from ..config import RuntimeConfig
from ..services import confirm, run_with_repository

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    create = subparsers.add_parser("workspace-create", help="Create a workspace")
    create.add_argument("name", help="Workspace name")
    create.set_defaults(handler=_cmd_create)

    listing = subparsers.add_parser("workspace-list", help="List workspaces")
    listing.set_defaults(handler=_cmd_list)

    remove = subparsers.add_parser(
        "workspace-delete", help="Delete a workspace with all of its pages"
    )
    remove.add_argument("workspace_id", type=int)
    remove.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    remove.set_defaults(handler=_cmd_delete)


def _cmd_create(args: Namespace, runtime: RuntimeConfig) -> None:
    workspace = run_with_repository(
        runtime, lambda repository: repository.create_workspace(args.name)
    )
    print(f"{workspace.id}\t{workspace.name}")


def _cmd_list(_: Namespace, runtime: RuntimeConfig) -> None:
    workspaces = run_with_repository(runtime, lambda repository: repository.list_workspaces())
    if not workspaces:
        print("No workspaces.")
        return
    for workspace in workspaces:
        print(f"{workspace.id}\t{workspace.name}")


def _cmd_delete(args: Namespace, runtime: RuntimeConfig) -> None:
    if not confirm(
        "Are you sure you would like to delete this workspace?", assume_yes=args.yes
    ):
        print("Aborted.")
        return
    run_with_repository(
        runtime, lambda repository: repository.delete_workspace(args.workspace_id)
    )
    print(f"Deleted workspace {args.workspace_id}")
