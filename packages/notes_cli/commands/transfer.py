"""Workspace export/import commands.

The core only converts workspaces to and from documents; reading and
writing the chosen file happens here.
"""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace
from pathlib import Path

from packages.notes_core import WorkspaceSerializer, dump_export, load_export

from ..config import RuntimeConfig
from ..services import run_with_repository

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    export = subparsers.add_parser("export", help="Export a workspace to a JSON file")
    export.add_argument("workspace_id", type=int)
    export.add_argument("--out", required=True, help="Destination .json path")
    export.set_defaults(handler=_cmd_export)

    load = subparsers.add_parser("import", help="Import a workspace from a JSON file")
    load.add_argument("path", help="Exported .json file")
    load.set_defaults(handler=_cmd_import)


def _cmd_export(args: Namespace, runtime: RuntimeConfig) -> None:
    document = run_with_repository(
        runtime,
        lambda repository: WorkspaceSerializer(repository).export_workspace(args.workspace_id),
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(dump_export(document))
    print(f"Exported workspace {args.workspace_id} ({len(document.pages)} pages) to {out_path}")


def _cmd_import(args: Namespace, runtime: RuntimeConfig) -> None:
    document = load_export(Path(args.path).read_bytes())
    workspace_id = run_with_repository(
        runtime, lambda repository: WorkspaceSerializer(repository).import_workspace(document)
    )
    print(f"Imported workspace {workspace_id}: {document.workspace.name}")
