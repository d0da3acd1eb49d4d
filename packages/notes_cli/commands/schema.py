"""Schema management commands."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

from ..config import RuntimeConfig
from ..services import confirm, run_with_repository

__all__ = ["register"]


def register(subparsers: _SubParsersAction) -> None:
    init_db = subparsers.add_parser("init-db", help="Create the notes tables if missing")
    init_db.set_defaults(handler=_cmd_init_db)

    drop_db = subparsers.add_parser(
        "drop-db", help="Drop every notes table (destroys all workspaces)"
    )
    drop_db.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    drop_db.set_defaults(handler=_cmd_drop_db)


def _cmd_init_db(_: Namespace, runtime: RuntimeConfig) -> None:
    async def _work(repository):
        await repository.storage.initialize()
        return repository.storage.cascade_enforced

    cascade = run_with_repository(runtime, _work)
    state = "on" if cascade else "off"
    print(f"Initialized {runtime.settings.database_url} (cascade delete: {state})")


def _cmd_drop_db(args: Namespace, runtime: RuntimeConfig) -> None:
    if not confirm("Drop all notes tables?", assume_yes=args.yes):
        print("Aborted.")
        return

    async def _work(repository):
        await repository.storage.drop_schema()

    run_with_repository(runtime, _work)
    print("Dropped notes tables.")
