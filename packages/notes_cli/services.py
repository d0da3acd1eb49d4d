"""Shared helpers for CLI commands."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from packages.notes_core import HierarchyRepository, StorageEngine

from .config import RuntimeConfig

T = TypeVar("T")


def run_with_repository(
    runtime: RuntimeConfig, work: Callable[[HierarchyRepository], Awaitable[T]]
) -> T:
    """Open the store, run *work* against a repository, then dispose the store."""

    async def _main() -> T:
        storage = StorageEngine(runtime.settings)
        try:
            return await work(HierarchyRepository(storage))
        finally:
            await storage.dispose()

    return asyncio.run(_main())


def confirm(prompt: str, *, assume_yes: bool = False) -> bool:
    """Ask a yes/no question on stdin; ``--yes`` skips the prompt."""

    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} [y/N]: ").strip().lower()
    except EOFError:
        return False
    return answer in {"y", "yes"}
