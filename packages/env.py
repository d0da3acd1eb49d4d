"""Helpers for loading `.env` files for the notes stack."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from dotenv import find_dotenv, load_dotenv

PathLike = Union[str, Path]
_LOADED = False


def load_env(*, override: bool = False, extra_paths: Iterable[PathLike] | None = None) -> bool:
    """Load environment variables from `.env` files if they exist.

    Files are consulted in order: ``extra_paths``, the nearest `.env` found
    from the current working directory, then the repository-level `.env`.
    A path is never loaded twice in one call.

    Args:
        override: When ``True`` existing variables may be replaced.
        extra_paths: Optional iterable of additional files to load before the
            default search locations.

    Returns:
        ``True`` if any environment file was successfully loaded.
    """

    global _LOADED

    if _LOADED and not override and extra_paths is None:
        return True

    loaded_any = False
    seen: set[Path] = set()

    def _load(path: Path) -> None:
        nonlocal loaded_any
        resolved = path.resolve()
        if resolved in seen or not resolved.exists():
            return
        seen.add(resolved)
        loaded_any = load_dotenv(resolved, override=override) or loaded_any

    for raw_path in extra_paths or ():
        _load(Path(raw_path).expanduser())

    found = find_dotenv(usecwd=True)
    if found:
        _load(Path(found))

    _load(Path(__file__).resolve().parent.parent / ".env")

    if not override:
        _LOADED = True

    return loaded_any
