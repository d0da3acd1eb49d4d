"""Top-level namespace for the ekan-notes Python packages.

``notes_core`` holds the persistence layer (workspaces, pages, markdown
entries) and ``notes_cli`` the command-line front end that drives it.
"""

from __future__ import annotations

from .env import load_env

__all__ = ["load_env"]
