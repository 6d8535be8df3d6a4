"""Pytest configuration for the 4D bid slip."""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_repo_on_path() -> None:
    """Make the flat modules importable without an install."""
    repo_root = Path(__file__).resolve().parent.parent
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()
