from __future__ import annotations

from pathlib import Path

IGNORED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".venv",
        "venv",
        "env",
        ".tox",
        ".nox",
        "__pycache__",
        "node_modules",
        "site-packages",
        "dist",
        "build",
        ".eggs",
        ".mypy_cache",
        ".ruff_cache",
        ".pytest_cache",
    }
)


def should_ignore_dir(dir_path: Path) -> bool:
    name = dir_path.name
    return name in IGNORED_DIRS or name.endswith(".egg-info")
