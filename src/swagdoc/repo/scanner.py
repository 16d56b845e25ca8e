from __future__ import annotations

import logging
import os
from pathlib import Path

from swagdoc.repo.ignore import should_ignore_dir

logger = logging.getLogger(__name__)

_FRAMEWORK_NEEDLES: dict[str, list[str]] = {
    "fastapi": ["from fastapi import", "FastAPI(", "APIRouter", "add_api_route", "include_router", "BaseModel"],
    "flask": ["from flask import", "Flask(", "@app.route", "Blueprint("],
    "django": ["from django.urls", "re_path(", "urlpatterns", "django.http"],
}
_FALLBACK_NEEDLES = ["@app.", "route", "FastAPI(", "Flask(", "django.urls"]


def scan_python_files(repo_path: Path, max_files: int | None = None) -> list[str]:
    """
    Absolute paths of every .py file under repo_path, ignored dirs pruned.
    Walk order is sorted so repeated scans list files identically.
    """
    out: list[str] = []
    for root, dirs, files in os.walk(repo_path):
        root_p = Path(root)

        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d))

        for f in sorted(files):
            if f.endswith(".py"):
                out.append(str((root_p / f).resolve()))
                if max_files is not None and len(out) >= max_files:
                    logger.debug("Stopped scanning at max_files=%d", max_files)
                    return out
    return out


def file_contains_any(path: str, needles: list[str], max_bytes: int = 200_000) -> bool:
    try:
        with open(path, "rb") as f:
            data = f.read(max_bytes)
    except OSError as exc:
        logger.debug("Skipping unreadable file %s: %s", path, exc)
        return False
    text = data.decode("utf-8", errors="ignore")
    return any(n in text for n in needles)


def select_candidate_api_files(py_files: list[str], framework_hint: str) -> list[str]:
    """
    Files likely to declare routes or request/response models for the framework.
    FastAPI needles include BaseModel so model-only modules are picked up too.
    """
    needles = _FRAMEWORK_NEEDLES.get(framework_hint, _FALLBACK_NEEDLES)
    return [p for p in py_files if file_contains_any(p, needles)]
