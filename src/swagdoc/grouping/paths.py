from __future__ import annotations

import re
from pathlib import Path

_PARAM_ANGLE = re.compile(r"<(?:[A-Za-z_]+:)?([A-Za-z_][A-Za-z0-9_]*)>")
_PARAM_COLON = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")
_MULTI_SLASH = re.compile(r"/{2,}")
_SAFE = re.compile(r"[^a-zA-Z0-9_-]+")


def normalize_path(path: str) -> str:
    p = (path or "").strip()
    if not p.startswith("/"):
        p = "/" + p

    # normalize common param styles into "{param}"
    p = _PARAM_ANGLE.sub(r"{\1}", p)     # <id>, <int:id> -> {id}
    p = _PARAM_COLON.sub(r"{\1}", p)     # :id -> {id}

    p = _MULTI_SLASH.sub("/", p)

    # keep "/" as-is, otherwise strip trailing slash for stability
    if p != "/" and p.endswith("/"):
        p = p[:-1]
    return p


def join_paths(*parts: str) -> str:
    return normalize_path("/".join(p.strip("/") for p in parts if p and p.strip("/")))


def resource_name_for_file(file_path: str) -> str:
    # routers/users.py -> users, routers/users/__init__.py -> users
    p = Path((file_path or "").replace("\\", "/"))
    stem = p.stem
    if stem == "__init__":
        stem = p.parent.name
    return slugify(stem) or "default"


def slugify(text: str) -> str:
    return _SAFE.sub("-", (text or "").strip()).strip("-").lower()
