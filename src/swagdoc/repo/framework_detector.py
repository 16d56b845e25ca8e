from __future__ import annotations

import logging
from collections import Counter

from swagdoc.repo.scanner import file_contains_any

logger = logging.getLogger(__name__)


def detect_python_framework(py_files: list[str], sample_limit: int = 200) -> tuple[str, float]:
    """
    Heuristic detection from import/usage needles. No code is imported.
    Returns (framework, confidence).
    """
    sample = py_files[:sample_limit]
    scores: Counter[str] = Counter()

    for p in sample:
        if file_contains_any(p, ["from fastapi import", "import fastapi", "FastAPI(", "APIRouter"]):
            scores["fastapi"] += 3
        if file_contains_any(p, ["from flask import", "Flask(", "@app.route", "Blueprint("]):
            scores["flask"] += 2
        if file_contains_any(p, ["from django.urls", "urlpatterns", "re_path("]):
            scores["django"] += 2

    if not scores:
        return ("unknown", 0.2)

    framework, top = scores.most_common(1)[0]
    total = sum(scores.values())
    confidence = max(0.3, min(0.99, top / max(total, 1)))
    logger.debug("Framework scores: %s", dict(scores))
    return (framework, confidence)
