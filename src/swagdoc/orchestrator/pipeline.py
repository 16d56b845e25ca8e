from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from swagdoc.builders.listing import ApiListingBuilder
from swagdoc.builders.ordering import DESCRIPTION_ORDERINGS, listing_position_ordering
from swagdoc.config import Settings
from swagdoc.domain.models import ApiListing
from swagdoc.extractors.fastapi.models import ClassDecl, extract_classes_from_file, resolve_models
from swagdoc.extractors.fastapi.routes import RouteDecl, extract_routes_from_file
from swagdoc.extractors.fastapi.structure import extract_fastapi_structure
from swagdoc.grouping.resources import ResourceGroup, group_routes
from swagdoc.repo.framework_detector import detect_python_framework
from swagdoc.repo.scanner import file_contains_any, scan_python_files, select_candidate_api_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentResult:
    framework: str
    confidence: float
    files_scanned: int
    candidate_files: list[str]
    routes: list[RouteDecl]
    listings: list[ApiListing]


def build_listing(group: ResourceGroup, settings: Settings) -> ApiListing:
    builder = ApiListingBuilder(DESCRIPTION_ORDERINGS[settings.ordering])
    return (
        builder.api_version(settings.api_version)
        .base_path(settings.base_path)
        .resource_path(group.resource_path)
        .produces(set(settings.produces))
        .consumes(set(settings.consumes))
        .protocols(set(settings.protocols))
        .authorizations(group.authorizations)
        .apis(group.apis)
        .models(group.models)
        .description(f"Operations about {group.name}")
        .position(group.position)
        .build()
    )


def run_document(repo_path: Path, settings: Optional[Settings] = None) -> DocumentResult:
    """
    Scan a repository and turn its FastAPI routes into one ApiListing per resource.
    Nothing from the repository is imported.
    """
    settings = settings or Settings()
    repo_path = repo_path.resolve()

    py_files = scan_python_files(repo_path, max_files=settings.max_files)
    framework, confidence = detect_python_framework(py_files)
    logger.info("Detected framework %s (confidence=%.2f)", framework, confidence)

    candidates = select_candidate_api_files(py_files, framework_hint=framework)
    rel_candidates = [os.path.relpath(p, str(repo_path)) for p in candidates]

    if framework != "fastapi":
        logger.warning("No route extractor for framework %r; no listings produced", framework)
        return DocumentResult(
            framework=framework,
            confidence=confidence,
            files_scanned=len(py_files),
            candidate_files=rel_candidates,
            routes=[],
            listings=[],
        )

    routes: list[RouteDecl] = []
    classes: list[ClassDecl] = []
    for p in candidates:
        fpath = Path(p)
        file_routes = extract_routes_from_file(fpath)
        if file_routes:
            logger.debug("%s: %d routes", os.path.relpath(p, str(repo_path)), len(file_routes))
        routes.extend(file_routes)

    # models may subclass one another from files with no route or BaseModel text
    for p in py_files:
        if file_contains_any(p, ["class "]):
            classes.extend(extract_classes_from_file(Path(p)))

    # Dedup on declaration site
    seen = set()
    deduped = []
    for r in routes:
        key = (r.file_path, r.method, r.path, r.handler_name, r.decorator_line)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(r)
    routes = deduped

    models = resolve_models(classes)
    structure = extract_fastapi_structure(candidates)

    groups = group_routes(
        routes,
        structure,
        models,
        security_dependencies=settings.security_dependencies,
    )
    listings = sorted((build_listing(g, settings) for g in groups), key=listing_position_ordering)

    logger.info(
        "Built %d listings from %d routes and %d models",
        len(listings),
        len(routes),
        len(models),
    )

    return DocumentResult(
        framework=framework,
        confidence=confidence,
        files_scanned=len(py_files),
        candidate_files=rel_candidates,
        routes=routes,
        listings=listings,
    )
