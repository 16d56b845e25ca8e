from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

from swagdoc.builders.ordering import operation_ordering
from swagdoc.domain.models import ApiDescription, Authorization, Model, Operation
from swagdoc.extractors.fastapi.models import referenced_names
from swagdoc.extractors.fastapi.routes import RouteDecl
from swagdoc.extractors.fastapi.structure import FastAPIStructure, RouterDecl, RouterMount
from swagdoc.grouping.paths import join_paths, resource_name_for_file, slugify

logger = logging.getLogger(__name__)

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass
class ResourceGroup:
    """Routes that end up in the same ApiListing."""

    name: str
    apis: list[ApiDescription] = field(default_factory=list)
    authorizations: list[Authorization] = field(default_factory=list)
    models: dict[str, Model] = field(default_factory=dict)
    position: int = 0

    @property
    def resource_path(self) -> str:
        return f"/{self.name}"


@dataclass(frozen=True)
class _ResolvedRoute:
    route: RouteDecl
    path: str
    tags: tuple[str, ...]


def _find_router(name: str, file_path: str, structure: FastAPIStructure) -> Optional[RouterDecl]:
    for r in structure.routers:
        if r.name == name and (not file_path or r.file_path == file_path):
            return r
    return None


def _find_mount(name: str, file_path: str, structure: FastAPIStructure) -> Optional[RouterMount]:
    """
    Mount that includes router `name` declared in `file_path`.
    Qualified mounts (users.router) need the qualifier to be the file stem.
    Bare mounts prefer the same file, then a file that imported the name
    (one that doesn't declare a router of its own under it).
    """
    stem = Path(file_path).stem if file_path else ""
    fallback: Optional[RouterMount] = None
    for m in structure.mounts:
        parts = m.router.split(".")
        if parts[-1] != name:
            continue
        if len(parts) > 1:
            if not stem or parts[-2] == stem:
                return m
            continue
        if not file_path or m.file_path == file_path:
            return m
        if fallback is None and _find_router(name, m.file_path, structure) is None:
            fallback = m
    return fallback


def resolve_route(route: RouteDecl, structure: FastAPIStructure) -> _ResolvedRoute:
    """
    Join router and mount prefixes onto a route path and collect inherited tags.

    Walks outwards through include_router mounts, so a router included into an
    aggregate router that is itself mounted picks up every prefix on the way.
    """
    segments = [route.path]
    tags = list(route.tags)
    name, where = route.router, route.file_path
    visited: set[tuple[str, str]] = set()

    while (name, where) not in visited:
        visited.add((name, where))

        decl = _find_router(name, where, structure)
        if decl is not None:
            segments.insert(0, decl.prefix)
            tags.extend(decl.tags)

        mount = _find_mount(name, where, structure)
        if mount is None or not mount.parent:
            break
        segments.insert(0, mount.prefix)
        tags.extend(mount.tags)
        name, where = mount.parent, mount.file_path

    return _ResolvedRoute(route=route, path=join_paths(*segments), tags=tuple(dict.fromkeys(tags)))


def group_routes(
    routes: Iterable[RouteDecl],
    structure: FastAPIStructure,
    models: Mapping[str, Model],
    security_dependencies: Iterable[str] = (),
) -> list[ResourceGroup]:
    """
    Routes -> resource groups, one per first tag (or declaring file when untagged).

    Within a group every path becomes one ApiDescription holding an Operation
    per method. Operation positions follow declaration order. Groups are
    positioned alphabetically.
    """
    security = set(security_dependencies)

    by_group: dict[str, list[_ResolvedRoute]] = {}
    for route in routes:
        if not route.include_in_schema:
            logger.debug("Hidden route %s %s skipped", route.method, route.path)
            continue
        resolved = resolve_route(route, structure)
        name = slugify(resolved.tags[0]) if resolved.tags else resource_name_for_file(route.file_path)
        by_group.setdefault(name or "default", []).append(resolved)

    groups: list[ResourceGroup] = []
    for position, name in enumerate(sorted(by_group)):
        members = sorted(
            by_group[name],
            key=lambda r: (r.route.file_path, r.route.decorator_line, r.route.method),
        )

        ops_by_path: dict[str, list[Operation]] = {}
        seen_ops: set[tuple[str, str]] = set()
        auths: dict[str, Authorization] = {}
        model_refs: set[str] = set()

        for index, rr in enumerate(members):
            r = rr.route
            key = (rr.path, r.method)
            if key in seen_ops:
                logger.debug("Duplicate operation %s %s ignored", r.method, rr.path)
                continue
            seen_ops.add(key)

            op_auths = tuple(
                Authorization(type=d.split(".")[-1])
                for d in r.dependencies
                if d.split(".")[-1] in security
            )
            for a in op_auths:
                auths.setdefault(a.type, a)

            response_model = _model_name(r.response_model, models)
            if response_model:
                model_refs.add(response_model)
            for ann in r.param_annotations:
                model_refs.update(referenced_names(ann) & models.keys())

            ops_by_path.setdefault(rr.path, []).append(
                Operation(
                    method=r.method,
                    nickname=r.handler_name,
                    summary=r.summary,
                    notes=r.description,
                    position=index,
                    tags=rr.tags,
                    response_model=r.response_model,
                    deprecated=r.deprecated,
                    authorizations=op_auths,
                )
            )

        apis = [
            ApiDescription(path=path, operations=tuple(sorted(ops, key=operation_ordering)))
            for path, ops in ops_by_path.items()
        ]

        groups.append(
            ResourceGroup(
                name=name,
                apis=apis,
                authorizations=list(auths.values()),
                models=_closure(model_refs, models),
                position=position,
            )
        )

    return groups


def _model_name(annotation: Optional[str], models: Mapping[str, Model]) -> Optional[str]:
    """First model referenced by a response annotation: list[User] -> User."""
    if not annotation:
        return None
    for ident in _IDENT.findall(annotation):
        if ident in models:
            return ident
    return None


def _closure(names: set[str], models: Mapping[str, Model]) -> dict[str, Model]:
    """Referenced models plus every model reachable through their properties."""
    out: dict[str, Model] = {}
    stack = sorted(names)
    while stack:
        name = stack.pop()
        if name in out or name not in models:
            continue
        model = models[name]
        out[name] = model
        for prop in model.properties:
            for ref in (prop.type, prop.items):
                if ref and ref in models and ref not in out:
                    stack.append(ref)
    return dict(sorted(out.items()))

