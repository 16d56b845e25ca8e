from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouterDecl:
    """`router = APIRouter(prefix="/users", tags=["users"])`"""

    name: str
    prefix: str
    tags: tuple[str, ...]
    file_path: str


@dataclass(frozen=True)
class RouterMount:
    """`app.include_router(users.router, prefix="/v1", tags=[...])`"""

    router: str          # expression text of the mounted router, e.g. users.router
    prefix: str
    tags: tuple[str, ...]
    file_path: str
    parent: str = ""     # receiver of include_router: app, api_router, ...


@dataclass(frozen=True)
class FastAPIStructure:
    routers: tuple[RouterDecl, ...] = ()
    mounts: tuple[RouterMount, ...] = ()


def _safe_parse(path: Path) -> ast.AST | None:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as exc:
        logger.debug("Skipping %s: %s", path, exc)
        return None


def _name_of_expr(node: ast.AST) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return f"{_name_of_expr(node.value)}.{node.attr}"
    if isinstance(node, ast.Call):
        return _name_of_expr(node.func)
    if isinstance(node, ast.Subscript):
        return _name_of_expr(node.value)
    return node.__class__.__name__


def _kw_str(call: ast.Call, name: str) -> str:
    for kw in call.keywords:
        if kw.arg == name and isinstance(kw.value, ast.Constant) and isinstance(kw.value.value, str):
            return kw.value.value
    return ""


def _kw_tags(call: ast.Call) -> tuple[str, ...]:
    for kw in call.keywords:
        if kw.arg == "tags" and isinstance(kw.value, (ast.List, ast.Tuple)):
            return tuple(
                e.value for e in kw.value.elts if isinstance(e, ast.Constant) and isinstance(e.value, str)
            )
    return ()


def extract_structure_from_tree(tree: ast.AST, file_path: str = "") -> FastAPIStructure:
    routers: list[RouterDecl] = []
    mounts: list[RouterMount] = []

    for node in ast.walk(tree):
        # router = APIRouter(...) / fastapi.APIRouter(...)
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            if _name_of_expr(node.value.func).split(".")[-1] == "APIRouter":
                for target in node.targets:
                    if isinstance(target, ast.Name):
                        routers.append(
                            RouterDecl(
                                name=target.id,
                                prefix=_kw_str(node.value, "prefix"),
                                tags=_kw_tags(node.value),
                                file_path=file_path,
                            )
                        )

        # <something>.include_router(<router_expr>, prefix="...")
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Attribute):
            if node.func.attr == "include_router" and node.args:
                mounts.append(
                    RouterMount(
                        router=_name_of_expr(node.args[0]),
                        prefix=_kw_str(node, "prefix"),
                        tags=_kw_tags(node),
                        file_path=file_path,
                        parent=_name_of_expr(node.func.value),
                    )
                )

    return FastAPIStructure(routers=tuple(routers), mounts=tuple(mounts))


def extract_fastapi_structure(files: list[str]) -> FastAPIStructure:
    """
    Router declarations and include_router mounts across the given files,
    de-duplicated and in file order.
    """
    routers: list[RouterDecl] = []
    mounts: list[RouterMount] = []

    for f in files:
        path = Path(f)
        tree = _safe_parse(path)
        if tree is None:
            continue
        s = extract_structure_from_tree(tree, file_path=str(path.resolve()))
        routers.extend(s.routers)
        mounts.extend(s.mounts)

    return FastAPIStructure(
        routers=tuple(dict.fromkeys(routers)),
        mounts=tuple(dict.fromkeys(mounts)),
    )
