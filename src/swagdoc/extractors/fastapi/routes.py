from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

_HTTP_METHOD_ATTRS = {
    "get": "GET",
    "post": "POST",
    "put": "PUT",
    "patch": "PATCH",
    "delete": "DELETE",
    "options": "OPTIONS",
    "head": "HEAD",
}

_DEPENDENCY_CALLS = ("Depends", "Security")


@dataclass(frozen=True)
class RouteDecl:
    method: str
    path: str
    handler_name: str
    start_line: int
    end_line: int
    decorator_line: int
    file_path: str = ""
    router: str = ""                    # receiver of the decorator: app, router, ...
    tags: tuple[str, ...] = ()
    summary: str = ""
    description: str = ""
    response_model: Optional[str] = None
    deprecated: bool = False
    include_in_schema: bool = True
    dependencies: tuple[str, ...] = ()  # Depends(...) / Security(...) targets
    param_annotations: tuple[str, ...] = ()


def extract_routes_from_source(source: str) -> list[RouteDecl]:
    """
    Parse Python source and extract FastAPI routes declared via decorators like:
      @app.get("/path", tags=["users"], response_model=User)
      @router.post(path="/path")
    or programmatically:
      app.add_api_route("/path", handler, methods=["GET"])
    Uses ast only; does not import/execute code.
    """
    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        logger.debug("Unparseable source skipped: %s", exc)
        return []

    routes: list[RouteDecl] = []
    functions: dict[str, ast.FunctionDef | ast.AsyncFunctionDef] = {}

    for node in _iter_function_defs(tree):
        functions.setdefault(node.name, node)
        start_line = getattr(node, "lineno", 1) or 1
        end_line = getattr(node, "end_lineno", start_line) or start_line

        for dec in node.decorator_list:
            maybe = _parse_route_decorator(dec)
            if maybe is None:
                continue

            method, path, router = maybe
            routes.append(
                _with_handler_metadata(
                    RouteDecl(
                        method=method,
                        path=path,
                        handler_name=node.name,
                        start_line=start_line,
                        end_line=end_line,
                        decorator_line=getattr(dec, "lineno", start_line) or start_line,
                        router=router,
                    ),
                    dec,
                    node,
                )
            )

    for node in ast.walk(tree):
        for (method, path, handler_name, router, call) in _parse_add_api_route_call(node):
            line = getattr(call, "lineno", 1) or 1
            route = RouteDecl(
                method=method,
                path=path,
                handler_name=handler_name,
                start_line=line,
                end_line=line,
                decorator_line=line,
                router=router,
            )
            # handler defined in the same module: take its span and signature
            handler = functions.get(handler_name)
            if handler is not None:
                route = replace(
                    route,
                    start_line=handler.lineno,
                    end_line=getattr(handler, "end_lineno", handler.lineno) or handler.lineno,
                )
            routes.append(_with_handler_metadata(route, call, handler))

    routes.sort(key=lambda r: (r.decorator_line, r.handler_name, r.method))
    return routes


def extract_routes_from_file(path: Path, max_bytes: int = 500_000) -> list[RouteDecl]:
    try:
        data = path.read_bytes()[:max_bytes]
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return []
    source = data.decode("utf-8", errors="ignore")
    abs_path = str(path.resolve())
    return [replace(r, file_path=abs_path) for r in extract_routes_from_source(source)]


def _iter_function_defs(tree: ast.AST) -> Iterable[ast.FunctionDef | ast.AsyncFunctionDef]:
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield node


def _parse_route_decorator(dec: ast.AST) -> Optional[tuple[str, str, str]]:
    """
    Recognize decorators of form:
      @<anything>.<method>(<path>, ...)
    where <method> in HTTP methods (get/post/...)
    Returns (METHOD, path, receiver) or None.
    """
    if not isinstance(dec, ast.Call):
        return None

    func = dec.func
    if not isinstance(func, ast.Attribute):
        return None

    method = _HTTP_METHOD_ATTRS.get(func.attr)
    if method is None:
        return None

    path_value = _const_str(dec.args[0]) if dec.args else None
    if path_value is None:
        kw = _keyword(dec, "path")
        path_value = _const_str(kw) if kw is not None else None

    if path_value is None:
        return None

    return (method, path_value, _expr_name(func.value))


def _with_handler_metadata(
    route: RouteDecl,
    call: ast.Call,
    handler: Optional[ast.FunctionDef | ast.AsyncFunctionDef],
) -> RouteDecl:
    """Fold documentation keywords and handler signature into the route."""
    tags_node = _keyword(call, "tags")
    tags = tuple(_const_str_list(tags_node) or ()) if tags_node is not None else ()

    summary = _kw_str(call, "summary") or ""
    description = _kw_str(call, "description") or ""

    doc = ast.get_docstring(handler) if handler is not None else None
    if doc:
        first, _, rest = doc.partition("\n")
        if not summary:
            summary = first.strip()
        if not description:
            description = rest.strip()

    response_model: Optional[str] = None
    rm = _keyword(call, "response_model")
    if rm is not None and not _is_none(rm):
        response_model = ast.unparse(rm)
    elif handler is not None and handler.returns is not None and not _is_none(handler.returns):
        response_model = ast.unparse(handler.returns)

    deprecated = _kw_bool(call, "deprecated", False)
    include_in_schema = _kw_bool(call, "include_in_schema", True)

    deps: list[str] = []
    dep_list = _keyword(call, "dependencies")
    if isinstance(dep_list, (ast.List, ast.Tuple)):
        for elt in dep_list.elts:
            deps.extend(_dependency_targets(elt))

    annotations: list[str] = []
    if handler is not None:
        args = handler.args
        all_args = list(args.posonlyargs) + list(args.args) + list(args.kwonlyargs)
        defaults = list(args.defaults) + [d for d in args.kw_defaults if d is not None]
        for a in all_args:
            if a.annotation is not None:
                annotations.append(ast.unparse(a.annotation))
                deps.extend(_dependency_targets(a.annotation))
        for d in defaults:
            deps.extend(_dependency_targets(d))

    return replace(
        route,
        tags=tags,
        summary=summary,
        description=description,
        response_model=response_model,
        deprecated=deprecated,
        include_in_schema=include_in_schema,
        dependencies=tuple(dict.fromkeys(deps)),
        param_annotations=tuple(annotations),
    )


def _dependency_targets(node: ast.AST) -> list[str]:
    # Depends(x), fastapi.Security(x, scopes=[...]), Annotated[User, Depends(x)]
    out: list[str] = []
    for sub in ast.walk(node):
        if not isinstance(sub, ast.Call):
            continue
        fn = _expr_name(sub.func)
        if fn.split(".")[-1] not in _DEPENDENCY_CALLS:
            continue
        target = sub.args[0] if sub.args else _keyword(sub, "dependency")
        if target is not None:
            out.append(_expr_name(target))
    return out


def _keyword(call: ast.Call, name: str) -> Optional[ast.AST]:
    for kw in call.keywords or []:
        if kw.arg == name:
            return kw.value
    return None


def _kw_str(call: ast.Call, name: str) -> Optional[str]:
    node = _keyword(call, name)
    return _const_str(node) if node is not None else None


def _kw_bool(call: ast.Call, name: str, default: bool) -> bool:
    node = _keyword(call, name)
    if isinstance(node, ast.Constant) and isinstance(node.value, bool):
        return node.value
    return default


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _expr_name(node: ast.AST) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return f"{_expr_name(node.value)}.{node.attr}"
    if isinstance(node, ast.Call):
        return _expr_name(node.func)
    return ast.unparse(node)


def _const_str(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value.strip()

    # f-strings, concatenation and names are not evaluated
    return None


def _const_str_list(node: ast.AST) -> Optional[list[str]]:
    # ["GET","POST"], ("GET",), {"GET"} or a bare "GET"
    if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
        out = []
        for elt in node.elts:
            s = _const_str(elt)
            if s is None:
                return None
            out.append(s)
        return out

    s = _const_str(node)
    if s is not None:
        return [s]

    return None


def _parse_add_api_route_call(node: ast.AST) -> list[tuple[str, str, str, str, ast.Call]]:
    """
    Return list of (METHOD, path, handler_name, receiver, call)
    """
    if not isinstance(node, ast.Call):
        return []
    func = node.func
    if not isinstance(func, ast.Attribute) or func.attr != "add_api_route":
        return []

    # add_api_route(path, endpoint, ...)
    if len(node.args) < 2:
        return []

    path = _const_str(node.args[0])
    if path is None:
        return []

    handler = node.args[1]
    if not isinstance(handler, (ast.Name, ast.Attribute)):
        return []
    handler_name = _expr_name(handler)

    methods_node = _keyword(node, "methods")
    if methods_node is None:
        return []  # FastAPI defaults to GET, but only documented methods are trusted

    methods = _const_str_list(methods_node)
    if not methods:
        return []

    receiver = _expr_name(func.value)
    return [(m.upper(), path, handler_name, receiver, node) for m in methods]
