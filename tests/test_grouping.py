import ast

from swagdoc.domain.models import Model, ModelProperty
from swagdoc.extractors.fastapi.routes import RouteDecl, extract_routes_from_source
from swagdoc.extractors.fastapi.structure import FastAPIStructure, extract_structure_from_tree
from swagdoc.grouping.paths import join_paths, normalize_path, resource_name_for_file
from swagdoc.grouping.resources import group_routes, resolve_route


def route(method, path, handler, file_path="routers/users.py", line=1, **kw):
    return RouteDecl(
        method=method,
        path=path,
        handler_name=handler,
        start_line=line,
        end_line=line,
        decorator_line=line,
        file_path=file_path,
        **kw,
    )


def test_normalize_path():
    assert normalize_path("users") == "/users"
    assert normalize_path("/users/<id>/") == "/users/{id}"
    assert normalize_path("/users/<int:id>") == "/users/{id}"
    assert normalize_path("/users/:id") == "/users/{id}"
    assert normalize_path("//a///b") == "/a/b"
    assert normalize_path("/") == "/"
    assert normalize_path("/files/{file_path:path}") == "/files/{file_path:path}"


def test_join_paths_and_resource_names():
    assert join_paths("/v1", "/users/", "/{id}") == "/v1/users/{id}"
    assert join_paths("", "", "/") == "/"
    assert resource_name_for_file(r"app\routers\users.py") == "users"
    assert resource_name_for_file("app/orders/__init__.py") == "orders"
    assert resource_name_for_file("") == "default"


def test_structure_and_prefix_resolution():
    users_src = """
from fastapi import APIRouter
router = APIRouter(prefix="/users", tags=["users"])

@router.get("/{id}")
def get_user(id: int):
    return {}
"""
    main_src = """
from fastapi import FastAPI
from app import users
app = FastAPI()
app.include_router(users.router, prefix="/v1")
"""
    users_structure = extract_structure_from_tree(ast.parse(users_src), file_path="/repo/app/users.py")
    main_structure = extract_structure_from_tree(ast.parse(main_src), file_path="/repo/app/main.py")
    structure = FastAPIStructure(
        routers=users_structure.routers + main_structure.routers,
        mounts=users_structure.mounts + main_structure.mounts,
    )

    assert structure.routers[0].prefix == "/users"
    assert structure.mounts[0].router == "users.router"

    r = extract_routes_from_source(users_src)[0]
    r = RouteDecl(**{**r.__dict__, "file_path": "/repo/app/users.py"})
    resolved = resolve_route(r, structure)
    assert resolved.path == "/v1/users/{id}"
    assert resolved.tags == ("users",)


def test_group_routes_by_tag_then_file():
    routes = [
        route("GET", "/users", "list_users", line=3),
        route("POST", "/users", "create_user", line=8),
        route("GET", "/users/{id}", "get_user", line=12),
        route("GET", "/health", "health", file_path="app/main.py", tags=("ops",)),
        route("GET", "/hidden", "hidden", file_path="app/main.py", include_in_schema=False),
    ]
    groups = group_routes(routes, FastAPIStructure(), models={})

    assert [g.name for g in groups] == ["ops", "users"]
    assert [g.position for g in groups] == [0, 1]

    users = groups[1]
    assert users.resource_path == "/users"
    by_path = {a.path: a for a in users.apis}
    assert set(by_path) == {"/users", "/users/{id}"}
    assert [op.method for op in by_path["/users"].operations] == ["GET", "POST"]
    assert [op.nickname for op in by_path["/users"].operations] == ["list_users", "create_user"]


def test_group_routes_drops_duplicate_operations():
    routes = [
        route("GET", "/a", "first", line=1),
        route("GET", "/a/", "second", line=5),
    ]
    groups = group_routes(routes, FastAPIStructure(), models={})
    ops = groups[0].apis[0].operations
    assert [op.nickname for op in ops] == ["first"]


def test_group_routes_authorizations_and_models():
    address = Model(id="Address", name="Address", properties=(ModelProperty("city"),))
    user = Model(
        id="User",
        name="User",
        properties=(ModelProperty("address", "Address"), ModelProperty("friends", "array", items="User")),
    )
    create = Model(id="UserCreate", name="UserCreate")
    unrelated = Model(id="Invoice", name="Invoice")
    models = {m.id: m for m in (address, user, create, unrelated)}

    routes = [
        route(
            "GET",
            "/users/me",
            "me",
            response_model="User",
            dependencies=("get_current_user", "get_db"),
        ),
        route(
            "POST",
            "/users",
            "create",
            line=5,
            response_model="dict",
            param_annotations=("UserCreate",),
            dependencies=("auth.oauth2_scheme",),
        ),
    ]
    groups = group_routes(
        routes,
        FastAPIStructure(),
        models=models,
        security_dependencies=["get_current_user", "oauth2_scheme"],
    )
    g = groups[0]

    assert [a.type for a in g.authorizations] == ["get_current_user", "oauth2_scheme"]
    assert list(g.models) == ["Address", "User", "UserCreate"]

    me = [a for a in g.apis if a.path == "/users/me"][0].operations[0]
    assert me.response_model == "User"
    assert [a.type for a in me.authorizations] == ["get_current_user"]


def test_nested_router_prefixes_accumulate():
    users_src = """
from fastapi import APIRouter
router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me")
def me():
    return {}
"""
    api_src = """
from fastapi import APIRouter
from app import users
api_router = APIRouter()
api_router.include_router(users.router)
"""
    main_src = """
from fastapi import FastAPI
from app.api import api_router
app = FastAPI()
app.include_router(api_router, prefix="/api/v1")
"""
    parts = [
        extract_structure_from_tree(ast.parse(src), file_path=f"/repo/app/{name}.py")
        for name, src in (("users", users_src), ("api", api_src), ("main", main_src))
    ]
    structure = FastAPIStructure(
        routers=sum((p.routers for p in parts), ()),
        mounts=sum((p.mounts for p in parts), ()),
    )
    assert [(m.parent, m.router) for m in structure.mounts] == [
        ("api_router", "users.router"),
        ("app", "api_router"),
    ]

    r = extract_routes_from_source(users_src)[0]
    r = RouteDecl(**{**r.__dict__, "file_path": "/repo/app/users.py"})
    resolved = resolve_route(r, structure)
    assert resolved.path == "/api/v1/users/me"
    assert resolved.tags == ("users",)


def test_operation_keeps_full_response_annotation():
    user = Model(id="User", name="User", properties=(ModelProperty("name"),))
    routes = [route("GET", "/users", "list_users", response_model="list[User]")]

    g = group_routes(routes, FastAPIStructure(), models={"User": user})[0]

    assert g.apis[0].operations[0].response_model == "list[User]"
    assert list(g.models) == ["User"]
