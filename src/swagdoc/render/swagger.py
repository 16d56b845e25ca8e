"""
Swagger 1.2 rendering for ApiListing values.

An ApiListing becomes an API declaration; a list of listings becomes the
resource listing that points at them. Document shapes are pydantic models
with camelCase aliases so the dumped keys follow the Swagger 1.2 names.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from swagdoc.domain.models import ApiListing, Authorization, Model, Operation
from swagdoc.errors import RenderError
from swagdoc.extractors.fastapi.models import swagger_items, swagger_type

SWAGGER_VERSION = "1.2"
_PRIMITIVES = frozenset({"string", "integer", "number", "boolean", "object", "array", "void"})


class _Doc(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ScopeDoc(_Doc):
    scope: str
    description: str = ""


class ItemsDoc(_Doc):
    type: Optional[str] = None
    ref: Optional[str] = Field(default=None, alias="$ref")


class PropertyDoc(_Doc):
    type: Optional[str] = None
    ref: Optional[str] = Field(default=None, alias="$ref")
    items: Optional[ItemsDoc] = None
    description: Optional[str] = None


class ModelDoc(_Doc):
    id: str
    description: Optional[str] = None
    required: list[str] = Field(default_factory=list)
    properties: dict[str, PropertyDoc] = Field(default_factory=dict)


class OperationDoc(_Doc):
    method: str
    nickname: str
    summary: str = ""
    notes: str = ""
    type: str = "void"
    items: Optional[ItemsDoc] = None
    produces: Optional[list[str]] = None
    consumes: Optional[list[str]] = None
    authorizations: dict[str, list[ScopeDoc]] = Field(default_factory=dict)
    deprecated: Optional[str] = None


class ApiDoc(_Doc):
    path: str
    description: Optional[str] = None
    operations: list[OperationDoc] = Field(default_factory=list)


class ApiDeclarationDoc(_Doc):
    swagger_version: str = SWAGGER_VERSION
    api_version: Optional[str] = None
    base_path: Optional[str] = None
    resource_path: Optional[str] = None
    description: Optional[str] = None
    produces: list[str] = Field(default_factory=list)
    consumes: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)
    authorizations: dict[str, list[ScopeDoc]] = Field(default_factory=dict)
    apis: list[ApiDoc] = Field(default_factory=list)
    models: dict[str, ModelDoc] = Field(default_factory=dict)
    position: int = 0


class ResourceDoc(_Doc):
    path: str
    description: Optional[str] = None
    position: int = 0


class ResourceListingDoc(_Doc):
    swagger_version: str = SWAGGER_VERSION
    api_version: Optional[str] = None
    apis: list[ResourceDoc] = Field(default_factory=list)


def _type_fields(type_name: str, models: Iterable[str], items: Optional[str] = None) -> dict[str, Any]:
    # model names become $ref, primitives stay as type
    known = set(models)
    if type_name == "array":
        out: dict[str, Any] = {"type": "array"}
        if items:
            out["items"] = ItemsDoc(ref=items) if items in known else ItemsDoc(type=items)
        return out
    if type_name in known:
        return {"ref": type_name}
    if type_name in _PRIMITIVES:
        return {"type": type_name}
    return {"type": "object"}


def _authorizations(auths: Iterable[Authorization]) -> dict[str, list[ScopeDoc]]:
    return {
        a.type: [ScopeDoc(scope=s.scope, description=s.description) for s in a.scopes]
        for a in auths
    }


def render_model(model: Model, model_names: Iterable[str]) -> ModelDoc:
    names = set(model_names)
    return ModelDoc(
        id=model.id,
        description=model.description or None,
        required=[p.name for p in model.properties if p.required],
        properties={
            p.name: PropertyDoc(
                description=p.description or None,
                **_type_fields(p.type, names, p.items),
            )
            for p in model.properties
        },
    )


def render_operation(op: Operation, model_names: Iterable[str]) -> OperationDoc:
    names = set(model_names)
    if op.response_model:
        fields = _type_fields(swagger_type(op.response_model), names, swagger_items(op.response_model))
        # swagger 1.2 puts a model reference directly in "type"
        type_name = fields.pop("ref", None) or fields.pop("type")
    else:
        type_name, fields = "void", {}

    return OperationDoc(
        method=op.method,
        nickname=op.nickname,
        summary=op.summary,
        notes=op.notes,
        type=type_name,
        items=fields.get("items"),
        produces=sorted(op.produces) or None,
        consumes=sorted(op.consumes) or None,
        authorizations=_authorizations(op.authorizations),
        deprecated="true" if op.deprecated else None,
    )


def render_listing(listing: ApiListing) -> ApiDeclarationDoc:
    names = list(listing.models)
    return ApiDeclarationDoc(
        api_version=listing.api_version,
        base_path=listing.base_path,
        resource_path=listing.resource_path,
        description=listing.description,
        produces=sorted(listing.produces),
        consumes=sorted(listing.consumes),
        protocols=sorted(listing.protocols),
        authorizations=_authorizations(listing.authorizations),
        apis=[
            ApiDoc(
                path=api.path,
                description=api.description or None,
                operations=[render_operation(op, names) for op in api.operations],
            )
            for api in listing.apis
            if not api.hidden
        ],
        models={name: render_model(m, names) for name, m in sorted(listing.models.items())},
        position=listing.position,
    )


def render_resource_listing(listings: Iterable[ApiListing], api_version: Optional[str] = None) -> ResourceListingDoc:
    listings = list(listings)
    if api_version is None and listings:
        api_version = listings[0].api_version
    return ResourceListingDoc(
        api_version=api_version,
        apis=[
            ResourceDoc(
                path=listing.resource_path or "/",
                description=listing.description,
                position=listing.position,
            )
            for listing in listings
        ],
    )


def dump_document(doc: Union[BaseModel, dict[str, Any]], fmt: str = "json") -> str:
    data = doc.model_dump(by_alias=True, exclude_none=True) if isinstance(doc, BaseModel) else doc
    fmt = fmt.lower().strip()
    if fmt == "json":
        return json.dumps(data, indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    raise RenderError(f"Unsupported output format: {fmt!r} (expected json or yaml)")
