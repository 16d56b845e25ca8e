from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class AuthorizationScope:
    scope: str
    description: str = ""


@dataclass(frozen=True)
class Authorization:
    """Reference to a named security scheme."""

    type: str
    scopes: tuple[AuthorizationScope, ...] = ()


@dataclass(frozen=True)
class Operation:
    method: str                 # GET, POST, ...
    nickname: str               # handler name
    summary: str = ""
    notes: str = ""
    position: int = 0           # declaration order inside the listing
    tags: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    consumes: tuple[str, ...] = ()
    response_model: Optional[str] = None
    deprecated: bool = False
    authorizations: tuple[Authorization, ...] = ()


@dataclass(frozen=True)
class ApiDescription:
    """All operations declared on one path."""

    path: str
    description: str = ""
    operations: tuple[Operation, ...] = ()
    hidden: bool = False


@dataclass(frozen=True)
class ModelProperty:
    name: str
    type: str = "string"
    required: bool = False
    description: str = ""
    items: Optional[str] = None  # element type when type == "array"


@dataclass(frozen=True)
class Model:
    id: str
    name: str
    qualified_type: str = ""
    properties: tuple[ModelProperty, ...] = ()
    description: str = ""


def _empty_models() -> Mapping[str, Model]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ApiListing:
    """
    One documented resource: endpoint descriptions plus listing level metadata.

    Built by ApiListingBuilder. Collections are frozen on construction so a
    listing handed downstream can't change under the renderer.
    """

    api_version: Optional[str] = None
    base_path: Optional[str] = None
    resource_path: Optional[str] = None
    produces: frozenset[str] = frozenset()
    consumes: frozenset[str] = frozenset()
    protocols: frozenset[str] = frozenset()
    authorizations: tuple[Authorization, ...] = ()
    apis: tuple[ApiDescription, ...] = ()
    models: Mapping[str, Model] = field(default_factory=_empty_models, hash=False)
    description: Optional[str] = None
    position: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "produces", frozenset(self.produces))
        object.__setattr__(self, "consumes", frozenset(self.consumes))
        object.__setattr__(self, "protocols", frozenset(self.protocols))
        object.__setattr__(self, "authorizations", tuple(self.authorizations))
        object.__setattr__(self, "apis", tuple(self.apis))
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))

    @property
    def operation_count(self) -> int:
        return sum(len(a.operations) for a in self.apis)
