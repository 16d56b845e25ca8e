from __future__ import annotations

from typing import Iterable, Mapping, Optional

from swagdoc.builders.defaults import (
    default_if_absent,
    null_to_empty_list,
    null_to_empty_map,
    null_to_empty_set,
)
from swagdoc.builders.ordering import DescriptionOrdering
from swagdoc.domain.models import ApiDescription, ApiListing, Authorization, Model


class ApiListingBuilder:
    """
    Mutable accumulator for an ApiListing.

    Scalars are set-if-present: passing None keeps whatever was there.
    Collections either replace (produces, consumes, authorizations, apis) or
    merge (append_*, protocols, models). Nothing is validated; build() just
    snapshots the current state.

    Single owner only, there is no locking.
    """

    def __init__(self, description_ordering: DescriptionOrdering) -> None:
        self._description_ordering = description_ordering
        self._api_version: Optional[str] = None
        self._base_path: Optional[str] = None
        self._resource_path: Optional[str] = None
        self._description: Optional[str] = None
        self._position: int = 0

        self._produces: set[str] = set()
        self._consumes: set[str] = set()
        self._protocols: set[str] = set()
        self._authorizations: list[Authorization] = []
        self._apis: list[ApiDescription] = []
        self._models: dict[str, Model] = {}

    def api_version(self, api_version: Optional[str]) -> "ApiListingBuilder":
        self._api_version = default_if_absent(api_version, self._api_version)
        return self

    def base_path(self, base_path: Optional[str]) -> "ApiListingBuilder":
        self._base_path = default_if_absent(base_path, self._base_path)
        return self

    def resource_path(self, resource_path: Optional[str]) -> "ApiListingBuilder":
        self._resource_path = default_if_absent(resource_path, self._resource_path)
        return self

    def produces(self, media_types: Optional[Iterable[str]]) -> "ApiListingBuilder":
        """Replace the produced media types. None keeps the current set."""
        if media_types is not None:
            self._produces = set(media_types)
        return self

    def consumes(self, media_types: Optional[Iterable[str]]) -> "ApiListingBuilder":
        """Replace the consumed media types. None keeps the current set."""
        if media_types is not None:
            self._consumes = set(media_types)
        return self

    def append_produces(self, produces: Optional[Iterable[str]]) -> "ApiListingBuilder":
        self._produces.update(null_to_empty_list(produces))
        return self

    def append_consumes(self, consumes: Optional[Iterable[str]]) -> "ApiListingBuilder":
        self._consumes.update(null_to_empty_list(consumes))
        return self

    def protocols(self, protocols: Optional[Iterable[str]]) -> "ApiListingBuilder":
        """Add protocols (http, https, ...). Always additive."""
        self._protocols.update(null_to_empty_set(protocols))
        return self

    def authorizations(self, authorizations: Optional[Iterable[Authorization]]) -> "ApiListingBuilder":
        if authorizations is not None:
            self._authorizations = list(authorizations)
        return self

    def apis(self, apis: Optional[Iterable[ApiDescription]]) -> "ApiListingBuilder":
        """Replace the endpoint descriptions with a copy sorted by the builder's ordering."""
        if apis is not None:
            self._apis = sorted(apis, key=self._description_ordering)
        return self

    def models(self, models: Optional[Mapping[str, Model]]) -> "ApiListingBuilder":
        """Merge model definitions by name; later calls win on colliding names."""
        self._models.update(null_to_empty_map(models))
        return self

    def description(self, description: Optional[str]) -> "ApiListingBuilder":
        self._description = default_if_absent(description, self._description)
        return self

    def position(self, position: int) -> "ApiListingBuilder":
        self._position = position
        return self

    def build(self) -> ApiListing:
        return ApiListing(
            api_version=self._api_version,
            base_path=self._base_path,
            resource_path=self._resource_path,
            produces=frozenset(self._produces),
            consumes=frozenset(self._consumes),
            protocols=frozenset(self._protocols),
            authorizations=tuple(self._authorizations),
            apis=tuple(self._apis),
            models=dict(self._models),
            description=self._description,
            position=self._position,
        )
