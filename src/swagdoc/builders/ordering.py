from __future__ import annotations

from typing import Any, Callable

from swagdoc.domain.models import ApiDescription, ApiListing, Operation

# An ordering is a sort key; sorted(items, key=ordering) gives the documented order.
DescriptionOrdering = Callable[[ApiDescription], Any]

_METHOD_RANK = {
    "GET": 0,
    "POST": 1,
    "PUT": 2,
    "PATCH": 3,
    "DELETE": 4,
    "OPTIONS": 5,
    "HEAD": 6,
}


def api_path_ordering(api: ApiDescription) -> tuple[str, str]:
    return (api.path, api.description)


def api_position_ordering(api: ApiDescription) -> tuple[int, str]:
    # descriptions without operations sink to the end
    first = min((op.position for op in api.operations), default=2**31 - 1)
    return (first, api.path)


def operation_ordering(op: Operation) -> tuple[int, int, str]:
    return (op.position, _METHOD_RANK.get(op.method.upper(), len(_METHOD_RANK)), op.method)


def listing_position_ordering(listing: ApiListing) -> tuple[int, str]:
    return (listing.position, listing.resource_path or "")


DESCRIPTION_ORDERINGS: dict[str, DescriptionOrdering] = {
    "path": api_path_ordering,
    "position": api_position_ordering,
}
