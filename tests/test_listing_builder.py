import dataclasses

import pytest

from swagdoc.builders.listing import ApiListingBuilder
from swagdoc.builders.ordering import api_path_ordering
from swagdoc.domain.models import (
    ApiDescription,
    Authorization,
    AuthorizationScope,
    Model,
    ModelProperty,
    Operation,
)


def builder() -> ApiListingBuilder:
    return ApiListingBuilder(api_path_ordering)


@pytest.mark.parametrize("setter,field", [
    ("api_version", "api_version"),
    ("base_path", "base_path"),
    ("resource_path", "resource_path"),
    ("description", "description"),
])
def test_scalar_setters_ignore_none_and_overwrite_values(setter, field):
    b = builder()
    getattr(b, setter)("first")
    getattr(b, setter)(None)
    assert getattr(b.build(), field) == "first"

    getattr(b, setter)("second")
    assert getattr(b.build(), field) == "second"


def test_unset_fields_build_as_none_or_empty():
    listing = builder().build()
    assert listing.api_version is None
    assert listing.base_path is None
    assert listing.resource_path is None
    assert listing.description is None
    assert listing.position == 0
    assert listing.produces == frozenset()
    assert listing.consumes == frozenset()
    assert listing.protocols == frozenset()
    assert listing.authorizations == ()
    assert listing.apis == ()
    assert dict(listing.models) == {}


def test_position_always_overwrites():
    listing = builder().position(3).position(0).build()
    assert listing.position == 0


def test_produces_append_then_replace_example():
    b = builder().produces({"application/json"})
    b.append_produces(["application/xml"])
    assert b.build().produces == {"application/json", "application/xml"}

    b.produces({"text/plain"})
    assert b.build().produces == {"text/plain"}


def test_replace_with_none_keeps_media_types():
    b = builder().produces({"application/json"}).consumes({"application/xml"})
    b.produces(None).consumes(None)
    listing = b.build()
    assert listing.produces == {"application/json"}
    assert listing.consumes == {"application/xml"}


def test_consumes_replace_drops_old_entries():
    b = builder().consumes({"a/1", "a/2"}).consumes({"a/3"})
    assert b.build().consumes == {"a/3"}


def test_append_deduplicates_and_treats_none_as_empty():
    b = builder().append_consumes(["a/1", "a/2"]).append_consumes(["a/2", "a/3"])
    b.append_consumes(None).append_produces(None)
    listing = b.build()
    assert listing.consumes == {"a/1", "a/2", "a/3"}
    assert listing.produces == frozenset()


def test_replace_copies_input_set():
    media = {"application/json"}
    b = builder().produces(media)
    media.add("text/html")
    assert b.build().produces == {"application/json"}


def test_protocols_are_additive():
    b = builder().protocols({"http"}).protocols(None).protocols({"https", "http"})
    assert b.build().protocols == {"http", "https"}


def test_authorizations_replace_and_none_keeps():
    oauth = Authorization("oauth2", (AuthorizationScope("read", "read things"),))
    key = Authorization("api_key")
    b = builder().authorizations([oauth, key])
    b.authorizations(None)
    assert b.build().authorizations == (oauth, key)

    b.authorizations([key])
    assert b.build().authorizations == (key,)


def test_authorizations_input_list_is_copied():
    auths = [Authorization("oauth2")]
    b = builder().authorizations(auths)
    auths.append(Authorization("basic"))
    assert b.build().authorizations == (Authorization("oauth2"),)


def test_apis_sorted_by_ordering_regardless_of_input_order():
    a = ApiDescription(path="/a")
    b_ = ApiDescription(path="/b")
    c = ApiDescription(path="/c")

    first = builder().apis([c, a, b_]).build()
    second = builder().apis([b_, c, a]).build()

    assert [api.path for api in first.apis] == ["/a", "/b", "/c"]
    assert first.apis == second.apis


def test_apis_use_constructor_ordering():
    def by_path_desc(api):
        return tuple(-ord(ch) for ch in api.path)

    listing = ApiListingBuilder(by_path_desc).apis(
        [ApiDescription(path="/a"), ApiDescription(path="/c"), ApiDescription(path="/b")]
    ).build()
    assert [api.path for api in listing.apis] == ["/c", "/b", "/a"]


def test_apis_none_keeps_and_new_list_replaces():
    b = builder().apis([ApiDescription(path="/x")])
    b.apis(None)
    assert [a.path for a in b.build().apis] == ["/x"]

    b.apis([ApiDescription(path="/y")])
    assert [a.path for a in b.build().apis] == ["/y"]


def test_models_merge_with_later_values_winning():
    old_user = Model(id="User", name="User")
    new_user = Model(id="User", name="User", properties=(ModelProperty("id", "integer", True),))
    pet = Model(id="Pet", name="Pet")
    order = Model(id="Order", name="Order")

    b = builder().models({"User": old_user, "Pet": pet})
    b.models(None)
    b.models({"User": new_user, "Order": order})

    models = b.build().models
    assert set(models) == {"User", "Pet", "Order"}
    assert models["User"] is new_user
    assert models["Pet"] is pet


def test_build_twice_yields_equal_values():
    b = (
        builder()
        .api_version("1.0")
        .base_path("/api")
        .resource_path("/users")
        .produces({"application/json"})
        .protocols({"https"})
        .apis([ApiDescription(path="/users", operations=(Operation("GET", "list_users"),))])
        .models({"User": Model(id="User", name="User")})
        .description("Operations about users")
        .position(2)
    )
    first = b.build()
    second = b.build()

    assert first == second
    assert first is not second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_built_listing_is_immutable_and_detached_from_builder():
    b = builder().produces({"application/json"}).models({"User": Model(id="User", name="User")})
    listing = b.build()

    b.append_produces(["application/xml"]).models({"Pet": Model(id="Pet", name="Pet")})

    assert listing.produces == {"application/json"}
    assert set(listing.models) == {"User"}

    with pytest.raises(dataclasses.FrozenInstanceError):
        listing.base_path = "/other"  # type: ignore[misc]
    with pytest.raises(TypeError):
        listing.models["Pet"] = Model(id="Pet", name="Pet")  # type: ignore[index]


def test_setters_chain():
    b = builder()
    assert b.api_version("1") is b
    assert b.append_produces([]) is b
    assert b.models({}) is b
    assert b.position(1) is b
