import uuid

import pytest

from storefront.errors import InvalidGrantRequest
from storefront.utils.resources import (
    RESOURCE_SLOT_SENTINEL,
    ResourceKind,
    ResourceRef,
    normalized_resource_key,
)


def test_constructors_set_kind():
    cid = uuid.uuid4()
    assert ResourceRef.collection(cid).kind is ResourceKind.collection
    assert ResourceRef.category(cid).kind is ResourceKind.category
    assert ResourceRef.product(cid).kind is ResourceKind.product


def test_string_inputs_are_coerced():
    cid = uuid.uuid4()
    ref = ResourceRef("category", str(cid))
    assert ref.kind is ResourceKind.category
    assert ref.id == cid


def test_unknown_kind_and_bad_id_rejected():
    with pytest.raises(InvalidGrantRequest):
        ResourceRef("warehouse", uuid.uuid4())
    with pytest.raises(InvalidGrantRequest):
        ResourceRef.collection("not-a-uuid")
    with pytest.raises(InvalidGrantRequest):
        ResourceRef.collection(None)


def test_from_slots_requires_exactly_one():
    cid, kid = uuid.uuid4(), uuid.uuid4()
    assert ResourceRef.from_slots(category_id=kid) == ResourceRef.category(kid)
    with pytest.raises(InvalidGrantRequest):
        ResourceRef.from_slots()
    with pytest.raises(InvalidGrantRequest):
        ResourceRef.from_slots(collection_id=cid, category_id=kid)


def test_resource_key_uses_sentinel_for_unset_slots():
    pid = uuid.uuid4()
    key = ResourceRef.product(pid).resource_key
    assert key == f"{RESOURCE_SLOT_SENTINEL}:{RESOURCE_SLOT_SENTINEL}:{pid}"
    assert key == normalized_resource_key(None, None, pid)


def test_same_id_different_kind_gives_different_key():
    same = uuid.uuid4()
    assert ResourceRef.collection(same).resource_key != ResourceRef.category(same).resource_key


def test_refs_are_hashable_and_printable():
    cid = uuid.uuid4()
    assert len({ResourceRef.collection(cid), ResourceRef.collection(str(cid))}) == 1
    assert str(ResourceRef.collection(cid)) == f"collection:{cid}"
    assert ResourceRef.collection(cid).as_dict() == {"kind": "collection", "id": str(cid)}
