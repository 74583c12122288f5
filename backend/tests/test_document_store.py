import pytest

from storefront.repositories.document_store import (
    ASC,
    DESC,
    DocumentStore,
    FailedPrecondition,
    InvalidQuery,
    NotFound,
)


def test_add_get_update_delete(store):
    doc_id = store.add("things", {"name": "a", "n": 1})
    doc = store.get("things", doc_id)
    assert doc.id == doc_id
    assert doc.data == {"name": "a", "n": 1}

    store.update("things", doc_id, {"n": 2})
    assert store.get("things", doc_id).to_dict() == {"id": doc_id, "name": "a", "n": 2}

    store.delete("things", doc_id)
    assert store.get("things", doc_id) is None
    # deleting a missing document is a no-op
    store.delete("things", doc_id)


def test_update_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update("things", "nope", {"n": 1})


def test_collections_are_separate(store):
    store.set("a", "same", {"v": 1})
    store.set("b", "same", {"v": 2})
    assert store.get("a", "same").data["v"] == 1
    assert store.get("b", "same").data["v"] == 2


def test_equality_filters(store):
    store.set("c", "1", {"user_id": "u1", "is_done": False})
    store.set("c", "2", {"user_id": "u1", "is_done": True})
    store.set("c", "3", {"user_id": "u2", "is_done": False})
    store.set("c", "4", {"user_id": "u1", "parent": None})

    found = store.query("c", filters=[("user_id", "==", "u1"), ("is_done", "==", False)])
    assert [d.id for d in found] == ["1"]

    top = store.query("c", filters=[("parent", "==", None), ("user_id", "==", "u2")])
    # missing fields read as null
    assert [d.id for d in top] == ["3"]


def test_order_by_with_id_tie_break_and_start_after(store):
    for doc_id, price in [("b", 5.0), ("a", 5.0), ("c", 1.0), ("d", 9.0)]:
        store.set("items", doc_id, {"price": price})

    asc = store.query("items", order_by=[("price", ASC)])
    assert [d.id for d in asc] == ["c", "a", "b", "d"]

    desc = store.query("items", order_by=[("price", DESC)])
    assert [d.id for d in desc] == ["d", "a", "b", "c"]

    after = store.query("items", order_by=[("price", ASC)], start_after=[5.0, "a"], limit=2)
    assert [d.id for d in after] == ["b", "d"]


def test_filter_plus_order_on_other_field_needs_index(store):
    store.set("items", "x", {"category_id": "k", "price": 3.0})
    with pytest.raises(FailedPrecondition):
        store.query("items", filters=[("category_id", "==", "k")], order_by=[("price", ASC)])

    indexed = DocumentStore(composite_indexes=["items:category_id:price"])
    found = indexed.query("items", filters=[("category_id", "==", "k")], order_by=[("price", ASC)])
    assert [d.id for d in found] == ["x"]


def test_range_filter_must_lead_ordering(store):
    with pytest.raises(InvalidQuery):
        store.query("items", filters=[("name", ">=", "a")], order_by=[("price", ASC)])
    with pytest.raises(InvalidQuery):
        store.query("items", filters=[("name", "~", "a")])


def test_start_after_arity_is_checked(store):
    with pytest.raises(InvalidQuery):
        store.query("items", order_by=[("price", ASC)], start_after=["only-id"])
