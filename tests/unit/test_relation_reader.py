"""Unit tests for reading relation values (raw and resolved)."""
import pytest
from unittest.mock import patch

from post_relation.models.item import ContentItem


def test_get_value_is_raw_passthrough(store, field_type, relation_field):
    """The edit-form read returns exactly what is stored."""
    store.set_meta(10, "related_post", "20")

    assert field_type.get_value(10, relation_field) == "20"


@pytest.mark.parametrize("raw", [None, "", "null", "NULL", False, []])
def test_empty_or_null_resolves_to_absent(store, field_type, relation_field, raw):
    """Empty values and the literal null marker resolve to None, not a list."""
    store.set_meta(10, "related_post", raw)

    assert field_type.resolve_value(10, relation_field) is None


def test_single_value_resolves_to_item(store, field_type, relation_field):
    store.set_meta(10, "related_post", 20)

    item = field_type.resolve_value(10, relation_field)

    assert isinstance(item, ContentItem)
    assert item.id == 20
    assert item.title == "Bravo"


def test_single_value_for_missing_item_is_absent(store, field_type, relation_field):
    store.set_meta(10, "related_post", 999)

    assert field_type.resolve_value(10, relation_field) is None


def test_multiple_values_keep_order_and_duplicates():
    """[5, 3, 5] resolves to [item5, item3, item5], never sorted by ID."""
    from post_relation.store import InMemoryContentStore
    from post_relation.fields.post_to_post import PostToPostField
    from post_relation.models.field import MultiRelation

    store = InMemoryContentStore()
    store.add_item(ContentItem(id=3, title="Three"))
    store.add_item(ContentItem(id=5, title="Five"))
    store.add_item(ContentItem(id=4, title="Four"))
    field = MultiRelation(name="related_posts")
    store.set_meta(4, "related_posts", [5, 3, 5])

    resolved = PostToPostField(store).resolve_value(4, field)

    assert [item.id for item in resolved] == [5, 3, 5]


def test_multiple_values_use_one_batched_query(store, field_type, multi_field):
    """All IDs are loaded with one query over distinct IDs."""
    store.set_meta(10, "related_posts", [30, 20, 30, 20])

    with patch.object(store, "query_items", wraps=store.query_items) as query:
        resolved = field_type.resolve_value(10, multi_field)

    query.assert_called_once()
    kwargs = query.call_args.kwargs
    assert kwargs["ids"] == [30, 20]
    assert "publish" in kwargs["statuses"]
    assert [item.id for item in resolved] == [30, 20, 30, 20]


def test_unresolved_ids_are_dropped(store, field_type, multi_field):
    """Deleted, trashed and non-public items are left out of the result."""
    store.delete_item(20)
    store.set_meta(10, "related_posts", [20, 40, 50, 60, 999, 30])

    resolved = field_type.resolve_value(10, multi_field)

    assert [item.id for item in resolved] == [40, 30]
    assert all(isinstance(item, ContentItem) for item in resolved)


def test_multiple_values_all_missing_gives_empty_list(store, field_type, multi_field):
    store.set_meta(10, "related_posts", [998, 999])

    assert field_type.resolve_value(10, multi_field) == []


def test_single_field_with_legacy_list_value(store, field_type, relation_field):
    """The stored shape decides how a value resolves, not the field kind."""
    store.set_meta(10, "related_post", ["30"])

    resolved = field_type.get_value_for_api(10, relation_field)

    assert [item.id for item in resolved] == [30]
