"""Unit tests for relation audit and repair."""
import pytest
from unittest.mock import patch

from post_relation.reconcile import RelationAuditor
from post_relation.utils.errors import ServerError


@pytest.fixture
def auditor(field_type, relation_field):
    return RelationAuditor(field_type, relation_field)


def test_consistent_relations_have_no_issues(store, field_type, relation_field, auditor):
    field_type.update_value(10, relation_field, 20)

    assert auditor.audit() == []


def test_audit_finds_each_issue_kind(store, auditor):
    store.set_meta(10, "related_post", 999)   # dangling
    store.set_meta(20, "related_post", 30)    # one way
    store.set_meta(40, "related_post", 10)    # conflict: 10 points to 999

    issues = {issue.item_id: issue for issue in auditor.audit()}

    assert issues[10].kind == "dangling"
    assert issues[20].kind == "one_way" and issues[20].target_id == 30
    assert issues[40].kind == "conflict" and issues[40].target_value == 999
    assert set(issues) == {10, 20, 40}


def test_audit_limited_to_given_items(store, auditor):
    store.set_meta(10, "related_post", 999)
    store.set_meta(20, "related_post", 30)

    assert [i.item_id for i in auditor.audit([20])] == [20]


def test_stale_link_after_deletion_is_dangling(store, field_type, relation_field, auditor):
    field_type.update_value(10, relation_field, 20)
    store.delete_item(20)

    issues = auditor.audit()

    assert [(i.kind, i.item_id, i.target_id) for i in issues] == [("dangling", 10, 20)]


def test_repair_fixes_dangling_and_one_way(store, auditor):
    store.set_meta(10, "related_post", 999)
    store.set_meta(20, "related_post", 30)

    issues = auditor.repair()

    assert all(issue.repaired for issue in issues)
    assert store.get_meta(10, "related_post") is None
    assert store.get_meta(30, "related_post") == 20
    assert auditor.audit() == []


def test_repair_leaves_conflicts(store, auditor):
    store.set_meta(10, "related_post", 20)
    store.set_meta(20, "related_post", 30)
    store.set_meta(30, "related_post", 20)

    issues = auditor.repair()

    assert [(i.kind, i.item_id, i.repaired) for i in issues] == [("conflict", 10, False)]
    assert store.get_meta(10, "related_post") == 20
    assert store.get_meta(20, "related_post") == 30


def test_repair_skips_issues_fixed_since_audit(store, auditor):
    store.set_meta(20, "related_post", 30)
    issues = auditor.audit()
    store.set_meta(30, "related_post", 20)

    repaired = auditor.repair(issues)

    assert not repaired[0].repaired


def test_repair_reports_failed_writes(store, auditor):
    store.set_meta(20, "related_post", 30)

    with patch.object(store, "set_meta", side_effect=ServerError("HTTP 500: Server error - boom")):
        issues = auditor.repair()

    assert [i.repaired for i in issues] == [False]


def test_clear_references_to_deleted_item(store, field_type, relation_field, auditor):
    field_type.update_value(10, relation_field, 20)
    store.set_meta(30, "related_post", 20)
    store.delete_item(20)

    cleared = auditor.clear_references_to(20)

    assert cleared == [10, 30]
    assert store.get_meta(10, "related_post") is None
    assert store.get_meta(30, "related_post") is None


def test_multi_relation_cannot_be_audited(field_type, multi_field):
    with pytest.raises(ValueError, match="multiple values"):
        RelationAuditor(field_type, multi_field)


def test_audit_skips_trashed_items(store, auditor):
    store.set_meta(50, "related_post", 999)
    store.set_meta(40, "related_post", 999)

    assert [i.item_id for i in auditor.audit()] == [40]
