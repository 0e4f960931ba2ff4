"""Unit tests for tree store edits and invariants."""

import threading

import pytest

from backend.exceptions import InvalidMutation
from backend.services.tree_store import TreeStore
from backend.services.validation_service import validate_structure
from shared.schemas import (
    AddChild,
    BranchLabel,
    ConditionSpec,
    DeleteNode,
    NodeContent,
    NodeType,
    Operator,
    UpdateNode,
)


def test_new_store_has_only_empty_root(store: TreeStore):
    snap = store.snapshot()
    assert snap.root_id == "root"
    assert [n.id for n in snap.nodes] == ["root"]
    assert snap.branches == ()
    root = snap.get_node("root")
    assert root.type == NodeType.CONDITION
    assert root.condition.column == ""


def test_add_child_creates_node_and_branch(store: TreeStore):
    result = store.add_child("root", "true", "condition")
    assert result.applied
    new_id = result.node_id
    assert new_id != "root"
    assert store.get_node(new_id).type == NodeType.CONDITION
    assert result.snapshot.child("root", BranchLabel.TRUE) == new_id
    assert store.parent_of(new_id) == ("root", BranchLabel.TRUE)


def test_add_child_ids_are_unique(store: TreeStore):
    a = store.add_child("root", "true", "condition").node_id
    b = store.add_child("root", "false", "condition").node_id
    c = store.add_child(a, "true", "result").node_id
    store.delete_node(c)
    d = store.add_child(a, "true", "result").node_id
    assert len({a, b, c, d}) == 4


def test_add_child_duplicate_branch_is_ignored(store: TreeStore):
    first = store.add_child("root", "true", "result", result=1)
    second = store.add_child("root", "true", "result", result=1)
    assert first.applied
    assert not second.applied
    assert "already has" in second.reason
    assert len(store) == 2
    assert len(store.snapshot().branches) == 1


def test_add_child_under_result_node_is_ignored(store: TreeStore):
    leaf = store.add_child("root", "true", "result").node_id
    result = store.add_child(leaf, "true", "condition")
    assert not result.applied
    assert len(store) == 2


def test_add_child_unknown_parent_or_label_is_ignored(store: TreeStore):
    assert not store.add_child("missing", "true", "result").applied
    assert not store.add_child("root", "maybe", "result").applied
    assert not store.add_child("root", "true", "leaf").applied
    assert len(store) == 1


def test_result_child_defaults_to_class_one(store: TreeStore):
    leaf = store.add_child("root", "false", "result").node_id
    assert store.get_node(leaf).result == 1


def test_depth(store: TreeStore):
    a = store.add_child("root", "true", "condition").node_id
    b = store.add_child(a, "false", "condition").node_id
    c = store.add_child(b, "true", "result").node_id
    assert store.depth("root") == 0
    assert store.depth(a) == 1
    assert store.depth(c) == 3
    assert store.depth("missing") is None


def test_update_node_replaces_condition(store: TreeStore):
    cond = ConditionSpec(column="Glucose", operator=Operator.GT, threshold=120)
    result = store.update_node("root", NodeContent(condition=cond, label="Glucose check"))
    assert result.applied
    root = store.get_node("root")
    assert root.condition == cond
    assert root.label == "Glucose check"


def test_update_node_accepts_partial_condition(store: TreeStore):
    result = store.update_node("root", NodeContent(condition=ConditionSpec(column="BMI", threshold="")))
    assert result.applied
    assert store.get_node("root").condition.threshold == ""


def test_update_node_keeps_branches(store: TreeStore):
    leaf = store.add_child("root", "true", "result").node_id
    before = store.snapshot().branches
    store.update_node("root", NodeContent(label="Edited"))
    store.update_node(leaf, NodeContent(result=0))
    assert store.snapshot().branches == before
    assert store.get_node(leaf).result == 0


def test_update_node_kind_mismatch_is_ignored(store: TreeStore):
    leaf = store.add_child("root", "true", "result").node_id
    assert not store.update_node("root", NodeContent(result=1)).applied
    assert not store.update_node(leaf, NodeContent(condition=ConditionSpec(column="Age"))).applied
    assert not store.update_node("missing", NodeContent(label="x")).applied


def test_delete_root_is_ignored(store: TreeStore):
    store.add_child("root", "true", "result")
    result = store.delete_node("root")
    assert not result.applied
    assert len(store) == 2


def test_delete_removes_subtree_only(store: TreeStore):
    left = store.add_child("root", "true", "condition").node_id
    right = store.add_child("root", "false", "result").node_id
    ll = store.add_child(left, "true", "condition").node_id
    lr = store.add_child(left, "false", "result").node_id
    lll = store.add_child(ll, "true", "result").node_id

    result = store.delete_node(left)

    assert result.applied
    assert set(result.removed_ids) == {left, ll, lr, lll}
    snap = store.snapshot()
    assert {n.id for n in snap.nodes} == {"root", right}
    remaining = {n.id for n in snap.nodes}
    for b in snap.branches:
        assert b.source_id in remaining and b.target_id in remaining
    # The freed branch can be populated again
    assert store.add_child("root", "true", "result").applied


def test_delete_deep_chain():
    store = TreeStore()
    parent = "root"
    first = None
    for _ in range(500):
        parent = store.add_child(parent, "true", "condition").node_id
        first = first or parent
    result = store.delete_node(first)
    assert len(result.removed_ids) == 500
    assert len(store) == 1


def test_delete_unknown_is_ignored(store: TreeStore):
    assert not store.delete_node("node_99").applied


def test_snapshot_is_isolated_from_later_edits(store: TreeStore):
    store.add_child("root", "true", "result")
    snap = store.snapshot()
    store.add_child("root", "false", "result")
    store.update_node("root", NodeContent(label="Changed"))
    assert len(snap.nodes) == 2
    assert len(snap.branches) == 1
    assert snap.get_node("root").label == "Root"
    assert store.snapshot().version > snap.version


def test_apply_intents(store: TreeStore):
    added = store.apply(AddChild(parent_id="root", label=BranchLabel.TRUE, kind=NodeType.RESULT, result=0))
    assert added.applied
    updated = store.apply(UpdateNode(node_id=added.node_id, content=NodeContent(result=1)))
    assert updated.snapshot.get_node(added.node_id).result == 1
    deleted = store.apply(DeleteNode(node_id=added.node_id))
    assert deleted.removed_ids == [added.node_id]
    assert len(deleted.snapshot.nodes) == 1


def test_reset(store: TreeStore):
    store.add_child("root", "true", "condition")
    store.update_node("root", NodeContent(label="x"))
    result = store.reset()
    assert result.applied
    assert len(store) == 1
    assert store.get_node("root").label == "Root"


def test_strict_store_raises_invalid_mutation():
    store = TreeStore(strict=True)
    store.add_child("root", "true", "result")
    with pytest.raises(InvalidMutation):
        store.add_child("root", "true", "result")
    with pytest.raises(InvalidMutation):
        store.delete_node("root")
    assert len(store) == 2


def test_concurrent_add_child_applies_once(store: TreeStore):
    n_threads = 8
    barrier = threading.Barrier(n_threads)
    results = []

    def worker():
        barrier.wait()
        results.append(store.add_child("root", "true", "result"))

    threads = [threading.Thread(target=worker) for _ in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(r.applied for r in results) == 1
    assert len(store) == 2
    assert validate_structure(store.snapshot()) == []
