"""Property tests: random add/delete sequences never break the tree shape."""

from collections import Counter

from hypothesis import given, settings
from hypothesis import strategies as st

from backend.models.decision_tree import TreeSnapshot
from backend.services.tree_store import TreeStore
from backend.services.validation_service import validate_structure

# Each op picks a target by index into the current node list, so every
# generated sequence stays meaningful as the tree changes.
ops = st.lists(
    st.tuples(
        st.sampled_from(["add", "add", "add", "delete"]),
        st.integers(min_value=0, max_value=50),
        st.sampled_from(["true", "false"]),
        st.sampled_from(["condition", "condition", "result"]),
    ),
    max_size=60,
)


def assert_tree_shape(snap: TreeSnapshot) -> None:
    ids = [n.id for n in snap.nodes]
    assert len(ids) == len(set(ids))
    assert snap.root_id in ids
    incoming = Counter(b.target_id for b in snap.branches)
    assert incoming[snap.root_id] == 0
    for nid in ids:
        if nid != snap.root_id:
            assert incoming[nid] == 1, f"{nid} has {incoming[nid]} incoming branches"
    keys = [(b.source_id, b.label) for b in snap.branches]
    assert len(keys) == len(set(keys))
    assert validate_structure(snap) == []


@given(ops)
@settings(max_examples=150, deadline=None)
def test_random_edits_keep_tree_shape(sequence):
    store = TreeStore()
    for kind, pick, label, node_type in sequence:
        nodes = [n.id for n in store.snapshot().nodes]
        target = nodes[pick % len(nodes)]
        if kind == "add":
            store.add_child(target, label, node_type)
        else:
            store.delete_node(target)
        assert_tree_shape(store.snapshot())


@given(ops, st.integers(min_value=0, max_value=50))
@settings(max_examples=100, deadline=None)
def test_delete_removes_exactly_the_subtree(sequence, pick):
    store = TreeStore()
    for kind, p, label, node_type in sequence:
        if kind == "add":
            nodes = [n.id for n in store.snapshot().nodes]
            store.add_child(nodes[p % len(nodes)], label, node_type)

    before = {n.id for n in store.snapshot().nodes}
    candidates = sorted(before - {"root"})
    if not candidates:
        return
    victim = candidates[pick % len(candidates)]
    expected = {victim, *store.descendants(victim)}

    result = store.delete_node(victim)

    after = store.snapshot()
    assert set(result.removed_ids) == expected
    assert {n.id for n in after.nodes} == before - expected
    for b in after.branches:
        assert b.source_id not in expected and b.target_id not in expected


@given(st.sampled_from(["true", "false"]), st.sampled_from(["condition", "result"]), st.integers(1, 5))
@settings(max_examples=30, deadline=None)
def test_repeated_add_child_is_idempotent(label, node_type, repeats):
    store = TreeStore()
    results = [store.add_child("root", label, node_type) for _ in range(repeats)]
    assert results[0].applied
    assert not any(r.applied for r in results[1:])
    assert len(store) == 2
