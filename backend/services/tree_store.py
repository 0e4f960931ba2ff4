"""
Tree store: the single owner of a decision tree under interactive editing.

Holds nodes by ID and a branch map (node_id, label) -> child_id as the only
source of truth for structure. Every edit either applies completely or is
ignored; an ignored edit never changes the tree. Parent lookups are derived
from the branch map on demand.
"""

import logging
import threading
from typing import Optional, Union

from backend.exceptions import InvalidMutation
from backend.models.decision_tree import Branch, MutationResult, TreeNode, TreeSnapshot
from backend.utils.logging import log_mutation
from shared.schemas.decision_tree import (
    ROOT_ID,
    AddChild,
    BranchLabel,
    ConditionSpec,
    DeleteNode,
    NodeContent,
    NodeType,
    UpdateNode,
)

logger = logging.getLogger(__name__)

DEFAULT_LABELS = {
    NodeType.CONDITION: "Condition",
    NodeType.RESULT: "Result",
}


class TreeStore:
    """
    Mutable binary decision tree with invariant-preserving edits.

    The root is created once as an empty condition node and can be edited but
    never removed. Operations are serialised by a per-store lock.

    With strict=True ignored edits raise InvalidMutation instead of returning
    a MutationResult with applied=False.
    """

    def __init__(self, tree_id: str = "default", strict: bool = False):
        self.tree_id = tree_id
        self.strict = strict
        self.root_id = ROOT_ID
        self._lock = threading.RLock()
        self._nodes: dict[str, TreeNode] = {}
        self._branches: dict[tuple[str, BranchLabel], str] = {}
        self._next_id = 1
        self._version = 0
        self._init_root()

    def _init_root(self) -> None:
        self._nodes = {
            self.root_id: TreeNode(
                id=self.root_id,
                type=NodeType.CONDITION,
                label="Root",
                condition=ConditionSpec(),
            )
        }
        self._branches = {}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[TreeNode]:
        with self._lock:
            return self._nodes.get(node_id)

    def snapshot(self) -> TreeSnapshot:
        """Immutable copy of the current tree; later edits do not affect it."""
        with self._lock:
            return TreeSnapshot(
                root_id=self.root_id,
                nodes=tuple(self._nodes.values()),
                branches=tuple(
                    Branch(source_id=src, label=label, target_id=dst)
                    for (src, label), dst in self._branches.items()
                ),
                version=self._version,
            )

    def parent_of(self, node_id: str) -> Optional[tuple[str, BranchLabel]]:
        """(parent_id, label) of the branch pointing at node_id; None for the root or unknown IDs."""
        with self._lock:
            return self._parent_index().get(node_id)

    def depth(self, node_id: str) -> Optional[int]:
        """Distance from the root (root = 0). Layout only; None for unknown IDs."""
        with self._lock:
            if node_id not in self._nodes:
                return None
            parents = self._parent_index()
            depth = 0
            current = node_id
            while current in parents:
                current = parents[current][0]
                depth += 1
            return depth

    def descendants(self, node_id: str) -> list[str]:
        """All nodes reachable from node_id through outgoing branches (node_id excluded)."""
        with self._lock:
            return self._collect_descendants(node_id)

    def _parent_index(self) -> dict[str, tuple[str, BranchLabel]]:
        return {dst: (src, label) for (src, label), dst in self._branches.items()}

    def _collect_descendants(self, node_id: str) -> list[str]:
        found: list[str] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            for label in (BranchLabel.FALSE, BranchLabel.TRUE):
                child = self._branches.get((current, label))
                if child is not None:
                    found.append(child)
                    stack.append(child)
        return found

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def update_node(self, node_id: str, content: NodeContent) -> MutationResult:
        """Replace a node's label, condition or result in place. Branches are untouched."""
        action = "update_node"
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                return self._reject(action, node_id, f"Node '{node_id}' not found")
            if node.type == NodeType.CONDITION and content.result is not None:
                return self._reject(action, node_id, f"Condition node '{node_id}' cannot take a result")
            if node.type == NodeType.RESULT and content.condition is not None:
                return self._reject(action, node_id, f"Result node '{node_id}' cannot take a condition")

            updates = content.model_dump(exclude_none=True, exclude={"condition"})
            if content.condition is not None:
                updates["condition"] = content.condition
            self._nodes[node_id] = node.model_copy(update=updates)
            return self._commit(action, node_id)

    def add_child(
        self,
        parent_id: str,
        label: Union[BranchLabel, str],
        kind: Union[NodeType, str],
        result: Optional[int] = None,
    ) -> MutationResult:
        """
        Create a node of `kind` under the `label` branch of a condition node.

        A second request for an already populated branch is ignored, so a
        re-fired UI action never creates a second child.
        """
        action = "add_child"
        with self._lock:
            try:
                label = BranchLabel(label)
                kind = NodeType(kind)
            except ValueError as e:
                return self._reject(action, parent_id, str(e))
            parent = self._nodes.get(parent_id)
            if parent is None:
                return self._reject(action, parent_id, f"Parent '{parent_id}' not found")
            if parent.type != NodeType.CONDITION:
                return self._reject(action, parent_id, f"Parent '{parent_id}' is not a condition node")
            if (parent_id, label) in self._branches:
                return self._reject(action, parent_id, f"Node '{parent_id}' already has a '{label.value}' branch")
            if result not in (None, 0, 1):
                return self._reject(action, parent_id, f"Result must be 0 or 1, got {result!r}")

            new_id = f"node_{self._next_id}"
            self._next_id += 1
            if kind == NodeType.CONDITION:
                child = TreeNode(id=new_id, type=kind, label=DEFAULT_LABELS[kind], condition=ConditionSpec())
            else:
                child = TreeNode(id=new_id, type=kind, label=DEFAULT_LABELS[kind], result=1 if result is None else result)
            self._nodes[new_id] = child
            self._branches[(parent_id, label)] = new_id
            return self._commit(action, new_id, extra={"parent_id": parent_id, "label": label.value})

    def delete_node(self, node_id: str) -> MutationResult:
        """Remove a node, its whole subtree and every branch touching them. The root is kept."""
        action = "delete_node"
        with self._lock:
            if node_id == self.root_id:
                return self._reject(action, node_id, "The root node cannot be deleted")
            if node_id not in self._nodes:
                return self._reject(action, node_id, f"Node '{node_id}' not found")

            removed = [node_id] + self._collect_descendants(node_id)
            doomed = set(removed)
            for nid in removed:
                del self._nodes[nid]
            self._branches = {
                key: dst
                for key, dst in self._branches.items()
                if key[0] not in doomed and dst not in doomed
            }
            return self._commit(action, node_id, removed_ids=removed)

    def reset(self) -> MutationResult:
        """Drop everything but a fresh, empty root. The ID counter keeps counting."""
        with self._lock:
            self._init_root()
            return self._commit("reset", self.root_id)

    def apply(self, intent: Union[AddChild, DeleteNode, UpdateNode]) -> MutationResult:
        """Apply one UI intent event and return the result with the new snapshot."""
        if isinstance(intent, AddChild):
            return self.add_child(intent.parent_id, intent.label, intent.kind, intent.result)
        if isinstance(intent, DeleteNode):
            return self.delete_node(intent.node_id)
        if isinstance(intent, UpdateNode):
            return self.update_node(intent.node_id, intent.content)
        raise TypeError(f"Unsupported intent: {type(intent).__name__}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _commit(
        self,
        action: str,
        node_id: str,
        removed_ids: Optional[list[str]] = None,
        extra: Optional[dict] = None,
    ) -> MutationResult:
        self._version += 1
        log_mutation(logger, action, self.tree_id, node_id, applied=True, version=self._version, extra=extra)
        return MutationResult(
            action=action,
            applied=True,
            node_id=node_id,
            removed_ids=removed_ids or [],
            snapshot=self.snapshot(),
        )

    def _reject(self, action: str, node_id: Optional[str], reason: str) -> MutationResult:
        log_mutation(logger, action, self.tree_id, node_id, applied=False, reason=reason, version=self._version)
        if self.strict:
            raise InvalidMutation(reason, node_id=node_id)
        return MutationResult(
            action=action,
            applied=False,
            node_id=node_id,
            reason=reason,
            snapshot=self.snapshot(),
        )
