"""
Structural and content checks for a tree snapshot.

The store keeps a tree structurally sound by construction, but a tree under
construction is usually unfinished (empty conditions, missing branches), and
snapshots may also come from other sources. These checks let the UI flag
problems before an evaluation run.
"""

import logging
import math
from typing import Literal, Optional

from pydantic import BaseModel, Field

from backend.models.decision_tree import TreeSnapshot
from shared.schemas.decision_tree import BranchLabel, NodeType

logger = logging.getLogger(__name__)


class ValidationIssue(BaseModel):
    """A single validation finding."""

    code: str = Field(..., description="Issue code (e.g. missing_branch, cycle)")
    message: str = Field(..., description="Human-readable message")
    severity: Literal["error", "warning"] = Field("error", description="Errors break evaluation for every record")
    node_id: Optional[str] = Field(None, description="Relevant node ID if applicable")
    path: Optional[list[str]] = Field(None, description="Path of node IDs if applicable")


def find_reachable(tree: TreeSnapshot) -> set[str]:
    """IDs of existing nodes reachable from the root. Safe on cyclic input."""
    node_ids = {n.id for n in tree.nodes}
    if tree.root_id not in node_ids:
        return set()
    targets: dict[str, list[str]] = {}
    for b in tree.branches:
        targets.setdefault(b.source_id, []).append(b.target_id)
    seen: set[str] = set()
    stack = [tree.root_id]
    while stack:
        nid = stack.pop()
        if nid in seen or nid not in node_ids:
            continue
        seen.add(nid)
        stack.extend(targets.get(nid, []))
    return seen


def has_reachable_result(tree: TreeSnapshot) -> bool:
    reachable = find_reachable(tree)
    return any(n.type == NodeType.RESULT and n.id in reachable for n in tree.nodes)


def _is_numeric(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


# -----------------------------------------------------------------------------
# Structure
# -----------------------------------------------------------------------------


def validate_structure(tree: TreeSnapshot) -> list[ValidationIssue]:
    """
    Check: root exists, branches reference existing nodes, each node has at most
    one parent, no cycles, every node reachable, only condition nodes branch.
    """
    issues: list[ValidationIssue] = []
    nodes = {n.id: n for n in tree.nodes}
    root_id = tree.root_id

    if root_id not in nodes:
        issues.append(
            ValidationIssue(code="missing_root", message=f"Root node '{root_id}' is not in nodes", node_id=root_id)
        )
        return issues

    parents: dict[str, str] = {}
    outgoing: dict[str, list[str]] = {}
    seen_keys: set[tuple[str, BranchLabel]] = set()
    for b in tree.branches:
        if b.source_id not in nodes or b.target_id not in nodes:
            missing = b.source_id if b.source_id not in nodes else b.target_id
            issues.append(
                ValidationIssue(
                    code="dangling_branch",
                    message=f"Branch {b.source_id} -[{b.label.value}]-> {b.target_id} references missing node '{missing}'",
                    node_id=missing,
                )
            )
            continue
        if (b.source_id, b.label) in seen_keys:
            issues.append(
                ValidationIssue(
                    code="duplicate_branch",
                    message=f"Node '{b.source_id}' has more than one '{b.label.value}' branch",
                    node_id=b.source_id,
                )
            )
        seen_keys.add((b.source_id, b.label))
        if nodes[b.source_id].type != NodeType.CONDITION:
            issues.append(
                ValidationIssue(
                    code="result_has_children",
                    message=f"Result node '{b.source_id}' has an outgoing branch",
                    node_id=b.source_id,
                )
            )
        if b.target_id == root_id:
            issues.append(
                ValidationIssue(code="root_has_parent", message=f"Root is the target of '{b.source_id}'", node_id=root_id)
            )
        elif b.target_id in parents:
            issues.append(
                ValidationIssue(
                    code="duplicate_parent",
                    message=f"Node '{b.target_id}' has parents '{parents[b.target_id]}' and '{b.source_id}'",
                    node_id=b.target_id,
                )
            )
        else:
            parents[b.target_id] = b.source_id
        outgoing.setdefault(b.source_id, []).append(b.target_id)

    # Walk from the root; a node seen twice on one path is a cycle
    visited: set[str] = set()
    stack: list[tuple[str, list[str]]] = [(root_id, [root_id])]
    while stack:
        nid, path = stack.pop()
        if nid in visited:
            if nid in path[:-1]:
                issues.append(ValidationIssue(code="cycle", message=f"Cycle detected at node '{nid}'", node_id=nid, path=path))
            continue
        visited.add(nid)
        for child_id in outgoing.get(nid, []):
            stack.append((child_id, path + [child_id]))

    for nid in nodes:
        if nid not in visited:
            issues.append(
                ValidationIssue(
                    code="unreachable_node",
                    message=f"Node '{nid}' is not reachable from the root",
                    severity="warning",
                    node_id=nid,
                )
            )
    return issues


# -----------------------------------------------------------------------------
# Content
# -----------------------------------------------------------------------------


def validate_content(tree: TreeSnapshot) -> list[ValidationIssue]:
    """
    Check: conditions fully filled with a numeric threshold, both branches
    populated, result nodes carry a class. These only fail the records whose
    path reaches the node, so they are warnings.
    """
    issues: list[ValidationIssue] = []
    labels_by_node: dict[str, set[BranchLabel]] = {}
    for b in tree.branches:
        labels_by_node.setdefault(b.source_id, set()).add(b.label)

    for node in tree.nodes:
        if node.type == NodeType.RESULT:
            if node.result is None:
                issues.append(
                    ValidationIssue(
                        code="invalid_result",
                        message=f"Result node '{node.id}' has no class",
                        severity="warning",
                        node_id=node.id,
                    )
                )
            continue
        cond = node.condition
        if cond is None or not cond.is_complete:
            issues.append(
                ValidationIssue(
                    code="incomplete_condition",
                    message=f"Condition on node '{node.id}' is not fully filled in",
                    severity="warning",
                    node_id=node.id,
                )
            )
        elif not _is_numeric(cond.threshold):
            issues.append(
                ValidationIssue(
                    code="invalid_threshold",
                    message=f"Threshold '{cond.threshold}' on node '{node.id}' is not numeric",
                    severity="warning",
                    node_id=node.id,
                )
            )
        for label in BranchLabel:
            if label not in labels_by_node.get(node.id, set()):
                issues.append(
                    ValidationIssue(
                        code="missing_branch",
                        message=f"Node '{node.id}' has no '{label.value}' branch",
                        severity="warning",
                        node_id=node.id,
                    )
                )
    return issues


def validate_tree(tree: TreeSnapshot) -> list[ValidationIssue]:
    """Structure checks followed by content checks."""
    issues = validate_structure(tree)
    if any(i.code == "missing_root" for i in issues):
        return issues
    issues.extend(validate_content(tree))
    if issues:
        logger.debug("Validation found %s issue(s) in tree version %s", len(issues), tree.version)
    return issues
