"""
Binary decision tree data model.

A tree is a flat set of nodes plus a set of labelled branches keyed by
(source_id, label). Parent links are never stored on nodes; any parent lookup
is derived from the branch set. Snapshots are frozen and safe to hand to the
evaluator while the store keeps changing.
"""

from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field

from shared.schemas.decision_tree import (
    ROOT_ID,
    BranchLabel,
    ConditionSpec,
    NodeType,
)


# -----------------------------------------------------------------------------
# Nodes and branches
# -----------------------------------------------------------------------------


class TreeNode(BaseModel):
    """
    A single vertex of the tree.

    - condition: routes a record to its `true` or `false` branch
    - result: terminal node carrying the predicted class (0 or 1)
    """

    id: str = Field(..., description="Unique node ID")
    type: NodeType = Field(..., description="Node kind: condition or result")
    label: str = Field("", description="Display label")
    condition: Optional[ConditionSpec] = Field(None, description="For condition nodes: column, operator, threshold")
    result: Optional[Literal[0, 1]] = Field(None, description="For result nodes: predicted class")

    model_config = {"frozen": True}


class Branch(BaseModel):
    """Directed, labelled edge from a condition node to one child."""

    source_id: str = Field(..., description="ID of the condition node")
    label: BranchLabel = Field(..., description="'true' or 'false'")
    target_id: str = Field(..., description="ID of the child node")

    model_config = {"frozen": True}


class TreeSnapshot(BaseModel):
    """Immutable point-in-time view of a tree (node list + branch list)."""

    root_id: str = Field(ROOT_ID, description="ID of the root node")
    nodes: tuple[TreeNode, ...] = Field(default_factory=tuple, description="All nodes, in insertion order")
    branches: tuple[Branch, ...] = Field(default_factory=tuple, description="All branches")
    version: int = Field(0, description="Number of mutations applied to the store when this was taken")

    model_config = {"frozen": True}

    def get_node(self, node_id: str) -> Optional[TreeNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def child(self, node_id: str, label: BranchLabel) -> Optional[str]:
        """Target of the branch leaving `node_id` with `label`, if any."""
        for branch in self.branches:
            if branch.source_id == node_id and branch.label == label:
                return branch.target_id
        return None


# -----------------------------------------------------------------------------
# Mutation result
# -----------------------------------------------------------------------------


class MutationResult(BaseModel):
    """Outcome of one tree edit. Rejected edits leave the tree untouched."""

    action: str = Field(..., description="add_child, delete_node, update_node or reset")
    applied: bool = Field(..., description="False when the edit was ignored")
    node_id: Optional[str] = Field(None, description="Affected node (the new node for add_child)")
    removed_ids: list[str] = Field(default_factory=list, description="Nodes removed by delete_node")
    reason: Optional[str] = Field(None, description="Why the edit was ignored")
    snapshot: TreeSnapshot = Field(..., description="Tree after the edit")


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------


class PatientRecord(BaseModel):
    """One row of tabular patient data with its ground-truth outcome."""

    values: dict[str, Any] = Field(default_factory=dict, description="Attribute name -> value")
    outcome: Literal[0, 1] = Field(..., description="Ground truth: 1 diabetic, 0 non-diabetic")


def lookup_value(values: Mapping[str, Any], column: str) -> Any:
    """Value of `column`, falling back to a case-insensitive match of the key."""
    if column in values:
        return values[column]
    wanted = column.lower()
    for key, value in values.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


# -----------------------------------------------------------------------------
# Evaluation output
# -----------------------------------------------------------------------------


class RecordFailure(BaseModel):
    """A record that could not be evaluated and was left out of the totals."""

    index: int = Field(..., description="Position of the record in the input")
    error: str = Field(..., description="Error type, e.g. InvalidData or IncompleteTree")
    message: str = Field(..., description="Human-readable message")
    node_id: Optional[str] = Field(None, description="Node where evaluation stopped")


class EvaluationReport(BaseModel):
    """Confusion-matrix counts and accuracy over the records actually evaluated."""

    total: int = Field(..., description="Records evaluated (exclusions not counted)")
    correct: int
    true_positive: int
    true_negative: int
    false_positive: int
    false_negative: int
    accuracy_percent: float = Field(..., description="(TP + TN) / total * 100, rounded to 2 places")
    excluded: int = Field(0, description="Records that failed evaluation")
    failures: list[RecordFailure] = Field(default_factory=list)


class TraceStep(BaseModel):
    """One visited node during a prediction."""

    node_id: str
    node_type: NodeType
    column: Optional[str] = None
    operator: Optional[str] = None
    threshold: Optional[Any] = None
    input_value: Optional[Any] = None
    matched: Optional[bool] = None
    next_node_id: Optional[str] = None


class PredictionTrace(BaseModel):
    """Prediction for one record plus the path taken through the tree."""

    prediction: Literal[0, 1]
    path: list[str] = Field(default_factory=list)
    steps: list[TraceStep] = Field(default_factory=list)
