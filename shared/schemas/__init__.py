"""Shared schemas for the decision tree builder (backend and UI contract)."""

from shared.schemas.decision_tree import (
    ROOT_ID,
    AddChild,
    BranchLabel,
    ConditionSpec,
    CreateTreeRequest,
    DeleteNode,
    EvaluateRequest,
    IntentRequest,
    NodeContent,
    NodeType,
    Operator,
    PredictRequest,
    TreeIntent,
    UpdateNode,
)

__all__ = [
    "ROOT_ID",
    "AddChild",
    "BranchLabel",
    "ConditionSpec",
    "CreateTreeRequest",
    "DeleteNode",
    "EvaluateRequest",
    "IntentRequest",
    "NodeContent",
    "NodeType",
    "Operator",
    "PredictRequest",
    "TreeIntent",
    "UpdateNode",
]
