"""
Core data models for the decision tree builder.

These define the tree, its snapshots, patient records and evaluation output.
For the intent/request contract with the UI, see shared.schemas.
"""

from backend.models.decision_tree import (
    Branch,
    EvaluationReport,
    MutationResult,
    PatientRecord,
    PredictionTrace,
    RecordFailure,
    TraceStep,
    TreeNode,
    TreeSnapshot,
    lookup_value,
)

__all__ = [
    "Branch",
    "EvaluationReport",
    "MutationResult",
    "PatientRecord",
    "PredictionTrace",
    "RecordFailure",
    "TraceStep",
    "TreeNode",
    "TreeSnapshot",
    "lookup_value",
]
