"""Backend services (tree store, evaluation, validation, record loading)."""

from backend.services.tree_store import TreeStore
from backend.services.evaluation_service import (
    evaluate_all,
    predict,
    predict_with_trace,
    to_number,
)
from backend.services.validation_service import (
    ValidationIssue,
    find_reachable,
    has_reachable_result,
    validate_content,
    validate_structure,
    validate_tree,
)
from backend.services.record_loader import (
    ColumnSummary,
    DataStats,
    LoadedDataset,
    load_records,
    load_records_from_text,
    summarize_columns,
)

__all__ = [
    "TreeStore",
    "evaluate_all",
    "predict",
    "predict_with_trace",
    "to_number",
    "ValidationIssue",
    "find_reachable",
    "has_reachable_result",
    "validate_content",
    "validate_structure",
    "validate_tree",
    "ColumnSummary",
    "DataStats",
    "LoadedDataset",
    "load_records",
    "load_records_from_text",
    "summarize_columns",
]
